from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .errors import ErrorCode, ProtocolError, StatusCode

SCHEMA_DIR = Path(__file__).parent / "schemas"

ENVELOPE_SCHEMA = "envelope"


@lru_cache(maxsize=8)
def load_schema(name: str = ENVELOPE_SCHEMA) -> Optional[dict]:
    """Load a JSON schema shipped with the package, if present."""
    path = SCHEMA_DIR / f"{name}.json"
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_msg(msg: Any, schema: Optional[dict] = None) -> Dict[str, Any]:
    """Check `msg` against the envelope schema and return it."""
    if schema is None:
        schema = load_schema(ENVELOPE_SCHEMA)
    if schema:
        try:
            jsonschema.validate(instance=msg, schema=schema)
        except jsonschema.ValidationError as exc:
            raise ProtocolError(
                StatusCode.BAD_REQUEST, ErrorCode.TYPE_MISSING, f"Schema validation failed: {exc.message}"
            ) from exc
    return msg


__all__ = ["ENVELOPE_SCHEMA", "load_schema", "validate_msg"]
