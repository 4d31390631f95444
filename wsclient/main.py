from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

from wsclient.config import CLIENT_CONFIG, load_config
from wsclient.core import CloseEvent, ConnectionController, ErrorEvent, MessageEvent, OpenEvent


async def run_client(url: Optional[str] = None) -> None:
    load_config()
    logging.basicConfig(level=CLIENT_CONFIG["log_level"])
    options = {key: value for key, value in CLIENT_CONFIG.items() if key not in ("server_url", "log_level")}
    controller = ConnectionController(url or CLIENT_CONFIG["server_url"], options)

    def on_open(event: OpenEvent) -> None:
        print(f"* connected to {event.url}")

    def on_message(event: MessageEvent) -> None:
        print(event.message)

    def on_close(event: CloseEvent) -> None:
        print(f"* disconnected ({event.code} {event.reason})".rstrip())

    def on_error(event: ErrorEvent) -> None:
        print(f"* error: {event.message or event.error}")

    controller.onopen = on_open
    controller.onmessage = on_message
    controller.onclose = on_close
    controller.onerror = on_error
    controller.connect()
    try:
        await asyncio.Event().wait()
    finally:
        controller.close()
        # let the close handshake go out
        await asyncio.sleep(0.1)


def main() -> None:
    try:
        asyncio.run(run_client(sys.argv[1] if len(sys.argv) > 1 else None))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
