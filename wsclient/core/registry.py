"""Process-wide registry backing the ``singleton`` option."""

from __future__ import annotations

import dataclasses
import logging
import weakref
from typing import Any, Mapping, Optional, Union

from wsclient.config import ConnectionOptions, build_options, normalize_url

from .controller import ConnectionController, ConnectionState, TransportFactory
from .timers import Timers

logger = logging.getLogger(__name__)

RegistryKey = Optional[str]


class ControllerRegistry:
    """
    Maps a key to a weakly-referenced controller.

    The key is the normalized URL for ``singleton_scope="url"`` and ``None``
    for ``"global"``. An entry disappears when its controller is garbage
    collected or closed; nothing else evicts it. A closed controller that
    connects again takes the slot back when no other live controller holds
    it. A reused controller keeps its own options and callbacks.
    """

    def __init__(self) -> None:
        self._entries: "weakref.WeakValueDictionary[RegistryKey, ConnectionController]" = weakref.WeakValueDictionary()

    @staticmethod
    def key_for(url: str, scope: str) -> RegistryKey:
        return None if scope == "global" else normalize_url(url)

    def get(self, key: RegistryKey) -> Optional[ConnectionController]:
        controller = self._entries.get(key)
        if controller is not None and controller.state == ConnectionState.MANUALLY_CLOSED:
            return None
        return controller

    def register(self, key: RegistryKey, controller: ConnectionController) -> None:
        self._entries[key] = controller

    def claim(self, key: RegistryKey, controller: ConnectionController) -> bool:
        """Register `controller` unless another live controller holds `key`."""
        current = self.get(key)
        if current is not None and current is not controller:
            return False
        self.register(key, controller)
        return True

    def evict(self, controller: ConnectionController) -> None:
        for key, entry in list(self._entries.items()):
            if entry is controller:
                del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


REGISTRY = ControllerRegistry()


def get_or_create(
    url: str,
    options: Union[ConnectionOptions, Mapping[str, Any], None] = None,
    *,
    registry: Optional[ControllerRegistry] = None,
    transport_factory: Optional[TransportFactory] = None,
    timers: Optional[Timers] = None,
    **overrides: Any,
) -> ConnectionController:
    """Build a controller, or hand back the registered one when ``singleton`` is set."""
    if isinstance(options, ConnectionOptions):
        resolved = build_options(dataclasses.asdict(options), **overrides)
    else:
        resolved = build_options(options, **overrides)
    if not resolved.singleton:
        return ConnectionController(url, resolved, transport_factory=transport_factory, timers=timers)

    registry = registry if registry is not None else REGISTRY
    key = registry.key_for(url, resolved.singleton_scope)
    existing = registry.get(key)
    if existing is not None:
        if existing.options != resolved:
            logger.warning("Reusing controller for %s; new options ignored", key or "global scope")
        return existing

    # the controller claims its own slot, and claims it again on connect() after close()
    return ConnectionController(url, resolved, transport_factory=transport_factory, timers=timers, registry=registry)


__all__ = ["ControllerRegistry", "REGISTRY", "RegistryKey", "get_or_create"]
