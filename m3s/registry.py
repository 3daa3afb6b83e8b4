"""Process-wide registry of adapters, modules and interface shapes."""
from __future__ import annotations
import logging
import threading
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union
from enum import Enum
from .errors import DuplicateRegistration
from .types import AdapterMetadata, tag_of

log = logging.getLogger(__name__)

ModuleRef = Union[Enum, str]

class AdapterRegistry:
    """
    Mapping of module -> (adapter name -> metadata), in registration order.

    Re-registering an existing (module, name) raises DuplicateRegistration
    unless `replace=True`, which swaps the metadata in place and keeps the
    original listing position. One lock guards every access.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._adapters: Dict[str, Dict[str, AdapterMetadata]] = {}
        self._modules: Dict[str, str] = {}
        self._shapes: Dict[str, FrozenSet[str]] = {}

    def register(self, module: ModuleRef, metadata: AdapterMetadata, *, replace: bool = False) -> None:
        key = tag_of(module)
        if metadata.module != key:
            raise ValueError(f"Adapter '{metadata.name}' declares module '{metadata.module}', not '{key}'")
        with self._lock:
            bucket = self._adapters.setdefault(key, {})
            if metadata.name in bucket and not replace:
                raise DuplicateRegistration(
                    f"Adapter '{metadata.name}' is already registered for module '{key}'.",
                    details={"module": key, "name": metadata.name},
                )
            if metadata.name in bucket:
                log.info("Replacing adapter %s/%s", key, metadata.name)
            bucket[metadata.name] = metadata
        log.debug("Registered adapter %s/%s@%s", key, metadata.name, metadata.version)

    def unregister(self, module: ModuleRef, name: str) -> bool:
        with self._lock:
            return self._adapters.get(tag_of(module), {}).pop(name, None) is not None

    def lookup(self, module: ModuleRef, name: str) -> Optional[AdapterMetadata]:
        with self._lock:
            return self._adapters.get(tag_of(module), {}).get(name)

    def list(self, module: ModuleRef) -> List[AdapterMetadata]:
        with self._lock:
            return list(self._adapters.get(tag_of(module), {}).values())

    def names(self, module: ModuleRef) -> List[str]:
        return [m.name for m in self.list(module)]

    def register_module(self, name: ModuleRef, version: str) -> None:
        with self._lock:
            self._modules[tag_of(name)] = version

    def modules(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._modules)

    def register_interface_shape(self, name: str, features: Iterable[ModuleRef]) -> None:
        with self._lock:
            self._shapes[name] = frozenset(tag_of(f) for f in features)

    def interface_shape(self, name: str) -> Optional[FrozenSet[str]]:
        with self._lock:
            return self._shapes.get(name)

    def reset(self) -> None:
        with self._lock:
            self._adapters.clear()
            self._modules.clear()
            self._shapes.clear()

REGISTRY = AdapterRegistry()

def register_adapter(module: ModuleRef, metadata: AdapterMetadata, *, replace: bool = False) -> None:
    REGISTRY.register(module, metadata, replace=replace)

def bootstrap(registrations: Iterable[Tuple[ModuleRef, AdapterMetadata]],
              registry: Optional[AdapterRegistry] = None) -> AdapterRegistry:
    """Explicit startup phase: register every adapter, in order, before any create()."""
    reg = registry if registry is not None else REGISTRY
    for module, meta in registrations:
        reg.register(module, meta)
    return reg
