"""Process start: ambient init followed by the adapter bootstrap phase.

Every adapter must be registered here, before the first create() call.
"""
from __future__ import annotations
import logging
from typing import Optional
from .adapters import register_builtin
from .config import Settings, get_settings, reset_settings
from .observability import init_logging, init_prom, init_tracing
from .registry import REGISTRY, AdapterRegistry

log = logging.getLogger(__name__)


def start(settings: Optional[Settings] = None, *, registry: Optional[AdapterRegistry] = None,
          tracing: bool = True, builtin: bool = True) -> AdapterRegistry:
    if settings is not None:
        reset_settings(settings)
    s = get_settings()
    init_logging(s.log_level)
    init_prom("PROM_PORT")
    if tracing:
        init_tracing("m3s")
    reg = registry if registry is not None else REGISTRY
    if builtin:
        register_builtin(reg)
    log.info("m3s started (environment=%s, modules=%s)", s.runtime_environment.value, sorted(reg.modules()))
    return reg
