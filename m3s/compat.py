"""Static cross-module compatibility rules between registered adapters."""
from __future__ import annotations
from typing import Dict, FrozenSet, Optional
from .capabilities import Capability
from .environment import Detected, current_environment, matches
from .registry import REGISTRY, AdapterRegistry
from .types import ModuleKind

W, C, X = ModuleKind.WALLET.value, ModuleKind.CONTRACT_HANDLER.value, ModuleKind.CROSSCHAIN.value

_WALLET_NEEDS = {
    C: frozenset({Capability.CONTRACT_GENERATOR.value}),
    X: frozenset({Capability.OPERATION_HANDLER.value}),
}
_NEEDS_WALLET = {
    W: frozenset({Capability.TRANSACTION_HANDLER.value, Capability.RPC_HANDLER.value}),
}

# module -> adapter name -> target module -> capabilities the target must offer
COMPATIBILITY: Dict[str, Dict[str, Dict[str, FrozenSet[str]]]] = {
    W: {"template": _WALLET_NEEDS},
    C: {"template": _NEEDS_WALLET},
    X: {"template": _NEEDS_WALLET},
}


def check_compatibility(source_module: str, source_name: str, target_module: str, target_name: str, *,
                        registry: Optional[AdapterRegistry] = None,
                        environment: Optional[Detected] = None) -> bool:
    """
    True when a rule links the source adapter to the target module, both
    adapters can run in `environment`, and the target offers every capability
    the rule requires.
    """
    reg = registry if registry is not None else REGISTRY
    env = environment if environment is not None else current_environment()
    needed = COMPATIBILITY.get(source_module, {}).get(source_name, {}).get(target_module)
    if needed is None:
        return False
    source = reg.lookup(source_module, source_name)
    target = reg.lookup(target_module, target_name)
    if source is None or target is None:
        return False
    if not (matches(source.environment, env) and matches(target.environment, env)):
        return False
    return needed <= target.features
