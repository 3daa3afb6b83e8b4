"""Built-in template adapters, one per module kind."""
from __future__ import annotations
from typing import Optional
from .. import __version__
from ..capabilities import Capability
from ..registry import REGISTRY, AdapterRegistry, bootstrap
from ..types import ModuleKind
from . import contract, crosschain, wallet

BUILTIN = [
    (ModuleKind.WALLET, wallet.METADATA),
    (ModuleKind.CONTRACT_HANDLER, contract.METADATA),
    (ModuleKind.CROSSCHAIN, crosschain.METADATA),
]

INTERFACE_SHAPES = {
    "IEVMWallet": [
        Capability.CORE_WALLET, Capability.MESSAGE_SIGNER, Capability.TRANSACTION_HANDLER,
        Capability.RPC_HANDLER, Capability.TRANSACTION_STATUS,
    ],
    "IBaseContractHandler": [
        Capability.CONTRACT_GENERATOR, Capability.CONTRACT_COMPILER, Capability.CONTRACT_DEPLOYER,
    ],
    "ICrossChain": [
        Capability.ADAPTER_IDENTITY, Capability.ADAPTER_LIFECYCLE, Capability.QUOTE_PROVIDER,
        Capability.OPERATION_HANDLER, Capability.CHAIN_DISCOVERY,
    ],
}


def register_builtin(registry: Optional[AdapterRegistry] = None) -> AdapterRegistry:
    reg = registry if registry is not None else REGISTRY
    for kind in ModuleKind:
        reg.register_module(kind, __version__)
    for shape, features in INTERFACE_SHAPES.items():
        reg.register_interface_shape(shape, features)
    return bootstrap(BUILTIN, reg)
