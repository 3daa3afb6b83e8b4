"""Capability tags and the narrow protocols the factory and watchers probe for."""
from __future__ import annotations
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


class Capability(str, Enum):
    ADAPTER_IDENTITY = "AdapterIdentity"
    ADAPTER_LIFECYCLE = "AdapterLifecycle"
    CORE_WALLET = "CoreWallet"
    MESSAGE_SIGNER = "MessageSigner"
    TRANSACTION_HANDLER = "TransactionHandler"
    TRANSACTION_STATUS = "TransactionStatus"
    RPC_HANDLER = "RPCHandler"
    CONTRACT_GENERATOR = "ContractGenerator"
    CONTRACT_COMPILER = "ContractCompiler"
    CONTRACT_DEPLOYER = "ContractDeployer"
    QUOTE_PROVIDER = "QuoteProvider"
    OPERATION_HANDLER = "OperationHandler"
    CHAIN_DISCOVERY = "ChainDiscovery"


@runtime_checkable
class HasInitialize(Protocol):
    async def initialize(self) -> None: ...


@runtime_checkable
class HasProviderSetter(Protocol):
    async def set_provider(self, provider: Any) -> None: ...


@runtime_checkable
class HasReceiptLookup(Protocol):
    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Any]: ...


@runtime_checkable
class HasOperationStatus(Protocol):
    async def get_operation_status(self, operation_id: str) -> Any: ...


def _members(proto: type) -> tuple:
    return tuple(n for n, v in vars(proto).items() if callable(v) and not n.startswith("_"))


def has_capability(obj: Any, proto: type) -> bool:
    """
    Membership test against a capability protocol.

    isinstance() on runtime protocols uses static attribute lookup on recent
    interpreters, which a forwarding proxy cannot satisfy, so members are
    resolved with plain getattr instead.
    """
    return all(callable(getattr(obj, n, None)) for n in _members(proto))
