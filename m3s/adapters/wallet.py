from __future__ import annotations
import hashlib
import logging
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from ..capabilities import Capability
from ..types import AdapterMetadata, EnvironmentRequirements, ModuleKind, RuntimeEnvironment
from ..validator import requirements_from_model
from ..watcher import wait_for_receipt

log = logging.getLogger(__name__)


def _sha3_hex(*parts: str) -> str:
    return "0x" + hashlib.sha3_256("|".join(parts).encode()).hexdigest()


class TemplateWalletOptions(BaseModel):
    private_key: str = Field(description="Private key for the wallet (0x-prefixed hex)")
    chain_id: Optional[str] = None
    balance: int = Field(default=10**18, ge=0)
    # number of receipt lookups a transaction stays pending for
    mining_delay: int = Field(default=0, ge=0)


class TemplateWallet:
    """
    In-memory wallet used as the reference adapter for the wallet module.

    Addresses and signatures are sha3 digests of the key, not real ECDSA; the
    point is the adapter lifecycle, not cryptography.
    """

    def __init__(self, name: str, version: str, options: TemplateWalletOptions):
        self.name = name
        self.version = version
        self._opts = options
        self._address: Optional[str] = None
        self._provider: Any = None
        self._chain_id = options.chain_id
        self._balance = options.balance
        self._nonce = 0
        self._pending: Dict[str, int] = {}
        self._receipts: Dict[str, Dict[str, Any]] = {}

    @classmethod
    async def create(cls, *, name: str, version: str, options: Any) -> "TemplateWallet":
        opts = options if isinstance(options, TemplateWalletOptions) else TemplateWalletOptions.model_validate(options)
        return cls(name, version, opts)

    async def initialize(self) -> None:
        self._address = "0x" + _sha3_hex(self._opts.private_key)[-40:]
        log.debug("Template wallet ready: %s", self._address)

    def is_initialized(self) -> bool:
        return self._address is not None

    async def set_provider(self, provider: Any) -> None:
        chain_id = provider.get("chain_id") if isinstance(provider, dict) else getattr(provider, "chain_id", None)
        if not chain_id:
            raise ValueError("provider must define chain_id")
        self._provider = provider
        self._chain_id = str(chain_id)

    async def get_accounts(self) -> List[str]:
        if self._address is None:
            raise RuntimeError("wallet not initialized")
        return [self._address]

    async def get_network(self) -> Dict[str, Any]:
        return {"chain_id": self._chain_id, "provider": self._provider}

    async def get_balance(self) -> int:
        return self._balance

    async def sign_message(self, message: str) -> str:
        return _sha3_hex(self._opts.private_key, message)

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        value = int(tx.get("value", 0))
        if value < 0:
            raise ValueError("invalid transaction value")
        if value > self._balance:
            raise ValueError(f"insufficient funds: balance {self._balance}, value {value}")
        self._balance -= value
        tx_hash = _sha3_hex(self._address or "", str(self._nonce), repr(sorted(tx.items())))
        receipt = {
            "transaction_hash": tx_hash,
            "from": self._address,
            "to": tx.get("to"),
            "nonce": self._nonce,
            "status": 1,
        }
        if tx.get("to") is None:
            receipt["contract_address"] = "0x" + _sha3_hex(self._address or "", str(self._nonce))[-40:]
        self._nonce += 1
        self._receipts[tx_hash] = receipt
        self._pending[tx_hash] = self._opts.mining_delay
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        if tx_hash not in self._receipts:
            return None
        left = self._pending.get(tx_hash, 0)
        if left > 0:
            self._pending[tx_hash] = left - 1
            return None
        return self._receipts[tx_hash]

    async def wait_for_receipt(self, tx_hash: str, *, timeout: Optional[float] = 180.0,
                               poll_interval: float = 1.0, **kw) -> Optional[Dict[str, Any]]:
        return await wait_for_receipt(self, tx_hash, timeout=timeout, poll_interval=poll_interval, **kw)

    async def disconnect(self) -> None:
        self._provider = None


METADATA = AdapterMetadata(
    name="template",
    module=ModuleKind.WALLET,
    adapter_type="evm",
    adapter_class=TemplateWallet,
    requirements=requirements_from_model(TemplateWalletOptions),
    environment=EnvironmentRequirements(
        supported_environments={RuntimeEnvironment.SERVER, RuntimeEnvironment.BROWSER},
        limitations=["Browser environments should use secure key sources (hardware wallets, secure storage)"],
        security_notes=["Private keys are held in memory for the lifetime of the adapter"],
    ),
    error_map={
        "insufficient funds": "INSUFFICIENT_FUNDS",
        "not initialized": "WALLET_NOT_CONNECTED",
        "chain_id": "NETWORK_ERROR",
    },
    features={
        Capability.ADAPTER_IDENTITY, Capability.ADAPTER_LIFECYCLE, Capability.CORE_WALLET,
        Capability.MESSAGE_SIGNER, Capability.TRANSACTION_HANDLER, Capability.TRANSACTION_STATUS,
        Capability.RPC_HANDLER,
    },
)
