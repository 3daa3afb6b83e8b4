from __future__ import annotations
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel, Field
from ..capabilities import Capability
from ..types import AdapterMetadata, ModuleKind
from ..validator import requirements_from_model
from ..watcher import ExecutionStatus, wait_for_execution

log = logging.getLogger(__name__)

_CHAINS = [
    {"chain_id": 1, "name": "Ethereum Mainnet", "ticker": "ETH"},
    {"chain_id": 10, "name": "Optimism", "ticker": "ETH"},
    {"chain_id": 137, "name": "Polygon Mainnet", "ticker": "MATIC"},
    {"chain_id": 42161, "name": "Arbitrum One", "ticker": "ETH"},
]


class TemplateCrossChainOptions(BaseModel):
    integrator: str = Field(description="Integrator identifier reported to the bridge API")
    api_key: Optional[str] = None
    # status lookups an operation spends in each non-terminal state
    steps_per_state: int = Field(default=1, ge=0)


class TemplateCrossChain:
    """
    Reference cross-chain adapter. Operations advance
    PENDING -> IN_PROGRESS -> COMPLETED as their status is queried, and every
    change is emitted as a "status" event.
    """

    def __init__(self, name: str, version: str, options: TemplateCrossChainOptions):
        self.name = name
        self.version = version
        self._opts = options
        self._ids = itertools.count(1)
        self._ops: Dict[str, Dict[str, Any]] = {}
        self._listeners: Dict[str, List[Callable[[Dict[str, Any]], None]]] = {}

    @classmethod
    async def create(cls, *, name: str, version: str, options: Any) -> "TemplateCrossChain":
        opts = options if isinstance(options, TemplateCrossChainOptions) else TemplateCrossChainOptions.model_validate(options)
        return cls(name, version, opts)

    def on(self, event: str, cb: Callable[[Dict[str, Any]], None]) -> None:
        self._listeners.setdefault(event, []).append(cb)

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        for cb in self._listeners.get(event, []):
            cb(payload)

    async def get_supported_chains(self) -> List[Dict[str, Any]]:
        return [dict(c) for c in _CHAINS]

    async def get_quote(self, intent: Dict[str, Any]) -> Dict[str, Any]:
        known = {c["chain_id"] for c in _CHAINS}
        for side in ("from_chain", "to_chain"):
            if intent.get(side) not in known:
                raise ValueError(f"unsupported chain: {intent.get(side)}")
        amount = int(intent.get("amount", 0))
        if amount <= 0:
            raise ValueError("amount must be positive")
        return {**intent, "id": f"quote-{next(self._ids)}", "estimate": {"to_amount": amount * 997 // 1000}}

    async def execute_operation(self, quote: Dict[str, Any], wallet: Any = None) -> Dict[str, Any]:
        if not quote.get("id"):
            raise ValueError("invalid quote: missing id")
        source_tx: Dict[str, Any] = {"chain_id": quote.get("from_chain")}
        if wallet is not None:
            source_tx["hash"] = await wallet.send_transaction({"to": quote.get("to_address"), "value": 0})
        op_id = f"op-{next(self._ids)}"
        self._ops[op_id] = {
            "operation_id": op_id,
            "status": ExecutionStatus.PENDING,
            "ticks": 0,
            "source_tx": source_tx,
            "destination_tx": {"chain_id": quote.get("to_chain")},
        }
        result = self._public(op_id)
        self._emit("status", result)
        return result

    async def get_operation_status(self, operation_id: str) -> Dict[str, Any]:
        op = self._ops.get(operation_id)
        if op is None:
            raise KeyError(f"unknown operation {operation_id}")
        before = op["status"]
        if not before.is_terminal:
            if op["ticks"] >= self._opts.steps_per_state:
                op["status"] = ExecutionStatus.IN_PROGRESS if before is ExecutionStatus.PENDING else ExecutionStatus.COMPLETED
                op["ticks"] = 0
            else:
                op["ticks"] += 1
        result = self._public(operation_id)
        if op["status"] is not before:
            self._emit("status", result)
        return result

    async def cancel_operation(self, operation_id: str) -> Dict[str, Any]:
        op = self._ops.get(operation_id)
        if op is None:
            raise KeyError(f"unknown operation {operation_id}")
        if not op["status"].is_terminal:
            op["status"] = ExecutionStatus.FAILED
            self._emit("status", self._public(operation_id))
        return self._public(operation_id)

    async def wait_for_operation(self, operation_id: str, **kw) -> Optional[Dict[str, Any]]:
        return await wait_for_execution(self, operation_id, **kw)

    def _public(self, operation_id: str) -> Dict[str, Any]:
        op = self._ops[operation_id]
        return {k: (dict(v) if isinstance(v, dict) else v) for k, v in op.items() if k != "ticks"}


METADATA = AdapterMetadata(
    name="template",
    module=ModuleKind.CROSSCHAIN,
    adapter_type="aggregator",
    adapter_class=TemplateCrossChain,
    requirements=requirements_from_model(TemplateCrossChainOptions),
    error_map={
        "unsupported chain": "UNSUPPORTED_CHAIN",
        "invalid quote": "INVALID_QUOTE",
        "unknown operation": "OPERATION_NOT_FOUND",
    },
    features={
        Capability.ADAPTER_IDENTITY, Capability.ADAPTER_LIFECYCLE, Capability.QUOTE_PROVIDER,
        Capability.OPERATION_HANDLER, Capability.CHAIN_DISCOVERY,
    },
)
