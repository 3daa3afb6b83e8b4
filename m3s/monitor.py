"""In-process tracker for cross-chain operations fed by adapter status events."""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional
from .common import maybe_await
from .watcher import ExecutionStatus, status_of

log = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class OperationMonitor:
    """
    Keeps the latest known state of each tracked operation.

    If the adapter exposes `on(event, callback)`, its "status" events update the
    tracked state directly; `force_status_check` pulls a fresh status on demand.
    """

    def __init__(self, adapter: Any = None):
        self._adapter = adapter
        self._ops: Dict[str, Dict[str, Any]] = {}
        self._listeners: List[Listener] = []
        on = getattr(adapter, "on", None)
        if callable(on):
            on("status", self._on_status_event)

    def _on_status_event(self, update: Dict[str, Any]) -> None:
        self.update_operation_status(update["operation_id"], update)

    def register_operation(self, operation_id: str, initial: Optional[Dict[str, Any]] = None) -> None:
        log.debug("Tracking operation %s", operation_id)
        op = {"operation_id": operation_id, "status": ExecutionStatus.UNKNOWN,
              "source_tx": {}, "destination_tx": {}, **(initial or {})}
        op["status"] = status_of(op)
        self._ops[operation_id] = op

    def update_operation_status(self, operation_id: str, update: Dict[str, Any]) -> Dict[str, Any]:
        current = self._ops.get(operation_id) or {
            "operation_id": operation_id, "status": ExecutionStatus.UNKNOWN,
            "source_tx": {}, "destination_tx": {},
        }
        merged = {**current, **update}
        merged["source_tx"] = {**current.get("source_tx", {}), **(update.get("source_tx") or {})}
        merged["destination_tx"] = {**current.get("destination_tx", {}), **(update.get("destination_tx") or {})}
        merged["status"] = status_of(merged)
        self._ops[operation_id] = merged
        for cb in list(self._listeners):
            cb(merged)
        return merged

    async def force_status_check(self, operation_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a fresh status from the adapter; fetch failures leave the state untouched."""
        try:
            fresh = await maybe_await(self._adapter.get_operation_status(operation_id))
        except Exception as e:
            log.warning("Status check for %s failed: %s", operation_id, e)
            return None
        if not fresh:
            return None
        if not isinstance(fresh, dict):
            fresh = {"status": status_of(fresh)}
        return self.update_operation_status(operation_id, fresh)

    def on_status_update(self, cb: Listener) -> None:
        self._listeners.append(cb)

    def off_status_update(self, cb: Listener) -> None:
        if cb in self._listeners:
            self._listeners.remove(cb)

    def get_operation_status(self, operation_id: str) -> Optional[Dict[str, Any]]:
        return self._ops.get(operation_id)

    @staticmethod
    def is_terminal_status(status: Any) -> bool:
        return ExecutionStatus.coerce(status).is_terminal

    def remove_operation(self, operation_id: str) -> bool:
        return self._ops.pop(operation_id, None) is not None

    def clear(self) -> None:
        self._ops.clear()
