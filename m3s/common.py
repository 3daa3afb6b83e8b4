from __future__ import annotations
from typing import Any, Callable, Optional, Sequence
import inspect


async def maybe_await(value: Any) -> Any:
    """Await `value` if it is awaitable, else return it as is."""
    if inspect.isawaitable(value):
        return await value
    return value


def pick(obj: Any, names: Sequence[str]) -> Optional[Callable[..., Any]]:
    """
    Return the first callable attribute found on an object from a list of names.
    Example:
        pick(provider, ("wait_for_transaction_receipt", "wait_for_transaction"))
    """
    for n in names:
        fn = getattr(obj, n, None)
        if callable(fn):
            return fn
    return None


def type_name(value: Any) -> str:
    """Runtime category of a value in requirement terms."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if callable(value):
        return "function"
    return "object"
