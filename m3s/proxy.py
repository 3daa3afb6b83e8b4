"""
Error-normalizing wrapper around adapter instances.

Every callable attribute read through the proxy is wrapped so that a raised
exception, or a failed awaitable returned by the call, surfaces as
AdapterMethodError carrying the method name and the original message. Values
and non-callable attributes pass through untouched.

Example:
    wallet = ErrorHandlingProxy(raw_wallet, {"insufficient funds": "INSUFFICIENT_FUNDS"},
                                context="WalletAdapter(ethers)")
    try:
        await wallet.send_transaction(tx)
    except AdapterMethodError as e:
        e.code, e.method_name   # "INSUFFICIENT_FUNDS", "send_transaction"
"""
from __future__ import annotations
import functools
import inspect
import logging
from typing import Any, Dict, NoReturn, Optional
from .errors import AdapterError, AdapterMethodError
from .observability import METHOD_ERRORS

log = logging.getLogger(__name__)


class ErrorHandlingProxy:
    # Private names are mangled so adapter attributes like `_target` stay reachable.
    __slots__ = ("__target", "__error_map", "__default_code", "__context")

    def __init__(self, target: Any, error_map: Optional[Dict[str, str]] = None,
                 default_code: Optional[str] = None, context: str = "UnknownAdapter"):
        object.__setattr__(self, "_ErrorHandlingProxy__target", target)
        object.__setattr__(self, "_ErrorHandlingProxy__error_map", dict(error_map or {}))
        object.__setattr__(self, "_ErrorHandlingProxy__default_code", default_code)
        object.__setattr__(self, "_ErrorHandlingProxy__context", context)

    # isinstance() checks against the adapter class keep working
    @property
    def __class__(self):
        return type(self.__target)

    def __getattr__(self, name: str) -> Any:
        value = getattr(self.__target, name)
        if not callable(value) or inspect.isclass(value):
            return value
        return self.__wrap(name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self.__target, name, value)

    def __delattr__(self, name: str) -> None:
        delattr(self.__target, name)

    def __dir__(self):
        return dir(self.__target)

    def __repr__(self) -> str:
        return f"<ErrorHandlingProxy {self.__context} of {self.__target!r}>"

    def __wrap(self, name: str, fn: Any) -> Any:
        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def async_call(*args, **kwargs):
                try:
                    return await fn(*args, **kwargs)
                except Exception as e:
                    self.__fail(name, e)
            return async_call

        @functools.wraps(fn)
        def call(*args, **kwargs):
            try:
                res = fn(*args, **kwargs)
            except Exception as e:
                self.__fail(name, e)
            if inspect.isawaitable(res):
                return self.__guard(name, res)
            return res
        return call

    async def __guard(self, name: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except Exception as e:
            self.__fail(name, e)

    def __fail(self, name: str, exc: Exception) -> NoReturn:
        msg = str(exc)
        log.error("[%s] Method '%s' failed: %s", self.__context, name, msg, exc_info=exc)
        METHOD_ERRORS.labels(context=self.__context, method=name).inc()
        if isinstance(exc, AdapterError):
            raise exc
        code = self.__default_code
        for needle, mapped in self.__error_map.items():
            if needle in msg:
                code = mapped
                break
        raise AdapterMethodError(
            f"{self.__context} method '{name}' failed: {msg}",
            code=code,
            method_name=name,
            details={"adapter": self.__context},
        ) from exc


def is_proxy(obj: Any) -> bool:
    return type(obj) is ErrorHandlingProxy


def unwrap(obj: Any) -> Any:
    """Return the raw adapter behind a proxy (or the object itself)."""
    return object.__getattribute__(obj, "_ErrorHandlingProxy__target") if is_proxy(obj) else obj
