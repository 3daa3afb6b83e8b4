"""Normalized error family surfaced by the factory, the registry and wrapped adapters."""
from __future__ import annotations
from typing import Any, Dict, List, Optional


class AdapterError(Exception):
    """Base class for every error the core raises to callers."""
    default_code: Optional[str] = None

    def __init__(self, message: str, *, code: Optional[str] = None,
                 method_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.method_name = method_name
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        cause = self.__cause__
        return {
            "name": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "method_name": self.method_name,
            "details": self.details,
            "cause": None if cause is None else {"name": type(cause).__name__, "message": str(cause)},
        }

    def __str__(self) -> str:
        s = self.message
        if self.code:
            s += f" (code={self.code})"
        if self.method_name:
            s += f" [{self.method_name}]"
        return s


class UnknownAdapter(AdapterError):
    default_code = "ADAPTER_NOT_FOUND"


class EnvironmentUnsupported(AdapterError):
    default_code = "ENVIRONMENT_UNSUPPORTED"


class InvalidArguments(AdapterError):
    default_code = "MISSING_ADAPTER_REQUIREMENT"

    def __init__(self, message: str, *, violations: Optional[List[Any]] = None, **kw):
        super().__init__(message, **kw)
        self.violations = list(violations or [])

    @property
    def paths(self) -> List[str]:
        return [v.path for v in self.violations]


class AdapterInitializationFailed(AdapterError):
    default_code = "ADAPTER_INITIALIZATION_FAILED"


class AdapterMethodError(AdapterError):
    default_code = "ADAPTER_METHOD_FAILED"


class DuplicateRegistration(AdapterError):
    default_code = "DUPLICATE_REGISTRATION"


class IncompatibleAdapter(AdapterError):
    default_code = "INCOMPATIBLE_ADAPTER"


class UnknownInterface(AdapterError):
    default_code = "INTERNAL_ERROR"
