"""
Requirement validation for adapter options.

`validate` is a pure function of (options, requirements): it never raises and
never mutates its inputs. The factory decides how a failed result propagates.

Example:
    reqs = [Requirement(path="options.private_key", type="string")]
    res = validate({"options": {}}, reqs)
    assert not res.ok and res.violations[0].path == "options.private_key"
"""
from __future__ import annotations
import types
import typing
from collections.abc import Callable as AbcCallable
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Type
from pydantic import BaseModel
from .common import type_name
from .types import Requirement

MISSING = "MISSING_ADAPTER_REQUIREMENT"
WRONG_TYPE = "INVALID_ADAPTER_REQUIREMENT_TYPE"

_ABSENT = object()


@dataclass(frozen=True)
class Violation:
    path: str
    code: str
    message: str
    expected_type: Optional[str] = None
    actual_type: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    violations: List[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def first(self) -> Optional[Violation]:
        return self.violations[0] if self.violations else None

    def __bool__(self) -> bool:
        return self.ok


def _child(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        return node[key] if key in node else _ABSENT
    if node is None or isinstance(node, (str, bytes, int, float, bool, list, tuple)):
        return _ABSENT
    return getattr(node, key, _ABSENT)


def resolve_path(obj: Any, path: str) -> Tuple[Any, bool]:
    """
    Descend `obj` along a dot-separated path.
    Returns (value, present). Any missing key along the way yields
    (_ABSENT, False).
    """
    node = obj
    for key in path.split("."):
        nxt = _child(node, key)
        if nxt is _ABSENT:
            return _ABSENT, False
        node = nxt
    return node, True


def check(options: Any, req: Requirement, *, adapter: str = "adapter") -> Optional[Violation]:
    """Check a single requirement; returns the violation or None."""
    value, present = resolve_path(options, req.path)
    if not present or value is None:
        if req.allow_undefined:
            return None
        return Violation(
            path=req.path,
            code=MISSING,
            message=req.message or f"Required option '{req.path}' is missing for adapter '{adapter}'.",
            expected_type=req.type,
            actual_type="undefined",
        )
    if req.type and req.type != "any":
        actual = type_name(value)
        if actual != req.type:
            return Violation(
                path=req.path,
                code=WRONG_TYPE,
                message=req.message or (
                    f"Required option '{req.path}' for adapter '{adapter}' must be of type "
                    f"'{req.type}', but received '{actual}'."
                ),
                expected_type=req.type,
                actual_type=actual,
            )
    return None


def validate(options: Any, requirements: Sequence[Requirement], *,
             mode: str = "all", adapter: str = "adapter") -> ValidationResult:
    out: List[Violation] = []
    for req in requirements:
        v = check(options, req, adapter=adapter)
        if v is None:
            continue
        out.append(v)
        if mode == "first":
            break
    return ValidationResult(out)


_TYPE_MAP = {
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    list: "array",
    tuple: "array",
    dict: "object",
}


def _requirement_type(annotation: Any) -> Optional[str]:
    origin = typing.get_origin(annotation) or annotation
    if origin in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return _requirement_type(args[0]) if len(args) == 1 else None
    if origin in _TYPE_MAP:
        return _TYPE_MAP[origin]
    if isinstance(origin, type) and issubclass(origin, BaseModel):
        return "object"
    if origin is AbcCallable:
        return "function"
    return None


def requirements_from_model(model: Type[BaseModel], prefix: str = "options") -> List[Requirement]:
    """
    Derive requirements from a pydantic options model: each required field
    becomes a required path, typed from its annotation. Field descriptions are
    used as the error message.
    """
    reqs: List[Requirement] = []
    for name, info in model.model_fields.items():
        if not info.is_required():
            continue
        key = info.alias or name
        reqs.append(Requirement(
            path=f"{prefix}.{key}" if prefix else key,
            type=_requirement_type(info.annotation),
            message=info.description,
        ))
    return reqs
