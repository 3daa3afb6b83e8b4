"""Environment matching. Detection is supplied by the host via Settings."""
from __future__ import annotations
from typing import Iterable, Optional, Union
from .config import get_settings
from .types import EnvironmentRequirements, RuntimeEnvironment, tag_of

Detected = Union[RuntimeEnvironment, str, Iterable[Union[RuntimeEnvironment, str]]]


def _as_set(detected: Detected) -> frozenset:
    if isinstance(detected, str):
        return frozenset({tag_of(detected)})
    return frozenset(tag_of(d) for d in detected)


def current_environment() -> RuntimeEnvironment:
    return get_settings().runtime_environment


def matches(declared: Optional[EnvironmentRequirements], detected: Detected) -> bool:
    """No declaration means universal support; otherwise any overlap matches."""
    if declared is None:
        return True
    return bool(_as_set(detected) & declared.supported_environments)


def describe_mismatch(adapter: str, declared: EnvironmentRequirements, detected: Detected) -> str:
    supported = ", ".join(sorted(declared.supported_environments))
    found = ", ".join(sorted(_as_set(detected)))
    msg = f"Adapter '{adapter}' requires {supported} environment but detected {found}."
    if declared.limitations:
        msg += "\n" + "\n".join(declared.limitations)
    return msg
