"""Registry data model: requirements, environments and adapter metadata."""
from __future__ import annotations
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

RequirementType = Literal["string", "number", "boolean", "object", "array", "function", "any"]


class ModuleKind(str, Enum):
    WALLET = "wallet"
    CONTRACT_HANDLER = "contractHandler"
    CROSSCHAIN = "crosschain"


class RuntimeEnvironment(str, Enum):
    SERVER = "server"
    BROWSER = "browser"


def tag_of(module: Union[Enum, str]) -> str:
    """Module kinds, feature and environment tags are extensible, so they are keyed on plain strings."""
    return module.value if isinstance(module, Enum) else str(module)


class Requirement(BaseModel):
    """
    One field-level precondition on an adapter's options.

    path            dot-separated locator, e.g. "options.private_key"
    type            expected runtime category of the value (optional)
    message         replaces the generated error text
    allow_undefined the value may be absent or None; present values are still type-checked
    """
    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    type: Optional[RequirementType] = None
    message: Optional[str] = None
    allow_undefined: bool = False


class EnvironmentRequirements(BaseModel):
    model_config = ConfigDict(frozen=True)

    # RuntimeEnvironment members or any future tag, stored as plain strings
    supported_environments: FrozenSet[str]
    limitations: List[str] = Field(default_factory=list)
    security_notes: List[str] = Field(default_factory=list)

    @field_validator("supported_environments", mode="before")
    @classmethod
    def _normalize_environments(cls, v):
        return frozenset(tag_of(e) for e in (v or ()))


class AdapterMetadata(BaseModel):
    """Identity and contract of one pluggable implementation."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    module: str
    version: str = "1.0.0"
    adapter_type: Union[str, int] = "core"
    adapter_class: Any                    # exposes a `create` factory; never called by the registry
    requirements: List[Requirement] = Field(default_factory=list)
    environment: Optional[EnvironmentRequirements] = None
    error_map: Dict[str, str] = Field(default_factory=dict)
    features: FrozenSet[str] = frozenset()

    @field_validator("module", mode="before")
    @classmethod
    def _normalize_module(cls, v):
        return tag_of(v)

    @field_validator("features", mode="before")
    @classmethod
    def _normalize_features(cls, v):
        return frozenset(tag_of(f) for f in (v or ()))
