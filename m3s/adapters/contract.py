from __future__ import annotations
import hashlib
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from ..capabilities import Capability
from ..types import AdapterMetadata, EnvironmentRequirements, ModuleKind, RuntimeEnvironment
from ..validator import requirements_from_model
from ..watcher import wait_for_receipt

log = logging.getLogger(__name__)

_TEMPLATES = {
    "erc20": (
        "// SPDX-License-Identifier: MIT\n"
        "pragma solidity ^{solc};\n\n"
        "contract {name} {{\n"
        "    string public name = \"{token_name}\";\n"
        "    string public symbol = \"{symbol}\";\n"
        "    uint8 public decimals = 18;\n"
        "}}\n"
    ),
    "erc721": (
        "// SPDX-License-Identifier: MIT\n"
        "pragma solidity ^{solc};\n\n"
        "contract {name} {{\n"
        "    string public name = \"{token_name}\";\n"
        "    string public symbol = \"{symbol}\";\n"
        "}}\n"
    ),
}

_CONTRACT_RE = re.compile(r"\bcontract\s+([A-Za-z_][A-Za-z0-9_]*)")


class TemplateContractOptions(BaseModel):
    work_dir: str = Field(description="Directory where generated sources are written")
    solc_version: str = "0.8.24"


class TemplateContractHandler:
    """Reference contract handler: renders sources from templates and fakes compilation."""

    def __init__(self, name: str, version: str, options: TemplateContractOptions):
        self.name = name
        self.version = version
        self._opts = options
        self._work_dir = Path(options.work_dir)

    @classmethod
    async def create(cls, *, name: str, version: str, options: Any) -> "TemplateContractHandler":
        opts = options if isinstance(options, TemplateContractOptions) else TemplateContractOptions.model_validate(options)
        return cls(name, version, opts)

    async def initialize(self) -> None:
        self._work_dir.mkdir(parents=True, exist_ok=True)

    async def generate_contract(self, name: str, *, template: str = "erc20",
                                token_name: Optional[str] = None, symbol: str = "TKN") -> str:
        if template not in _TEMPLATES:
            raise ValueError(f"unknown contract template '{template}'")
        src = _TEMPLATES[template].format(solc=self._opts.solc_version, name=name,
                                          token_name=token_name or name, symbol=symbol)
        (self._work_dir / f"{name}.sol").write_text(src, encoding="utf-8")
        return src

    async def compile(self, source: str) -> Dict[str, Any]:
        m = _CONTRACT_RE.search(source or "")
        if not m:
            raise ValueError("compilation failed: no contract definition found")
        return {
            "contract_name": m.group(1),
            "abi": [],
            "bytecode": "0x" + hashlib.sha3_256(source.encode()).hexdigest(),
            "compiler": f"solc-{self._opts.solc_version}",
        }

    async def deploy(self, artifact: Dict[str, Any], wallet: Any, *,
                     timeout: Optional[float] = 60.0, poll_interval: float = 1.0) -> str:
        """Send the creation transaction through `wallet` and return the new contract address."""
        tx_hash = await wallet.send_transaction({"to": None, "data": artifact["bytecode"], "value": 0})
        receipt = await wait_for_receipt(wallet, tx_hash, timeout=timeout, poll_interval=poll_interval)
        if receipt is None:
            raise TimeoutError(f"deployment of {artifact.get('contract_name')} not confirmed: {tx_hash}")
        return receipt["contract_address"]


METADATA = AdapterMetadata(
    name="template",
    module=ModuleKind.CONTRACT_HANDLER,
    adapter_type="solidity",
    adapter_class=TemplateContractHandler,
    requirements=requirements_from_model(TemplateContractOptions),
    environment=EnvironmentRequirements(
        supported_environments={RuntimeEnvironment.SERVER},
        limitations=[
            "Requires filesystem access for generated sources",
            "Requires shell access to run the compiler toolchain",
        ],
    ),
    error_map={
        "compilation failed": "COMPILATION_FAILED",
        "not confirmed": "DEPLOYMENT_TIMEOUT",
    },
    features={
        Capability.ADAPTER_IDENTITY, Capability.ADAPTER_LIFECYCLE, Capability.CONTRACT_GENERATOR,
        Capability.CONTRACT_COMPILER, Capability.CONTRACT_DEPLOYER,
    },
)
