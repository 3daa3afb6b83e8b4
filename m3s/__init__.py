"""Registry, factory and outcome watching for pluggable wallet, contract and cross-chain adapters."""
__version__ = "1.0.0"

from .errors import (AdapterError, AdapterInitializationFailed, AdapterMethodError,  # noqa: E402
                     DuplicateRegistration, EnvironmentUnsupported, IncompatibleAdapter,
                     InvalidArguments, UnknownAdapter, UnknownInterface)
from .factory import (AdapterFactory, create_adapter, create_contract_handler,  # noqa: E402
                      create_crosschain, create_wallet)
from .registry import REGISTRY, AdapterRegistry, bootstrap, register_adapter  # noqa: E402
from .types import (AdapterMetadata, EnvironmentRequirements, ModuleKind,  # noqa: E402
                    Requirement, RuntimeEnvironment)
from .watcher import ExecutionStatus, OutcomeWatcher, wait_for_execution, wait_for_receipt  # noqa: E402
