"""
Adapter factory: registry lookup, gates, construction, initialization, wrapping.

Lookup, environment, requirement and interface gates all run before any
adapter code; a failure there never touches the adapter class. Construction
and initialization failures surface as AdapterInitializationFailed and the
partially built adapter is dropped. Nothing is retried.
"""
from __future__ import annotations
import logging
from typing import Any, Optional, Union
from enum import Enum
from .capabilities import HasInitialize, HasProviderSetter, has_capability
from .common import maybe_await
from .config import Settings, get_settings
from .environment import describe_mismatch, matches
from .errors import (AdapterError, AdapterInitializationFailed, EnvironmentUnsupported,
                     IncompatibleAdapter, InvalidArguments, UnknownAdapter, UnknownInterface)
from .observability import CREATES, tracer
from .proxy import ErrorHandlingProxy
from .registry import REGISTRY, AdapterRegistry
from .types import AdapterMetadata, ModuleKind, tag_of
from .validator import validate

log = logging.getLogger(__name__)

_CONTEXT_NAMES = {
    ModuleKind.WALLET.value: "WalletAdapter",
    ModuleKind.CONTRACT_HANDLER.value: "ContractHandlerAdapter",
    ModuleKind.CROSSCHAIN.value: "CrossChainAdapter",
}


def context_name(module: str, name: str) -> str:
    return f"{_CONTEXT_NAMES.get(module, module + 'Adapter')}({name})"


class AdapterFactory:
    def __init__(self, registry: Optional[AdapterRegistry] = None, settings: Optional[Settings] = None):
        self._registry = registry if registry is not None else REGISTRY
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    async def create(self, module: Union[Enum, str], name: str, options: Any = None, *,
                     provider: Any = None, expected_interface: Optional[str] = None) -> Any:
        key = tag_of(module)
        with tracer.start_as_current_span("m3s.create", attributes={"module": key, "adapter": name}):
            try:
                adapter = await self._create(key, name, {} if options is None else options,
                                             provider, expected_interface)
            except AdapterError:
                CREATES.labels(module=key, adapter=name, outcome="error").inc()
                raise
        CREATES.labels(module=key, adapter=name, outcome="ok").inc()
        return adapter

    async def _create(self, module: str, name: str, options: Any, provider: Any,
                      expected_interface: Optional[str]) -> Any:
        meta = self._registry.lookup(module, name)
        if meta is None:
            raise UnknownAdapter(
                f"Adapter '{name}' not found for {module} module. Installed: {self._registry.names(module)}",
                method_name="create",
                details={"module": module, "name": name},
            )

        self._check_environment(meta)
        self._check_requirements(meta, options)
        if expected_interface:
            self._check_interface(meta, expected_interface)

        instance = await self._instantiate(meta, options)

        if has_capability(instance, HasInitialize):
            try:
                await maybe_await(instance.initialize())
            except Exception as e:
                raise AdapterInitializationFailed(
                    f"Adapter '{name}' failed to initialize: {e}", method_name="initialize",
                ) from e

        if provider is not None and has_capability(instance, HasProviderSetter):
            try:
                await maybe_await(instance.set_provider(provider))
            except Exception as e:
                raise AdapterInitializationFailed(
                    f"Adapter '{name}' rejected provider: {e}", method_name="set_provider",
                ) from e

        log.info("Created %s adapter '%s'@%s", module, name, meta.version)
        return ErrorHandlingProxy(instance, meta.error_map, context=context_name(module, name))

    def _check_environment(self, meta: AdapterMetadata) -> None:
        env = meta.environment
        detected = self.settings.runtime_environment
        if not matches(env, detected):
            raise EnvironmentUnsupported(
                describe_mismatch(meta.name, env, detected),
                method_name="create",
                details={
                    "adapter": meta.name,
                    "current_environment": tag_of(detected),
                    "supported_environments": sorted(env.supported_environments),
                    "limitations": list(env.limitations),
                },
            )
        for note in env.security_notes if env else ():
            log.warning("[%s] Security note: %s", meta.name, note)

    def _check_requirements(self, meta: AdapterMetadata, options: Any) -> None:
        res = validate({"options": options}, meta.requirements,
                       mode=self.settings.validation_mode, adapter=meta.name)
        if res.ok:
            return
        first = res.first
        raise InvalidArguments(
            first.message if len(res.violations) == 1
            else "; ".join(v.message for v in res.violations),
            violations=res.violations,
            code=first.code,
            method_name="create",
            details={"paths": [v.path for v in res.violations]},
        )

    def _check_interface(self, meta: AdapterMetadata, interface: str) -> None:
        shape = self._registry.interface_shape(interface)
        if shape is None:
            raise UnknownInterface(
                f"Unknown interface shape requested: '{interface}'. Ensure it is registered in the registry.",
                method_name="create",
            )
        missing = sorted(shape - meta.features)
        if missing:
            raise IncompatibleAdapter(
                f"Adapter '{meta.name}' does not fully implement the '{interface}' interface. "
                f"Missing capabilities: {', '.join(missing)}.",
                method_name="create",
                details={"interface": interface, "missing": missing},
            )

    async def _instantiate(self, meta: AdapterMetadata, options: Any) -> Any:
        create = getattr(meta.adapter_class, "create", None)
        if not callable(create):
            raise AdapterInitializationFailed(
                f"Adapter class or its static 'create' method is invalid for '{meta.name}'.",
                method_name="create",
            )
        try:
            instance = await maybe_await(create(name=meta.name, version=meta.version, options=options))
        except Exception as e:
            raise AdapterInitializationFailed(
                f"Adapter '{meta.name}' failed to be created: {e}", method_name="create",
            ) from e
        if instance is None:
            raise AdapterInitializationFailed(f"Adapter '{meta.name}' initialization error.", method_name="create")
        return instance


async def create_adapter(module: Union[Enum, str], name: str, options: Any = None, **kw) -> Any:
    return await AdapterFactory().create(module, name, options, **kw)


async def create_wallet(name: str, options: Any = None, **kw) -> Any:
    return await create_adapter(ModuleKind.WALLET, name, options, **kw)


async def create_contract_handler(name: str, options: Any = None, **kw) -> Any:
    return await create_adapter(ModuleKind.CONTRACT_HANDLER, name, options, **kw)


async def create_crosschain(name: str, options: Any = None, **kw) -> Any:
    return await create_adapter(ModuleKind.CROSSCHAIN, name, options, **kw)
