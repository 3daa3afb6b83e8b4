import pytest
from m3s.config import Settings, reset_settings
from m3s.errors import (AdapterInitializationFailed, AdapterMethodError, EnvironmentUnsupported,
                        IncompatibleAdapter, InvalidArguments, UnknownAdapter, UnknownInterface)
from m3s.factory import AdapterFactory, create_adapter, create_wallet
from m3s.proxy import is_proxy, unwrap
from m3s.registry import REGISTRY, AdapterRegistry
from m3s.types import AdapterMetadata, EnvironmentRequirements, Requirement, RuntimeEnvironment

calls = []

class Alpha:
    def __init__(self, options):
        self.options = options
        self.initialized = False
        self.provider = None

    @classmethod
    async def create(cls, *, name, version, options):
        calls.append(("create", name, version))
        return cls(options)

    async def initialize(self):
        calls.append(("initialize",))
        self.initialized = True

    async def set_provider(self, provider):
        self.provider = provider

    async def get_accounts(self):
        return ["0x" + self.options["key"]]

    async def send(self):
        raise ValueError("nonce too low")

@pytest.fixture(autouse=True)
def _clear_calls():
    calls.clear()

def register_alpha(**kw):
    kw.setdefault("requirements", [Requirement(path="options.key", type="string")])
    REGISTRY.register("wallet", AdapterMetadata(name="alpha", module="wallet", adapter_class=Alpha, **kw))

@pytest.mark.asyncio
async def test_alpha_scenario_missing_key_then_success():
    register_alpha()
    with pytest.raises(InvalidArguments) as ei:
        await create_adapter("wallet", "alpha", {})
    assert "options.key" in ei.value.paths
    assert calls == []

    w = await create_adapter("wallet", "alpha", {"key": "abc"})
    assert is_proxy(w)
    assert await w.get_accounts() == ["0xabc"]
    assert calls == [("create", "alpha", "1.0.0"), ("initialize",)]
    assert unwrap(w).initialized

@pytest.mark.asyncio
async def test_unknown_adapter_runs_no_adapter_code():
    register_alpha()
    with pytest.raises(UnknownAdapter) as ei:
        await create_wallet("beta", {"key": "abc"})
    assert ei.value.code == "ADAPTER_NOT_FOUND"
    assert "alpha" in ei.value.message
    assert calls == []

@pytest.mark.asyncio
async def test_wrong_type_reports_type_code():
    register_alpha()
    with pytest.raises(InvalidArguments) as ei:
        await create_wallet("alpha", {"key": 123})
    assert ei.value.code == "INVALID_ADAPTER_REQUIREMENT_TYPE"
    assert calls == []

@pytest.mark.asyncio
async def test_first_violation_mode():
    REGISTRY.register("wallet", AdapterMetadata(
        name="alpha", module="wallet", adapter_class=Alpha,
        requirements=[Requirement(path="options.a"), Requirement(path="options.b")]))
    with pytest.raises(InvalidArguments) as ei:
        await create_wallet("alpha", {})
    assert ei.value.paths == ["options.a", "options.b"]

    reset_settings(Settings(validation_mode="first"))
    with pytest.raises(InvalidArguments) as ei:
        await create_wallet("alpha", {})
    assert ei.value.paths == ["options.a"]

@pytest.mark.asyncio
async def test_environment_gate_surfaces_limitations():
    register_alpha(environment=EnvironmentRequirements(
        supported_environments={RuntimeEnvironment.SERVER}, limitations=["needs filesystem"]))
    reset_settings(Settings(runtime_environment=RuntimeEnvironment.BROWSER))
    with pytest.raises(EnvironmentUnsupported) as ei:
        await create_wallet("alpha", {"key": "abc"})
    assert "needs filesystem" in ei.value.message
    assert ei.value.details["limitations"] == ["needs filesystem"]
    assert calls == []

@pytest.mark.asyncio
async def test_environment_checked_before_requirements():
    register_alpha(environment=EnvironmentRequirements(supported_environments={RuntimeEnvironment.SERVER}))
    reset_settings(Settings(runtime_environment="browser"))
    with pytest.raises(EnvironmentUnsupported):
        await create_wallet("alpha", {})

@pytest.mark.asyncio
async def test_initialize_failure_is_wrapped():
    class Broken(Alpha):
        async def initialize(self):
            raise ConnectionError("handshake refused")
    REGISTRY.register("wallet", AdapterMetadata(name="broken", module="wallet", adapter_class=Broken))
    with pytest.raises(AdapterInitializationFailed) as ei:
        await create_wallet("broken", {})
    assert isinstance(ei.value.__cause__, ConnectionError)
    assert "handshake refused" in ei.value.message

@pytest.mark.asyncio
async def test_create_failure_and_none_result():
    class Exploding:
        @staticmethod
        def create(**kw): raise RuntimeError("bad key")
    class Empty:
        @staticmethod
        async def create(**kw): return None
    REGISTRY.register("wallet", AdapterMetadata(name="x", module="wallet", adapter_class=Exploding))
    REGISTRY.register("wallet", AdapterMetadata(name="y", module="wallet", adapter_class=Empty))
    REGISTRY.register("wallet", AdapterMetadata(name="z", module="wallet", adapter_class=object))
    for name in ("x", "y", "z"):
        with pytest.raises(AdapterInitializationFailed):
            await create_wallet(name, {})

@pytest.mark.asyncio
async def test_sync_create_without_initialize():
    class Plain:
        @classmethod
        def create(cls, *, name, version, options): return cls()
        def ping(self): return "pong"
    REGISTRY.register("crosschain", AdapterMetadata(name="plain", module="crosschain", adapter_class=Plain))
    a = await create_adapter("crosschain", "plain")
    assert a.ping() == "pong"

@pytest.mark.asyncio
async def test_provider_setter_only_when_supplied():
    register_alpha()
    w = await create_wallet("alpha", {"key": "k"})
    assert w.provider is None
    w = await create_wallet("alpha", {"key": "k"}, provider={"chain_id": "0x1"})
    assert w.provider == {"chain_id": "0x1"}

@pytest.mark.asyncio
async def test_each_create_yields_independent_instance():
    register_alpha()
    a = await create_wallet("alpha", {"key": "k"})
    b = await create_wallet("alpha", {"key": "k"})
    assert unwrap(a) is not unwrap(b)

@pytest.mark.asyncio
async def test_method_errors_use_error_map():
    register_alpha(error_map={"nonce": "NONCE_ERROR"})
    w = await create_wallet("alpha", {"key": "k"})
    with pytest.raises(AdapterMethodError) as ei:
        await w.send()
    assert ei.value.code == "NONCE_ERROR"
    assert "WalletAdapter(alpha)" in ei.value.message

@pytest.mark.asyncio
async def test_expected_interface_gate():
    reg = AdapterRegistry()
    reg.register("wallet", AdapterMetadata(name="alpha", module="wallet", adapter_class=Alpha,
                                           features={"CoreWallet"}))
    reg.register_interface_shape("IEVMWallet", ["CoreWallet", "MessageSigner"])
    reg.register_interface_shape("ICore", ["CoreWallet"])
    f = AdapterFactory(reg, Settings())
    with pytest.raises(IncompatibleAdapter) as ei:
        await f.create("wallet", "alpha", {}, expected_interface="IEVMWallet")
    assert ei.value.details["missing"] == ["MessageSigner"]
    with pytest.raises(UnknownInterface):
        await f.create("wallet", "alpha", {}, expected_interface="INope")
    assert calls == []
    assert await f.create("wallet", "alpha", {}, expected_interface="ICore") is not None

@pytest.mark.asyncio
async def test_factory_with_private_registry_ignores_process_registry():
    register_alpha()
    f = AdapterFactory(AdapterRegistry(), Settings())
    with pytest.raises(UnknownAdapter):
        await f.create("wallet", "alpha", {"key": "k"})

@pytest.mark.asyncio
async def test_optional_options_may_be_left_out():
    register_alpha(requirements=[
        Requirement(path="options.key", type="string"),
        Requirement(path="options.provider", type="object", allow_undefined=True),
        Requirement(path="options.web3auth.client_id", type="string", allow_undefined=True),
    ])
    w = await create_wallet("alpha", {"key": "k"})
    assert await w.get_accounts() == ["0xk"]
    with pytest.raises(InvalidArguments) as ei:
        await create_wallet("alpha", {"key": "k", "provider": "http://node"})
    assert ei.value.code == "INVALID_ADAPTER_REQUIREMENT_TYPE"
