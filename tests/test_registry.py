import threading
import pytest
from m3s.errors import DuplicateRegistration
from m3s.registry import REGISTRY, AdapterRegistry, bootstrap, register_adapter
from m3s.types import AdapterMetadata, ModuleKind, Requirement

class Dummy:
    @classmethod
    def create(cls, **kw): return cls()

def meta(name, module="wallet", **kw):
    return AdapterMetadata(name=name, module=module, adapter_class=Dummy, **kw)

def test_lookup_after_register_returns_same_content():
    reg = AdapterRegistry()
    m = meta("alpha", requirements=[Requirement(path="options.key", type="string")],
             error_map={"boom": "BOOM"}, features={"CoreWallet"})
    reg.register(ModuleKind.WALLET, m)
    got = reg.lookup("wallet", "alpha")
    assert got == m
    assert got.model_dump() == m.model_dump()

def test_lookup_unregistered_is_none():
    reg = AdapterRegistry()
    assert reg.lookup("wallet", "nope") is None
    reg.register("wallet", meta("alpha"))
    assert reg.lookup("crosschain", "alpha") is None

def test_list_is_in_registration_order():
    reg = AdapterRegistry()
    for n in ("c", "a", "b"):
        reg.register("wallet", meta(n))
    assert reg.names("wallet") == ["c", "a", "b"]
    assert reg.list("crosschain") == []

def test_duplicate_rejected_by_default():
    reg = AdapterRegistry()
    reg.register("wallet", meta("alpha"))
    with pytest.raises(DuplicateRegistration) as ei:
        reg.register("wallet", meta("alpha", version="2.0.0"))
    assert ei.value.code == "DUPLICATE_REGISTRATION"
    assert reg.lookup("wallet", "alpha").version == "1.0.0"

def test_replace_keeps_listing_position():
    reg = AdapterRegistry()
    reg.register("wallet", meta("a"))
    reg.register("wallet", meta("b"))
    reg.register("wallet", meta("a", version="2.0.0"), replace=True)
    assert reg.names("wallet") == ["a", "b"]
    assert reg.lookup("wallet", "a").version == "2.0.0"

def test_same_name_in_other_module_is_not_a_duplicate():
    reg = AdapterRegistry()
    reg.register("wallet", meta("x"))
    reg.register("crosschain", meta("x", module="crosschain"))
    assert reg.lookup("crosschain", "x").module == "crosschain"

def test_module_mismatch_rejected():
    with pytest.raises(ValueError):
        AdapterRegistry().register("crosschain", meta("alpha"))

def test_extensible_module_kinds():
    reg = AdapterRegistry()
    reg.register("oracle", meta("pyth", module="oracle"))
    assert reg.names("oracle") == ["pyth"]

def test_unregister_and_reset():
    reg = AdapterRegistry()
    reg.register("wallet", meta("a"))
    reg.register_module("wallet", "1.0.0")
    reg.register_interface_shape("IW", ["CoreWallet"])
    assert reg.unregister("wallet", "a") is True
    assert reg.unregister("wallet", "a") is False
    reg.register("wallet", meta("a"))
    reg.reset()
    assert reg.list("wallet") == [] and reg.modules() == {} and reg.interface_shape("IW") is None

def test_interface_shapes_and_modules():
    reg = AdapterRegistry()
    reg.register_interface_shape("IEVMWallet", [ModuleKind.WALLET, "CoreWallet"])
    assert reg.interface_shape("IEVMWallet") == frozenset({"wallet", "CoreWallet"})
    reg.register_module(ModuleKind.CROSSCHAIN, "1.2.0")
    assert reg.modules() == {"crosschain": "1.2.0"}

def test_bootstrap_registers_in_order_on_process_registry():
    bootstrap([("wallet", meta("one")), ("wallet", meta("two"))])
    register_adapter("wallet", meta("three"))
    assert REGISTRY.names("wallet") == ["one", "two", "three"]

def test_concurrent_registration_from_threads():
    reg = AdapterRegistry()
    def work(i):
        reg.register("wallet", meta(f"a{i}"))
    threads = [threading.Thread(target=work, args=(i,)) for i in range(50)]
    for t in threads: t.start()
    for t in threads: t.join()
    assert len(reg.list("wallet")) == 50
