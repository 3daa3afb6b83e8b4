import asyncio
import pytest
from m3s import (AdapterMethodError, EnvironmentUnsupported, ExecutionStatus, InvalidArguments,
                 create_contract_handler, create_crosschain, create_wallet)
from m3s.adapters import register_builtin
from m3s.config import Settings, reset_settings
from m3s.monitor import OperationMonitor
from m3s.registry import REGISTRY

KEY = "0x" + "11" * 32

@pytest.fixture(autouse=True)
def _builtin():
    register_builtin()

def test_builtin_registration():
    assert REGISTRY.names("wallet") == ["template"]
    assert REGISTRY.names("contractHandler") == ["template"]
    assert REGISTRY.names("crosschain") == ["template"]
    assert set(REGISTRY.modules()) == {"wallet", "contractHandler", "crosschain"}
    assert [r.path for r in REGISTRY.lookup("wallet", "template").requirements] == ["options.private_key"]

@pytest.mark.asyncio
async def test_wallet_requires_private_key():
    with pytest.raises(InvalidArguments) as ei:
        await create_wallet("template", {})
    assert ei.value.paths == ["options.private_key"]

@pytest.mark.asyncio
async def test_wallet_lifecycle_and_receipts():
    w = await create_wallet("template", {"private_key": KEY, "mining_delay": 2},
                            provider={"chain_id": "0xaa36a7"})
    [addr] = await w.get_accounts()
    assert addr.startswith("0x") and len(addr) == 42
    assert (await w.get_network())["chain_id"] == "0xaa36a7"
    assert await w.sign_message("hi") == await w.sign_message("hi")
    h = await w.send_transaction({"to": "0x" + "22" * 20, "value": 5})
    r = await w.wait_for_receipt(h, timeout=1, poll_interval=0.001)
    assert r["transaction_hash"] == h and r["status"] == 1
    assert await w.get_balance() == 10**18 - 5

@pytest.mark.asyncio
async def test_wallet_errors_are_mapped():
    w = await create_wallet("template", {"private_key": KEY, "balance": 1})
    with pytest.raises(AdapterMethodError) as ei:
        await w.send_transaction({"to": "0x1", "value": 2})
    assert ei.value.code == "INSUFFICIENT_FUNDS"
    assert ei.value.method_name == "send_transaction"

@pytest.mark.asyncio
async def test_contract_handler_is_server_only(tmp_path):
    reset_settings(Settings(runtime_environment="browser"))
    with pytest.raises(EnvironmentUnsupported) as ei:
        await create_contract_handler("template", {"work_dir": str(tmp_path)})
    assert "filesystem" in ei.value.message

@pytest.mark.asyncio
async def test_generate_compile_deploy(tmp_path):
    work = tmp_path / "contracts"
    ch = await create_contract_handler("template", {"work_dir": str(work)})
    wallet = await create_wallet("template", {"private_key": KEY, "mining_delay": 1})
    src = await ch.generate_contract("MyToken", symbol="MTK")
    assert (work / "MyToken.sol").read_text() == src
    artifact = await ch.compile(src)
    assert artifact["contract_name"] == "MyToken"
    addr = await ch.deploy(artifact, wallet, timeout=1, poll_interval=0.001)
    assert addr.startswith("0x") and len(addr) == 42
    with pytest.raises(AdapterMethodError) as ei:
        await ch.compile("pragma solidity ^0.8.0;")
    assert ei.value.code == "COMPILATION_FAILED"

@pytest.mark.asyncio
async def test_crosschain_operation_reaches_completed():
    bridge = await create_crosschain("template", {"integrator": "m3s-tests", "steps_per_state": 1})
    monitor = OperationMonitor(bridge)
    chains = await bridge.get_supported_chains()
    assert {c["chain_id"] for c in chains} >= {1, 10}
    quote = await bridge.get_quote({"from_chain": 1, "to_chain": 10, "amount": 1000})
    op = await bridge.execute_operation(quote)
    assert op["status"] is ExecutionStatus.PENDING
    polls = []
    res = await bridge.wait_for_operation(op["operation_id"], poll_interval=0.001, on_poll=polls.append)
    assert res["status"] is ExecutionStatus.COMPLETED
    assert polls == [1, 2, 3]
    assert monitor.get_operation_status(op["operation_id"])["status"] is ExecutionStatus.COMPLETED

@pytest.mark.asyncio
async def test_crosschain_cancel_and_errors():
    bridge = await create_crosschain("template", {"integrator": "m3s-tests"})
    quote = await bridge.get_quote({"from_chain": 1, "to_chain": 137, "amount": 10})
    op = await bridge.execute_operation(quote)
    await bridge.cancel_operation(op["operation_id"])
    res = await asyncio.wait_for(bridge.wait_for_operation(op["operation_id"], poll_interval=0.001), 1)
    assert res["status"] is ExecutionStatus.FAILED
    with pytest.raises(AdapterMethodError) as ei:
        await bridge.get_quote({"from_chain": 1, "to_chain": 999, "amount": 1})
    assert ei.value.code == "UNSUPPORTED_CHAIN"
    with pytest.raises(AdapterMethodError) as ei:
        await bridge.get_operation_status("op-404")
    assert ei.value.code == "OPERATION_NOT_FOUND"

@pytest.mark.asyncio
async def test_expected_interface_for_builtin_wallet():
    w = await create_wallet("template", {"private_key": KEY}, expected_interface="IEVMWallet")
    assert await w.get_accounts()
