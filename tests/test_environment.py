from m3s.config import Settings, reset_settings
from m3s.environment import current_environment, describe_mismatch, matches
from m3s.types import EnvironmentRequirements, RuntimeEnvironment as RE

SERVER_ONLY = EnvironmentRequirements(supported_environments={RE.SERVER}, limitations=["needs a shell"])

def test_no_declaration_is_universal():
    assert matches(None, RE.BROWSER)
    assert matches(None, RE.SERVER)

def test_membership():
    assert matches(SERVER_ONLY, RE.SERVER)
    assert not matches(SERVER_ONLY, RE.BROWSER)
    assert matches(SERVER_ONLY, "server")

def test_host_reporting_several_environments():
    assert matches(SERVER_ONLY, [RE.BROWSER, RE.SERVER])
    assert not matches(SERVER_ONLY, [RE.BROWSER])

def test_describe_mismatch_includes_limitations():
    msg = describe_mismatch("oz", SERVER_ONLY, RE.BROWSER)
    assert "requires server" in msg and "detected browser" in msg
    assert "needs a shell" in msg

def test_current_environment_is_injected_by_settings():
    assert current_environment() is RE.SERVER
    reset_settings(Settings(runtime_environment="browser"))
    assert current_environment() is RE.BROWSER

def test_future_environment_tags_are_plain_strings():
    edge = EnvironmentRequirements(supported_environments={RE.SERVER, "edge-worker"})
    assert edge.supported_environments == frozenset({"server", "edge-worker"})
    assert matches(edge, "edge-worker")
    assert matches(edge, RE.SERVER)
    assert not matches(edge, RE.BROWSER)
    assert "requires edge-worker, server" in describe_mismatch("x", edge, "react-native")
