import pytest
from m3s.config import Settings, reset_settings
from m3s.registry import REGISTRY

@pytest.fixture(autouse=True)
def _isolated_core():
    REGISTRY.reset()
    reset_settings(Settings())
    yield
    REGISTRY.reset()
    reset_settings(None)
