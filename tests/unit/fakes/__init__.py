"""Test fake implementations for dependency injection testing."""

from tests.unit.fakes.fake_inventory import FakeInventory, InMemoryIdentityCache
from tests.unit.fakes.fake_services import FakeKeyProbe, FakeLauncher, ScriptedPrompt

__all__ = [
    "FakeInventory",
    "FakeKeyProbe",
    "FakeLauncher",
    "InMemoryIdentityCache",
    "ScriptedPrompt",
]
