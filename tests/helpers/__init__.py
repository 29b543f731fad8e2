"""Test helpers for the stake-to-lend SDK."""

from tests.helpers.builders import RENT_EXEMPT_RESERVE, clock_data, stake_account_data
from tests.helpers.fakes import (
    FakeBuilder,
    FakeClock,
    FakeLending,
    FakeTransport,
    ScriptedProbe,
)

__all__ = [
    "RENT_EXEMPT_RESERVE",
    "clock_data",
    "stake_account_data",
    "FakeBuilder",
    "FakeClock",
    "FakeLending",
    "FakeTransport",
    "ScriptedProbe",
]
