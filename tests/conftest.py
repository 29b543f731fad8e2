"""
Pytest fixtures for the stake-to-lend SDK tests.

The workflow is exercised against in-memory collaborators (see tests/helpers/fakes.py);
the JSON-RPC transport against httpx.MockTransport. No test talks to a real cluster.
"""

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from stake_lend.solana_rpc.config import BankConfig, StakeLendConfig
from stake_lend.solana_rpc.consts import LAMPORTS_PER_SOL, NATIVE_MINT
from stake_lend.workflow.controller import StakeLifecycleController
from stake_lend.workflow.handoff import LendingHandoff
from stake_lend.workflow.orchestrator import WorkflowOptions, WorkflowOrchestrator
from tests.helpers import FakeBuilder, FakeClock, FakeLending, FakeTransport, ScriptedProbe

STAKE_BALANCE = 2 * LAMPORTS_PER_SOL

MARGINFI_PROGRAM_ID = Pubkey.from_string("MFv2hWf31Z9kbCa1snEPYctwafyhdvnV7FZnsebVacA")
MARGINFI_GROUP = Pubkey.from_string("4qp6Fx6tnZkY5Wropq9wUYgtFxXKwE6viZxFHg3rdAG8")
MARGINFI_SOL_BANK = Pubkey.from_string("CCKtUs6Cgwo4aaQUmBPmyoApH2gUDErxNZCAntD6LYGh")


# ============================================================================
# Accounts
# ============================================================================


@pytest.fixture
def authority_keypair() -> Keypair:
    return Keypair()


@pytest.fixture
def authority(authority_keypair) -> Pubkey:
    return authority_keypair.pubkey()


@pytest.fixture
def stake_account() -> Pubkey:
    return Keypair().pubkey()


# ============================================================================
# Configuration
# ============================================================================


@pytest.fixture
def config(authority_keypair, stake_account) -> StakeLendConfig:
    return StakeLendConfig(
        cluster="mainnet-beta",
        rpc_url="https://rpc.test",
        keypair=authority_keypair,
        stake_account=stake_account,
        confirm_timeout=1.0,
        marginfi_program_id=MARGINFI_PROGRAM_ID,
        marginfi_group=MARGINFI_GROUP,
        marginfi_banks={"SOL": BankConfig(address=MARGINFI_SOL_BANK, mint=NATIVE_MINT)},
    )


# ============================================================================
# Workflow collaborators
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport(stake_account) -> FakeTransport:
    return FakeTransport(balances={stake_account: STAKE_BALANCE})


@pytest.fixture
def builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture
def lending() -> FakeLending:
    return FakeLending()


@pytest.fixture
def make_controller(transport, builder, authority, clock):
    """Factory building a controller around a scripted probe."""

    def _make(*script, on_poll=None, max_read_errors: int = 3) -> StakeLifecycleController:
        return StakeLifecycleController(
            probe=ScriptedProbe(*script, on_poll=on_poll),
            transport=transport,
            builder=builder,
            authority=authority,
            clock=clock,
            max_read_errors=max_read_errors,
        )

    return _make


@pytest.fixture
def make_orchestrator(make_controller, lending):
    """Factory building an orchestrator whose probe answers with the given script."""

    def _make(*script, on_poll=None, poll_interval: float = 5.0, deactivation_timeout: float = 60.0):
        return WorkflowOrchestrator(
            make_controller(*script, on_poll=on_poll),
            LendingHandoff(lending),
            WorkflowOptions(poll_interval=poll_interval, deactivation_timeout=deactivation_timeout),
        )

    return _make
