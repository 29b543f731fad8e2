"""Tests for StakeLifecycleController."""

import asyncio

import pytest

from stake_lend.exceptions import (
    DeactivationTimeoutError,
    SubmissionError,
    TransientReadError,
    UnexpectedStateError,
    WorkflowCancelledError,
)
from stake_lend.solana_rpc.types import StakeState
from stake_lend.workflow.models import LifecycleState
from tests.conftest import STAKE_BALANCE

pytestmark = pytest.mark.workflow


# ============================================================================
# request_deactivation
# ============================================================================


@pytest.mark.asyncio
async def test_request_deactivation_is_idempotent(make_controller, transport, stake_account):
    controller = make_controller(StakeState.ACTIVE)

    first = await controller.request_deactivation(stake_account)
    second = await controller.request_deactivation(stake_account)

    assert first == second == "sig-deactivate-1"
    assert transport.submitted_labels() == ["deactivate"]
    assert controller.probe.calls == 1
    assert controller.lifecycle_state(stake_account) is LifecycleState.DEACTIVATION_REQUESTED


@pytest.mark.asyncio
@pytest.mark.parametrize("state", [StakeState.DEACTIVATING, StakeState.INACTIVE, StakeState.ACTIVATING])
async def test_request_deactivation_requires_active_stake(make_controller, transport, stake_account, state):
    controller = make_controller(state)

    with pytest.raises(UnexpectedStateError) as exc_info:
        await controller.request_deactivation(stake_account)

    assert exc_info.value.state is state
    assert transport.submitted == []


@pytest.mark.asyncio
async def test_rejected_deactivation_leaves_stake_active(make_controller, transport, stake_account):
    controller = make_controller(StakeState.ACTIVE)
    transport.submit_errors["deactivate"] = SubmissionError("Blockhash not found")

    with pytest.raises(SubmissionError, match="Blockhash not found"):
        await controller.request_deactivation(stake_account)

    assert controller.lifecycle_state(stake_account) is LifecycleState.ACTIVE

    # Nothing was recorded as outstanding, so the caller can retry the same stage
    del transport.submit_errors["deactivate"]
    assert await controller.request_deactivation(stake_account) == "sig-deactivate-1"


@pytest.mark.asyncio
async def test_unconfirmed_deactivation_is_not_outstanding(make_controller, transport, stake_account):
    controller = make_controller(StakeState.ACTIVE)
    transport.confirm_errors["deactivate"] = SubmissionError("not confirmed within 60s")

    with pytest.raises(SubmissionError):
        await controller.request_deactivation(stake_account)

    assert controller.lifecycle_state(stake_account) is LifecycleState.ACTIVE
    assert transport.confirmed == []


@pytest.mark.asyncio
async def test_overlapping_deactivation_requests_submit_once(make_controller, transport, stake_account):
    controller = make_controller(StakeState.ACTIVE)

    first, second = await asyncio.gather(
        controller.request_deactivation(stake_account),
        controller.request_deactivation(stake_account),
    )

    assert first == second == "sig-deactivate-1"
    assert transport.submitted_labels() == ["deactivate"]
    assert controller.probe.calls == 1
    assert controller.lifecycle_state(stake_account) is LifecycleState.DEACTIVATION_REQUESTED


@pytest.mark.asyncio
async def test_overlapping_deactivation_requests_share_failure(make_controller, transport, stake_account):
    controller = make_controller(StakeState.ACTIVE)
    transport.confirm_errors["deactivate"] = SubmissionError("not confirmed within 60s")

    results = await asyncio.gather(
        controller.request_deactivation(stake_account),
        controller.request_deactivation(stake_account),
        return_exceptions=True,
    )

    assert [type(result) for result in results] == [SubmissionError, SubmissionError]
    assert transport.submitted_labels() == ["deactivate"]
    assert controller.lifecycle_state(stake_account) is LifecycleState.ACTIVE

    # The failed request no longer blocks a retry
    del transport.confirm_errors["deactivate"]
    assert await controller.request_deactivation(stake_account) == "sig-deactivate-2"
    assert transport.submitted_labels() == ["deactivate", "deactivate"]


# ============================================================================
# await_inactive
# ============================================================================


@pytest.mark.asyncio
async def test_await_inactive_polls_until_inactive(make_controller, stake_account, clock):
    controller = make_controller(StakeState.DEACTIVATING, StakeState.DEACTIVATING, StakeState.INACTIVE)

    state = await controller.await_inactive(stake_account, poll_interval=5.0, timeout=60.0)

    assert state is StakeState.INACTIVE
    assert controller.probe.calls == 3
    assert clock.sleeps == [5.0, 5.0]
    assert controller.lifecycle_state(stake_account) is LifecycleState.INACTIVE


@pytest.mark.asyncio
async def test_await_inactive_keeps_waiting_through_unexpected_but_valid_states(make_controller, stake_account):
    # Stake re-delegated by someone else between polls
    controller = make_controller(StakeState.DEACTIVATING, StakeState.ACTIVE, StakeState.ACTIVATING, StakeState.INACTIVE)

    assert await controller.await_inactive(stake_account, poll_interval=1.0, timeout=60.0) is StakeState.INACTIVE
    assert controller.probe.calls == 4


@pytest.mark.asyncio
async def test_await_inactive_timeout_carries_final_poll(make_controller, stake_account, clock):
    controller = make_controller(StakeState.DEACTIVATING, StakeState.ACTIVE)

    with pytest.raises(DeactivationTimeoutError) as exc_info:
        await controller.await_inactive(stake_account, poll_interval=5.0, timeout=10.0)

    # Polls at t=0, 5 and 10; the last one answered "active"
    assert controller.probe.calls == 3
    assert exc_info.value.last_state is StakeState.ACTIVE
    assert exc_info.value.timeout == 10.0
    assert exc_info.value.final_read_failed is False
    assert clock.now == 10.0


@pytest.mark.asyncio
async def test_await_inactive_timeout_after_failed_final_read(make_controller, stake_account):
    controller = make_controller(
        StakeState.DEACTIVATING,
        TransientReadError("getAccountInfo failed with HTTP 503"),
        max_read_errors=5,
    )

    with pytest.raises(DeactivationTimeoutError, match="final status read failed") as exc_info:
        await controller.await_inactive(stake_account, poll_interval=5.0, timeout=10.0)

    # Polls at t=5 and t=10 failed; the state comes from the read at t=0
    assert controller.probe.calls == 3
    assert exc_info.value.final_read_failed is True
    assert exc_info.value.last_state is StakeState.DEACTIVATING


@pytest.mark.asyncio
async def test_await_inactive_can_be_reinvoked_after_timeout(make_controller, stake_account):
    controller = make_controller(StakeState.DEACTIVATING, StakeState.DEACTIVATING, StakeState.INACTIVE)

    with pytest.raises(DeactivationTimeoutError):
        await controller.await_inactive(stake_account, poll_interval=5.0, timeout=5.0)

    assert await controller.await_inactive(stake_account, poll_interval=5.0, timeout=5.0) is StakeState.INACTIVE


@pytest.mark.asyncio
@pytest.mark.parametrize("state", [StakeState.UNINITIALIZED, StakeState.INITIALIZED])
async def test_await_inactive_fails_on_structurally_wrong_state(make_controller, stake_account, state):
    controller = make_controller(StakeState.DEACTIVATING, state)

    with pytest.raises(UnexpectedStateError) as exc_info:
        await controller.await_inactive(stake_account, poll_interval=1.0, timeout=60.0)

    assert exc_info.value.state is state


@pytest.mark.asyncio
async def test_await_inactive_tolerates_transient_read_errors(make_controller, stake_account):
    controller = make_controller(
        TransientReadError("getAccountInfo failed with HTTP 503"),
        TransientReadError("getAccountInfo failed with HTTP 503"),
        StakeState.DEACTIVATING,
        TransientReadError("getAccountInfo failed with HTTP 429"),
        StakeState.INACTIVE,
        max_read_errors=2,
    )

    assert await controller.await_inactive(stake_account, poll_interval=1.0, timeout=60.0) is StakeState.INACTIVE
    assert controller.probe.calls == 5


@pytest.mark.asyncio
async def test_await_inactive_gives_up_after_consecutive_read_errors(make_controller, stake_account):
    controller = make_controller(TransientReadError("getAccountInfo request failed"), max_read_errors=2)

    with pytest.raises(TransientReadError):
        await controller.await_inactive(stake_account, poll_interval=1.0, timeout=60.0)

    assert controller.probe.calls == 3


@pytest.mark.asyncio
async def test_await_inactive_cancelled_before_first_poll(make_controller, stake_account):
    controller = make_controller(StakeState.DEACTIVATING)
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(WorkflowCancelledError) as exc_info:
        await controller.await_inactive(stake_account, poll_interval=1.0, timeout=60.0, cancel_event=cancel_event)

    assert exc_info.value.last_state is None
    assert controller.probe.calls == 0


# ============================================================================
# withdraw
# ============================================================================


@pytest.mark.asyncio
async def test_withdraw_requires_observed_inactive(make_controller, transport, stake_account):
    controller = make_controller(StakeState.ACTIVE)
    await controller.observe(stake_account)

    with pytest.raises(UnexpectedStateError):
        await controller.withdraw(stake_account)

    assert transport.balance_reads == []
    assert transport.submitted == []


@pytest.mark.asyncio
async def test_withdraw_unknown_account_is_refused(make_controller, transport, stake_account):
    controller = make_controller(StakeState.INACTIVE)

    with pytest.raises(UnexpectedStateError, match="has not been observed inactive"):
        await controller.withdraw(stake_account)

    assert transport.balance_reads == []


@pytest.mark.asyncio
async def test_withdraw_transfers_full_balance_to_authority(make_controller, transport, authority, stake_account):
    controller = make_controller(StakeState.INACTIVE)
    await controller.await_inactive(stake_account, poll_interval=1.0, timeout=1.0)

    receipt = await controller.withdraw(stake_account)

    assert receipt.signature == "sig-withdraw-1"
    assert receipt.amount == STAKE_BALANCE
    assert transport.submitted == [[("withdraw", stake_account, authority, authority, STAKE_BALANCE)]]
    assert controller.lifecycle_state(stake_account) is LifecycleState.WITHDRAWN


@pytest.mark.asyncio
async def test_failed_withdraw_can_be_retried(make_controller, transport, stake_account):
    controller = make_controller(StakeState.INACTIVE)
    await controller.observe(stake_account)
    transport.confirm_errors["withdraw"] = SubmissionError("Transaction failed: InsufficientFunds")

    with pytest.raises(SubmissionError):
        await controller.withdraw(stake_account)
    assert controller.lifecycle_state(stake_account) is LifecycleState.INACTIVE

    del transport.confirm_errors["withdraw"]
    receipt = await controller.withdraw(stake_account)
    assert receipt.amount == STAKE_BALANCE


@pytest.mark.asyncio
async def test_withdraw_empty_account(make_controller, transport, stake_account):
    transport.balances[stake_account] = 0
    controller = make_controller(StakeState.INACTIVE)
    await controller.observe(stake_account)

    with pytest.raises(UnexpectedStateError, match="no balance"):
        await controller.withdraw(stake_account)

    assert transport.submitted == []
