"""Tests for LendingHandoff."""

import pytest

from stake_lend.exceptions import PositionCreationError, SubmissionError
from stake_lend.workflow.handoff import LendingHandoff

pytestmark = pytest.mark.workflow


@pytest.mark.asyncio
async def test_deposit_creates_missing_position(lending, authority):
    handoff = LendingHandoff(lending)

    receipt = await handoff.deposit(authority, "SOL", 1_500_000_000)

    assert receipt.signature == "sig-deposit-1"
    assert receipt.amount == 1_500_000_000
    assert receipt.position.creation_signature == "sig-create-position-1"
    assert receipt.position.authority == authority
    assert lending.deposits == [(receipt.position, 1_500_000_000)]


@pytest.mark.asyncio
async def test_deposit_into_existing_position(lending, authority):
    position = lending.add_position(authority, "SOL")
    handoff = LendingHandoff(lending)

    receipt = await handoff.deposit(authority, "SOL", 42)

    assert receipt.position == position
    assert lending.created == []


@pytest.mark.asyncio
async def test_position_is_created_once(lending, authority):
    handoff = LendingHandoff(lending)

    first = await handoff.ensure_position(authority, "SOL")
    second = await handoff.ensure_position(authority, "SOL")

    assert first.address == second.address
    assert len(lending.created) == 1
    assert second.creation_signature is None


@pytest.mark.asyncio
async def test_creation_failure_is_reported_separately(lending, authority):
    cause = SubmissionError("Transaction simulation failed")
    lending.create_error = cause
    handoff = LendingHandoff(lending)

    with pytest.raises(PositionCreationError) as exc_info:
        await handoff.deposit(authority, "SOL", 1_000)

    assert exc_info.value.__cause__ is cause
    assert lending.deposits == []


@pytest.mark.asyncio
async def test_deposit_failure_propagates_unchanged(lending, authority):
    lending.deposit_error = SubmissionError("Deposit rejected")
    handoff = LendingHandoff(lending)

    with pytest.raises(SubmissionError, match="Deposit rejected"):
        await handoff.deposit(authority, "SOL", 1_000)

    # The position itself was created and survives the failed deposit
    assert len(lending.created) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5])
async def test_non_positive_amount_is_rejected(lending, authority, amount):
    handoff = LendingHandoff(lending)

    with pytest.raises(ValueError):
        await handoff.deposit(authority, "SOL", amount)

    assert lending.created == []
