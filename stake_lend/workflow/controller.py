"""
Stake lifecycle controller.

Drives a stake account through deactivate -> wait until inactive -> withdraw, using
StakeStatusProbe as its oracle. Lifecycle state per account only moves to INACTIVE
from a probe observation, and withdraw refuses to run from any other state, so the
freed amount can never be read while the stake is still delegated.
"""

from typing import Optional

import asyncio
import logging

from solders.pubkey import Pubkey

from stake_lend.exceptions import (
    DeactivationTimeoutError,
    TransientReadError,
    UnexpectedStateError,
    WorkflowCancelledError,
)
from stake_lend.solana_rpc.consts import DEFAULT_DEACTIVATION_TIMEOUT_SECONDS, DEFAULT_POLL_INTERVAL_SECONDS
from stake_lend.solana_rpc.types import StakeState
from stake_lend.workflow.interfaces import AsyncioClock, Clock, LedgerTransport, StakeActionBuilder
from stake_lend.workflow.models import LifecycleState, WithdrawalReceipt
from stake_lend.workflow.probe import StakeStatusProbe
from stake_lend.workflow.waiting import WaitStatus, wait_for

DEFAULT_MAX_READ_ERRORS = 3

# States that can never lead to "inactive" once a deactivation was requested
_STRUCTURALLY_WRONG_STATES = (StakeState.UNINITIALIZED, StakeState.INITIALIZED)


class StakeLifecycleController:
    """State machine driving stake accounts from active to withdrawn."""

    def __init__(
        self,
        probe: StakeStatusProbe,
        transport: LedgerTransport,
        builder: StakeActionBuilder,
        authority: Pubkey,
        clock: Optional[Clock] = None,
        max_read_errors: int = DEFAULT_MAX_READ_ERRORS,
    ):
        """
        Args:
            probe: Oracle for the on-ledger stake state
            transport: Submits and confirms transactions, reads balances
            builder: Produces deactivate and withdraw transactions
            authority: Stake and withdraw authority, also the withdrawal recipient
            clock: Time source for the cooldown wait
            max_read_errors: Consecutive transient probe failures tolerated while waiting
        """
        self.probe = probe
        self.transport = transport
        self.builder = builder
        self.authority = authority
        self.clock = clock or AsyncioClock()
        self.max_read_errors = max_read_errors

        self._states: dict[Pubkey, LifecycleState] = {}
        # Confirmed deactivation signature per account, until the account is observed inactive
        self._outstanding: dict[Pubkey, str] = {}
        # Deactivation submitted but not yet confirmed, shared with overlapping callers
        self._in_flight: dict[Pubkey, asyncio.Future] = {}

        self.logger = logging.getLogger("stake_lend.workflow.controller")

    def lifecycle_state(self, stake_account: Pubkey) -> Optional[LifecycleState]:
        return self._states.get(stake_account)

    def _record(self, stake_account: Pubkey, state: StakeState) -> None:
        if state is StakeState.INACTIVE:
            self._states[stake_account] = LifecycleState.INACTIVE
            self._outstanding.pop(stake_account, None)
        elif state is StakeState.DEACTIVATING:
            self._states[stake_account] = LifecycleState.DEACTIVATING
        elif state is StakeState.ACTIVE:
            if stake_account in self._outstanding:
                self._states[stake_account] = LifecycleState.DEACTIVATION_REQUESTED
            else:
                self._states[stake_account] = LifecycleState.ACTIVE
        else:
            self._states.pop(stake_account, None)

    async def observe(self, stake_account: Pubkey) -> StakeState:
        """Probe the stake account and record what was seen."""
        state = await self.probe.status(stake_account)
        self._record(stake_account, state)
        return state

    async def request_deactivation(self, stake_account: Pubkey) -> str:
        """
        Submit and confirm the deactivation of an active stake account.

        Calling it again while the request is outstanding returns the first signature
        without submitting anything. A call made while another one for the same account
        is still in flight waits for that one and shares its outcome.

        Returns:
            str: Signature of the confirmed deactivation transaction

        Raises:
            UnexpectedStateError: If the stake account is not active
            SubmissionError: If the transaction was rejected or not confirmed; state stays ACTIVE
        """
        if stake_account in self._outstanding:
            signature = self._outstanding[stake_account]
            self.logger.info(f"Deactivation of {stake_account} already requested ({signature}), not resubmitting")
            return signature

        in_flight = self._in_flight.get(stake_account)
        if in_flight is not None:
            self.logger.info(f"Deactivation of {stake_account} already in flight, waiting for it")
            return await asyncio.shield(in_flight)

        request = asyncio.get_running_loop().create_future()
        self._in_flight[stake_account] = request
        try:
            signature = await self._deactivate(stake_account)
        except asyncio.CancelledError:
            request.cancel()
            raise
        except Exception as e:
            request.set_exception(e)
            # Mark the exception retrieved; concurrent waiters still receive it
            request.exception()
            raise
        else:
            request.set_result(signature)
            return signature
        finally:
            del self._in_flight[stake_account]

    async def _deactivate(self, stake_account: Pubkey) -> str:
        state = await self.observe(stake_account)
        if state is not StakeState.ACTIVE:
            raise UnexpectedStateError(
                f"Cannot deactivate stake account {stake_account} in state {state.value}", state=state
            )

        self.logger.info(f"Deactivating stake account {stake_account}...")
        instructions = self.builder.deactivate(stake_account, self.authority)
        signature = await self.transport.submit_transaction(instructions)
        await self.transport.confirm(signature)

        self._outstanding[stake_account] = signature
        self._states[stake_account] = LifecycleState.DEACTIVATION_REQUESTED
        self.logger.info(f"Stake deactivation initiated. Signature: {signature}")
        return signature

    async def await_inactive(
        self,
        stake_account: Pubkey,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        timeout: float = DEFAULT_DEACTIVATION_TIMEOUT_SECONDS,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StakeState:
        """
        Suspend until the stake account is inactive.

        Args:
            stake_account: Stake account being cooled down
            poll_interval: Fixed seconds between probes
            timeout: Seconds to wait before giving up
            cancel_event: Setting it stops the wait; the on-ledger deactivation continues regardless

        Returns:
            StakeState: Always StakeState.INACTIVE

        Raises:
            DeactivationTimeoutError: Timed out; carries the state seen on the final poll
            WorkflowCancelledError: The cancel event fired
            UnexpectedStateError: The account became uninitialized, undelegated or disappeared
            TransientReadError: More than ``max_read_errors`` consecutive probe failures
        """
        last_state: Optional[StakeState] = None
        read_errors = 0

        async def poll() -> Optional[StakeState]:
            nonlocal last_state, read_errors
            try:
                state = await self.probe.status(stake_account)
            except TransientReadError as e:
                read_errors += 1
                if read_errors > self.max_read_errors:
                    raise
                self.logger.warning(
                    f"Stake status read failed ({read_errors}/{self.max_read_errors}), will poll again: {e}"
                )
                return None

            read_errors = 0
            if state in _STRUCTURALLY_WRONG_STATES:
                raise UnexpectedStateError(
                    f"Stake account {stake_account} became {state.value} while waiting for deactivation",
                    state=state,
                )

            self._record(stake_account, state)
            last_state = state
            if state is not StakeState.INACTIVE:
                self.logger.info(f"Current stake status: {state.value}")
            return state

        self.logger.info(f"Waiting for stake account {stake_account} to deactivate...")
        outcome = await wait_for(
            poll,
            lambda state: state is StakeState.INACTIVE,
            interval=poll_interval,
            timeout=timeout,
            clock=self.clock,
            cancel_event=cancel_event,
        )

        if outcome.status is WaitStatus.READY:
            self.logger.info(f"Stake account {stake_account} is inactive after {outcome.attempts} polls")
            return StakeState.INACTIVE

        observed = last_state.value if last_state is not None else "unknown"
        if outcome.status is WaitStatus.TIMED_OUT:
            # poll() returns None only for a tolerated read failure
            final_read_failed = outcome.attempts > 0 and outcome.value is None
            raise DeactivationTimeoutError(
                f"Stake account {stake_account} still {observed} after {timeout}s"
                + (" (final status read failed)" if final_read_failed else ""),
                last_state=last_state,
                timeout=timeout,
                final_read_failed=final_read_failed,
            )

        self.logger.warning(
            f"Wait for {stake_account} cancelled while {observed}; "
            "a confirmed deactivation keeps progressing on-ledger"
        )
        raise WorkflowCancelledError(f"Wait for stake account {stake_account} cancelled", last_state=last_state)

    async def withdraw(self, stake_account: Pubkey) -> WithdrawalReceipt:
        """
        Withdraw the full balance of an inactive stake account to the authority.

        Returns:
            WithdrawalReceipt: Signature and the freed amount in lamports

        Raises:
            UnexpectedStateError: If the account was not observed inactive or holds nothing
            SubmissionError: If the transaction was rejected or not confirmed; state stays INACTIVE
        """
        state = self._states.get(stake_account)
        if state is not LifecycleState.INACTIVE:
            raise UnexpectedStateError(
                f"Stake account {stake_account} has not been observed inactive "
                f"(lifecycle state: {state.value if state else 'unknown'})"
            )

        # Balance read and transaction build happen back to back, no await in between
        lamports = await self.transport.get_balance(stake_account)
        if lamports <= 0:
            raise UnexpectedStateError(f"Stake account {stake_account} has no balance to withdraw")
        instructions = self.builder.withdraw(stake_account, self.authority, self.authority, lamports)

        self.logger.info(f"Withdrawing {lamports} lamports from deactivated stake {stake_account}...")
        signature = await self.transport.submit_transaction(instructions)
        await self.transport.confirm(signature)

        self._states[stake_account] = LifecycleState.WITHDRAWN
        self.logger.info(f"Stake withdrawn. Signature: {signature}")
        return WithdrawalReceipt(signature=signature, amount=lamports)
