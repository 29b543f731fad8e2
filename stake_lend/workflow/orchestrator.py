"""
Workflow orchestrator - entry point for unstaking a stake account and lending the proceeds.

On-chain steps are irreversible, so nothing is rolled back: a failed run reports the stage
it stopped at together with the signatures already obtained. Until the withdrawal it can be
resumed by running it again (a deactivating or inactive stake account skips the steps already
done). After it, the freed SOL is in the authority's wallet and only the deposit remains.
"""

from typing import Optional

import asyncio
import logging
from dataclasses import dataclass

from solders.pubkey import Pubkey

from stake_lend.exceptions import StakeLendError, UnexpectedStateError, WorkflowCancelledError
from stake_lend.solana_rpc.consts import DEFAULT_DEACTIVATION_TIMEOUT_SECONDS, DEFAULT_POLL_INTERVAL_SECONDS
from stake_lend.solana_rpc.types import StakeState
from stake_lend.workflow.controller import DEFAULT_MAX_READ_ERRORS, StakeLifecycleController
from stake_lend.workflow.handoff import LendingHandoff
from stake_lend.workflow.interfaces import Clock, LedgerTransport, LendingClient, StakeActionBuilder
from stake_lend.workflow.models import Stage, WorkflowResult
from stake_lend.workflow.probe import StakeStatusProbe


@dataclass
class WorkflowOptions:
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    deactivation_timeout: float = DEFAULT_DEACTIVATION_TIMEOUT_SECONDS
    max_read_errors: int = DEFAULT_MAX_READ_ERRORS


class WorkflowOrchestrator:
    """Sequences the stake lifecycle and the lending handoff for one stake account at a time."""

    def __init__(
        self,
        controller: StakeLifecycleController,
        handoff: LendingHandoff,
        options: Optional[WorkflowOptions] = None,
    ):
        self.controller = controller
        self.handoff = handoff
        self.options = options or WorkflowOptions()
        self.logger = logging.getLogger("stake_lend.workflow.orchestrator")

    @classmethod
    def from_collaborators(
        cls,
        transport: LedgerTransport,
        builder: StakeActionBuilder,
        lending: LendingClient,
        authority: Pubkey,
        options: Optional[WorkflowOptions] = None,
        clock: Optional[Clock] = None,
    ) -> "WorkflowOrchestrator":
        """Wire probe, controller and handoff around the given collaborators."""
        options = options or WorkflowOptions()
        controller = StakeLifecycleController(
            probe=StakeStatusProbe(transport),
            transport=transport,
            builder=builder,
            authority=authority,
            clock=clock,
            max_read_errors=options.max_read_errors,
        )
        return cls(controller, LendingHandoff(lending), options)

    @property
    def authority(self) -> Pubkey:
        return self.controller.authority

    async def run(
        self, stake_account: Pubkey, asset: str, cancel_event: Optional[asyncio.Event] = None
    ) -> WorkflowResult:
        """
        Deactivate, withdraw and lend the full balance of ``stake_account``.

        Args:
            stake_account: Stake account to unstake
            asset: Lending asset to deposit into (e.g. "SOL")
            cancel_event: Stops the cooldown wait when set. A deactivation already confirmed
                keeps progressing on-ledger; run again later to finish.

        Returns:
            WorkflowResult: Success with every signature, or the stage the run stopped at,
            the signatures obtained so far and the error
        """
        result = WorkflowResult(stake_account=stake_account, asset=asset)

        try:
            state = await self.controller.observe(stake_account)
            self.logger.info(f"Stake account {stake_account} is {state.value}")

            if state is StakeState.ACTIVE:
                result.stage = Stage.DEACTIVATION
                result.deactivation_signature = await self.controller.request_deactivation(stake_account)
            elif state not in (StakeState.DEACTIVATING, StakeState.INACTIVE):
                raise UnexpectedStateError(
                    f"Stake account {stake_account} is {state.value}, expected active, deactivating or inactive",
                    state=state,
                )

            result.stage = Stage.COOLDOWN
            if state is not StakeState.INACTIVE:
                await self.controller.await_inactive(
                    stake_account,
                    poll_interval=self.options.poll_interval,
                    timeout=self.options.deactivation_timeout,
                    cancel_event=cancel_event,
                )

            result.stage = Stage.WITHDRAWAL
            withdrawal = await self.controller.withdraw(stake_account)
            result.withdrawal_signature = withdrawal.signature
            result.amount = withdrawal.amount

            result.stage = Stage.POSITION
            position = await self.handoff.ensure_position(self.authority, asset)
            result.position_creation_signature = position.creation_signature

            result.stage = Stage.DEPOSIT
            result.deposit_signature = await self.handoff.deposit_into(position, withdrawal.amount)

            result.stage = Stage.COMPLETED
        except StakeLendError as e:
            result.error = e
            self.logger.error(f"Unstake and lend stopped at {result.stage.value} ({result.stage.description}): {e}")
            if isinstance(e, WorkflowCancelledError) and result.stage is Stage.COOLDOWN:
                self.logger.warning(f"Stake account {stake_account} remains deactivating on-ledger")
            return result

        self.logger.info(result.summary())
        return result
