"""
Data models for the stake-to-lend workflow.
"""

from typing import Optional

from dataclasses import dataclass
from enum import Enum

from solders.pubkey import Pubkey

from stake_lend.exceptions import StakeLendError
from stake_lend.solana_rpc.consts import LAMPORTS_PER_SOL


class LifecycleState(str, Enum):
    """Controller-side view of where a stake account is in the unstake lifecycle"""

    ACTIVE = "active"
    DEACTIVATION_REQUESTED = "deactivation_requested"
    DEACTIVATING = "deactivating"
    INACTIVE = "inactive"
    WITHDRAWN = "withdrawn"


class Stage(str, Enum):
    """Point a workflow run stopped at. Every stage before it completed."""

    PROBE = "probe"
    DEACTIVATION = "deactivation"
    COOLDOWN = "cooldown"
    WITHDRAWAL = "withdrawal"
    POSITION = "position"
    DEPOSIT = "deposit"
    COMPLETED = "completed"

    @property
    def description(self) -> str:
        return _STAGE_DESCRIPTIONS[self]


_STAGE_DESCRIPTIONS = {
    Stage.PROBE: "stake status not yet known",
    Stage.DEACTIVATION: "deactivation requested but not confirmed",
    Stage.COOLDOWN: "stake deactivating, waiting for it to become inactive",
    Stage.WITHDRAWAL: "stake inactive but not withdrawn",
    Stage.POSITION: "stake withdrawn, lending position not created",
    Stage.DEPOSIT: "stake withdrawn but deposit not confirmed",
    Stage.COMPLETED: "funds deposited into the lending position",
}


@dataclass(frozen=True)
class LendingPosition:
    """The authority's account in the lending protocol."""

    address: Pubkey
    authority: Pubkey
    asset: str
    creation_signature: Optional[str] = None  # Set only when the position was created in this run


@dataclass(frozen=True)
class WithdrawalReceipt:
    signature: str
    amount: int  # FreedAmount, lamports


@dataclass(frozen=True)
class DepositReceipt:
    signature: str
    position: LendingPosition
    amount: int


@dataclass
class WorkflowResult:
    """
    Outcome of one stake-to-lend run.

    Signatures are accumulated as stages complete, so a failed run still reports exactly
    how far the funds progressed.
    """

    stake_account: Pubkey
    asset: str
    stage: Stage = Stage.PROBE
    deactivation_signature: Optional[str] = None
    withdrawal_signature: Optional[str] = None
    position_creation_signature: Optional[str] = None
    deposit_signature: Optional[str] = None
    amount: Optional[int] = None
    error: Optional[StakeLendError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.stage is Stage.COMPLETED

    @property
    def signatures(self) -> list[str]:
        """Signatures obtained so far, in the order the stages ran."""
        ordered = [
            self.deactivation_signature,
            self.withdrawal_signature,
            self.position_creation_signature,
            self.deposit_signature,
        ]
        return [signature for signature in ordered if signature is not None]

    @property
    def funds_withdrawn(self) -> bool:
        """True once the stake left the validator and sits in the authority's wallet or the lending position."""
        return self.withdrawal_signature is not None

    def summary(self) -> str:
        amount = f"{self.amount / LAMPORTS_PER_SOL} {self.asset}" if self.amount is not None else "n/a"
        if self.succeeded:
            return (
                f"Unstaked {self.stake_account} and lent {amount}: deactivation={self.deactivation_signature}, "
                f"withdrawal={self.withdrawal_signature}, deposit={self.deposit_signature}"
            )
        return (
            f"Stopped at {self.stage.value} ({self.stage.description}) for {self.stake_account}, amount {amount}, "
            f"signatures {self.signatures}: {type(self.error).__name__}: {self.error}"
        )
