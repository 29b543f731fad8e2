"""Custom exceptions for the stake-to-lend SDK."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from stake_lend.solana_rpc.types import StakeState


class StakeLendError(Exception):
    """Base exception for all stake-to-lend operations."""


class SolanaRpcError(StakeLendError):
    """Base exception for Solana JSON-RPC operations."""


class InvalidClusterError(SolanaRpcError):
    """Raised when an unknown Solana cluster is configured."""


class NetworkConfigurationError(SolanaRpcError):
    """Raised when network configuration is missing or invalid."""


class TransientReadError(SolanaRpcError):
    """Raised when a ledger read fails in a way the caller may retry."""


class SubmissionError(SolanaRpcError):
    """Raised when a transaction is rejected, fails on-chain or is not confirmed in time."""

    def __init__(self, message: str, signature: Optional[str] = None):
        super().__init__(message)
        self.signature = signature


class UnexpectedStateError(StakeLendError):
    """Raised when an account is in a state inconsistent with the workflow. Needs human inspection."""

    def __init__(self, message: str, state: Optional["StakeState"] = None):
        super().__init__(message)
        self.state = state


class AccountNotFoundError(UnexpectedStateError):
    """Raised when an account does not exist on the ledger."""


class AccountDecodeError(UnexpectedStateError):
    """Raised when account data cannot be decoded into the expected layout."""


class DeactivationTimeoutError(StakeLendError):
    """Raised when a stake account is still not inactive after the deactivation timeout.

    Recoverable: the stake keeps cooling down on-ledger and the wait may be re-invoked.

    ``last_state`` is the state returned by the final poll. When that poll failed with a
    tolerated transient read error, ``final_read_failed`` is True and ``last_state`` is the
    most recent state that was read successfully (None if no read succeeded).
    """

    def __init__(
        self,
        message: str,
        last_state: Optional["StakeState"],
        timeout: float,
        final_read_failed: bool = False,
    ):
        super().__init__(message)
        self.last_state = last_state
        self.timeout = timeout
        self.final_read_failed = final_read_failed


class WorkflowCancelledError(StakeLendError):
    """Raised when the wait for an inactive stake is cancelled by the caller."""

    def __init__(self, message: str, last_state: Optional["StakeState"]):
        super().__init__(message)
        self.last_state = last_state


class PositionCreationError(StakeLendError):
    """Raised when the lending position could not be created ahead of a deposit."""


class UnknownAssetError(StakeLendError):
    """Raised when no lending bank is configured for an asset."""
