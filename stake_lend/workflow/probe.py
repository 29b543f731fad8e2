import logging

from solders.pubkey import Pubkey

from stake_lend.exceptions import UnexpectedStateError
from stake_lend.solana_rpc.consts import SYSVAR_CLOCK_ID, U64_MAX
from stake_lend.solana_rpc.types import StakeAccountKind, StakeState
from stake_lend.solana_rpc.utils.stake_layout import Delegation, decode_clock_epoch, decode_stake_account
from stake_lend.workflow.interfaces import LedgerTransport

logger = logging.getLogger("stake_lend.workflow.probe")


def delegation_state(delegation: Delegation, current_epoch: int) -> StakeState:
    """
    Activation state of a delegation at ``current_epoch``.

    Activation and deactivation take effect at the epoch boundary after they were requested.
    Rate-limited warmup/cooldown of very large stakes spanning several epochs is not modelled;
    the stake program itself rejects a premature withdrawal.
    """
    activation_epoch = delegation.activation_epoch
    deactivation_epoch = delegation.deactivation_epoch

    # u64::MAX activation marks bootstrap stake, which is effective from genesis
    if activation_epoch != U64_MAX:
        if activation_epoch == deactivation_epoch:
            # Deactivated in the epoch it was activated, it never became effective
            return StakeState.INACTIVE
        if current_epoch <= activation_epoch:
            return StakeState.ACTIVATING

    if deactivation_epoch == U64_MAX:
        return StakeState.ACTIVE

    if current_epoch <= deactivation_epoch:
        return StakeState.DEACTIVATING
    return StakeState.INACTIVE


class StakeStatusProbe:
    """Reads the current activation state of stake accounts. Never caches."""

    def __init__(self, transport: LedgerTransport):
        self.transport = transport

    async def current_epoch(self) -> int:
        return decode_clock_epoch(await self.transport.read_account(SYSVAR_CLOCK_ID))

    async def status(self, stake_account: Pubkey) -> StakeState:
        """
        Fetch the activation state of a stake account.

        Performs one read of the stake account (plus one of the Clock sysvar for delegated
        accounts) and no retries.

        Raises:
            TransientReadError: If a ledger read failed
            AccountNotFoundError: If the stake account does not exist
            UnexpectedStateError: If the account is not a user stake account
        """
        account = decode_stake_account(await self.transport.read_account(stake_account))

        if account.kind is StakeAccountKind.Uninitialized:
            state = StakeState.UNINITIALIZED
        elif account.kind is StakeAccountKind.Initialized:
            state = StakeState.INITIALIZED
        elif account.kind is StakeAccountKind.Stake and account.delegation is not None:
            state = delegation_state(account.delegation, await self.current_epoch())
        else:
            raise UnexpectedStateError(f"Account {stake_account} is a {account.kind.name} account, not a user stake")

        logger.debug(f"Stake account {stake_account} is {state.value}")
        return state
