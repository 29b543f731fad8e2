import logging
from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account

from stake_lend.solana_rpc.actions.stake_program import delegate_instruction, initialize_instruction
from stake_lend.solana_rpc.consts import STAKE_ACCOUNT_SPACE, STAKE_PROGRAM_ID
from stake_lend.solana_rpc.transport import SolanaRpcTransport

logger = logging.getLogger("stake_lend.rpc.actions")


@dataclass
class CreateStakeParams:
    """Data class to store stake account creation parameters."""

    vote_account: Pubkey  # Vote account of the validator to delegate to
    lamports: int  # Amount to stake, excluding the rent-exempt reserve


async def create_stake_account(transport: SolanaRpcTransport, params: CreateStakeParams):
    """
    Creates a new stake account funded by the configured wallet and delegates it to a validator.

    The wallet is both staker and withdrawer and no lockup is set. Account creation, initialization
    and delegation happen in a single transaction.

    Args:
        transport (SolanaRpcTransport): Transport holding the funding and authority keypair.
        params (CreateStakeParams): Validator vote account and amount to stake in lamports.

    Returns:
        dict: Contains the transaction signature and the new stake account address.
    """

    if params.lamports <= 0:
        raise ValueError(f"Stake amount must be positive, got {params.lamports}")

    authority = transport.payer.pubkey()
    stake_keypair = Keypair()

    # The account must hold the rent-exempt reserve on top of the delegated amount
    minimum_rent = await transport.get_minimum_balance_for_rent_exemption(STAKE_ACCOUNT_SPACE)
    total_lamports = minimum_rent + params.lamports

    instructions = [
        create_account(
            CreateAccountParams(
                from_pubkey=authority,
                to_pubkey=stake_keypair.pubkey(),
                lamports=total_lamports,
                space=STAKE_ACCOUNT_SPACE,
                owner=STAKE_PROGRAM_ID,
            )
        ),
        initialize_instruction(stake_keypair.pubkey(), staker=authority, withdrawer=authority),
        delegate_instruction(stake_keypair.pubkey(), params.vote_account, authority),
    ]

    signature = await transport.submit_transaction(instructions, signers=[stake_keypair])
    await transport.confirm(signature)
    logger.info(f"Stake account {stake_keypair.pubkey()} created and delegated: {signature}")

    return {
        "signature": signature,
        "stake_account": stake_keypair.pubkey(),
    }
