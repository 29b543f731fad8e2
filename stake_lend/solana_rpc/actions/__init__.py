from stake_lend.solana_rpc.actions.create_stake import CreateStakeParams, create_stake_account
from stake_lend.solana_rpc.actions.stake_program import (
    StakeProgramBuilder,
    deactivate_instruction,
    delegate_instruction,
    initialize_instruction,
    withdraw_instruction,
)

__all__ = [
    "CreateStakeParams",
    "create_stake_account",
    "StakeProgramBuilder",
    "deactivate_instruction",
    "delegate_instruction",
    "initialize_instruction",
    "withdraw_instruction",
]
