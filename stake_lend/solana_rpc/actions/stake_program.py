"""Stake program instruction builders."""

import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from stake_lend.solana_rpc.consts import (
    STAKE_CONFIG_ID,
    STAKE_PROGRAM_ID,
    SYSVAR_CLOCK_ID,
    SYSVAR_RENT_ID,
    SYSVAR_STAKE_HISTORY_ID,
)
from stake_lend.solana_rpc.types import StakeInstructionType


def initialize_instruction(stake_account: Pubkey, staker: Pubkey, withdrawer: Pubkey) -> Instruction:
    """Initialize a stake account with the given authorities and no lockup."""
    custodian = Pubkey.default()
    data = (
        struct.pack("<I", StakeInstructionType.Initialize.value)
        + bytes(staker)
        + bytes(withdrawer)
        + struct.pack("<qQ", 0, 0)
        + bytes(custodian)
    )
    return Instruction(
        STAKE_PROGRAM_ID,
        data,
        [
            AccountMeta(stake_account, is_signer=False, is_writable=True),
            AccountMeta(SYSVAR_RENT_ID, is_signer=False, is_writable=False),
        ],
    )


def delegate_instruction(stake_account: Pubkey, vote_account: Pubkey, authority: Pubkey) -> Instruction:
    """Delegate a stake account to a validator vote account."""
    return Instruction(
        STAKE_PROGRAM_ID,
        struct.pack("<I", StakeInstructionType.DelegateStake.value),
        [
            AccountMeta(stake_account, is_signer=False, is_writable=True),
            AccountMeta(vote_account, is_signer=False, is_writable=False),
            AccountMeta(SYSVAR_CLOCK_ID, is_signer=False, is_writable=False),
            AccountMeta(SYSVAR_STAKE_HISTORY_ID, is_signer=False, is_writable=False),
            AccountMeta(STAKE_CONFIG_ID, is_signer=False, is_writable=False),
            AccountMeta(authority, is_signer=True, is_writable=False),
        ],
    )


def deactivate_instruction(stake_account: Pubkey, authority: Pubkey) -> Instruction:
    """Deactivate a delegated stake account."""
    return Instruction(
        STAKE_PROGRAM_ID,
        struct.pack("<I", StakeInstructionType.Deactivate.value),
        [
            AccountMeta(stake_account, is_signer=False, is_writable=True),
            AccountMeta(SYSVAR_CLOCK_ID, is_signer=False, is_writable=False),
            AccountMeta(authority, is_signer=True, is_writable=False),
        ],
    )


def withdraw_instruction(stake_account: Pubkey, authority: Pubkey, recipient: Pubkey, lamports: int) -> Instruction:
    """Withdraw lamports from a stake account to ``recipient``."""
    return Instruction(
        STAKE_PROGRAM_ID,
        struct.pack("<IQ", StakeInstructionType.Withdraw.value, lamports),
        [
            AccountMeta(stake_account, is_signer=False, is_writable=True),
            AccountMeta(recipient, is_signer=False, is_writable=True),
            AccountMeta(SYSVAR_CLOCK_ID, is_signer=False, is_writable=False),
            AccountMeta(SYSVAR_STAKE_HISTORY_ID, is_signer=False, is_writable=False),
            AccountMeta(authority, is_signer=True, is_writable=False),
        ],
    )


class StakeProgramBuilder:
    """Produces the unsigned instruction lists the stake lifecycle submits."""

    def deactivate(self, stake_account: Pubkey, authority: Pubkey) -> list[Instruction]:
        return [deactivate_instruction(stake_account, authority)]

    def withdraw(self, stake_account: Pubkey, authority: Pubkey, recipient: Pubkey, lamports: int) -> list[Instruction]:
        return [withdraw_instruction(stake_account, authority, recipient, lamports)]
