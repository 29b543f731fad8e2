"""Decoding of raw stake program and sysvar account data."""

from typing import Optional

import struct
from dataclasses import dataclass

from solders.pubkey import Pubkey

from stake_lend.exceptions import AccountDecodeError
from stake_lend.solana_rpc.types import StakeAccountKind

# StakeStateV2 layout (bincode, little endian)
#   u32 tag
#   Meta:  rent_exempt_reserve u64, staker [32], withdrawer [32], lockup (i64, u64, [32])
#   Stake: voter [32], stake u64, activation_epoch u64, deactivation_epoch u64, warmup_cooldown_rate f64,
#          credits_observed u64
_OFF_RENT_EXEMPT_RESERVE = 4
_OFF_STAKER = 12
_OFF_WITHDRAWER = 44
_OFF_VOTER = 124
_OFF_DELEGATED_STAKE = 156
_OFF_ACTIVATION_EPOCH = 164
_OFF_DEACTIVATION_EPOCH = 172
_META_END = 124
_STAKE_END = 196

# Clock sysvar: slot u64, epoch_start_timestamp i64, epoch u64, leader_schedule_epoch u64, unix_timestamp i64
_CLOCK_OFF_EPOCH = 16
_CLOCK_SIZE = 40


@dataclass(frozen=True)
class Delegation:
    voter: Pubkey
    stake: int
    activation_epoch: int
    deactivation_epoch: int


@dataclass(frozen=True)
class StakeAccount:
    kind: StakeAccountKind
    rent_exempt_reserve: Optional[int] = None
    staker: Optional[Pubkey] = None
    withdrawer: Optional[Pubkey] = None
    delegation: Optional[Delegation] = None


def decode_stake_account(data: bytes) -> StakeAccount:
    """Decode a StakeStateV2 account.

    Raises:
        AccountDecodeError: If the data is too short or carries an unknown tag
    """
    if len(data) < 4:
        raise AccountDecodeError(f"Stake account data too short ({len(data)} bytes)")

    tag = struct.unpack_from("<I", data, 0)[0]
    try:
        kind = StakeAccountKind(tag)
    except ValueError as e:
        raise AccountDecodeError(f"Unknown stake account tag {tag}") from e

    if kind in (StakeAccountKind.Uninitialized, StakeAccountKind.RewardsPool):
        return StakeAccount(kind=kind)

    if len(data) < _META_END:
        raise AccountDecodeError(f"Stake account data too short for meta ({len(data)} bytes, need >= {_META_END})")

    rent_exempt_reserve = struct.unpack_from("<Q", data, _OFF_RENT_EXEMPT_RESERVE)[0]
    staker = Pubkey.from_bytes(data[_OFF_STAKER : _OFF_STAKER + 32])
    withdrawer = Pubkey.from_bytes(data[_OFF_WITHDRAWER : _OFF_WITHDRAWER + 32])

    if kind is StakeAccountKind.Initialized:
        return StakeAccount(kind=kind, rent_exempt_reserve=rent_exempt_reserve, staker=staker, withdrawer=withdrawer)

    if len(data) < _STAKE_END:
        raise AccountDecodeError(f"Stake account data too short for delegation ({len(data)} bytes)")

    delegation = Delegation(
        voter=Pubkey.from_bytes(data[_OFF_VOTER : _OFF_VOTER + 32]),
        stake=struct.unpack_from("<Q", data, _OFF_DELEGATED_STAKE)[0],
        activation_epoch=struct.unpack_from("<Q", data, _OFF_ACTIVATION_EPOCH)[0],
        deactivation_epoch=struct.unpack_from("<Q", data, _OFF_DEACTIVATION_EPOCH)[0],
    )
    return StakeAccount(
        kind=kind,
        rent_exempt_reserve=rent_exempt_reserve,
        staker=staker,
        withdrawer=withdrawer,
        delegation=delegation,
    )


def decode_clock_epoch(data: bytes) -> int:
    """Extract the current epoch from Clock sysvar data."""
    if len(data) < _CLOCK_SIZE:
        raise AccountDecodeError(f"Clock sysvar data too short ({len(data)} bytes, need >= {_CLOCK_SIZE})")
    return int(struct.unpack_from("<Q", data, _CLOCK_OFF_EPOCH)[0])
