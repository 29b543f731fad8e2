from enum import Enum, IntEnum


class StakeState(str, Enum):
    """Activation state of a stake account as observed on the ledger."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ACTIVATING = "activating"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"
    INACTIVE = "inactive"


class StakeAccountKind(IntEnum):
    """StakeStateV2 enum tags"""

    Uninitialized = 0
    Initialized = 1
    Stake = 2
    RewardsPool = 3


class StakeInstructionType(IntEnum):
    """Stake program instruction tags (bincode u32)"""

    Initialize = 0
    Authorize = 1
    DelegateStake = 2
    Split = 3
    Withdraw = 4
    Deactivate = 5


class Cluster(str, Enum):
    MAINNET_BETA = "mainnet-beta"
    DEVNET = "devnet"
