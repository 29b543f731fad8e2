# Actions
from stake_lend.solana_rpc.actions import (
    CreateStakeParams,
    StakeProgramBuilder,
    create_stake_account,
)

# Config
from stake_lend.solana_rpc.config import (
    BankConfig,
    StakeLendConfig,
    get_config,
    get_network_addresses,
    load_keypair,
)

# Constants
from stake_lend.solana_rpc.consts import (
    LAMPORTS_PER_SOL,
    NATIVE_MINT,
    STAKE_PROGRAM_ID,
)

# Transport
from stake_lend.solana_rpc.transport import SolanaRpcTransport

# Types
from stake_lend.solana_rpc.types import (
    Cluster,
    StakeAccountKind,
    StakeInstructionType,
    StakeState,
)

__all__ = [
    # Actions
    "CreateStakeParams",
    "StakeProgramBuilder",
    "create_stake_account",
    # Config
    "BankConfig",
    "StakeLendConfig",
    "get_config",
    "get_network_addresses",
    "load_keypair",
    # Constants
    "LAMPORTS_PER_SOL",
    "NATIVE_MINT",
    "STAKE_PROGRAM_ID",
    # Transport
    "SolanaRpcTransport",
    # Types
    "Cluster",
    "StakeAccountKind",
    "StakeInstructionType",
    "StakeState",
]
