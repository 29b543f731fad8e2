"""
Solana stake-to-lend SDK.

This package provides modules for moving staked SOL into a lending market:
- solana_rpc: JSON-RPC transport, configuration and stake program actions
- marginfi: Lending position lookup, creation and deposits on marginfi v2
- workflow: The deactivate -> cooldown -> withdraw -> deposit pipeline
"""

from stake_lend._version import SDK_VERSION
from stake_lend.client import StakeLendClient
from stake_lend.marginfi import MarginfiClient
from stake_lend.solana_rpc import (
    CreateStakeParams,
    SolanaRpcTransport,
    StakeLendConfig,
    StakeProgramBuilder,
    StakeState,
    create_stake_account,
    get_config,
)
from stake_lend.workflow import (
    LendingHandoff,
    Stage,
    StakeLifecycleController,
    StakeStatusProbe,
    WorkflowOptions,
    WorkflowOrchestrator,
    WorkflowResult,
)

__all__ = [
    "SDK_VERSION",
    "StakeLendClient",
    "MarginfiClient",
    "CreateStakeParams",
    "SolanaRpcTransport",
    "StakeLendConfig",
    "StakeProgramBuilder",
    "StakeState",
    "create_stake_account",
    "get_config",
    "LendingHandoff",
    "Stage",
    "StakeLifecycleController",
    "StakeStatusProbe",
    "WorkflowOptions",
    "WorkflowOrchestrator",
    "WorkflowResult",
]
