"""
Stake-to-lend workflow: deactivate a stake account, wait for the cooldown, withdraw the
freed lamports and deposit them into a lending position.
"""

from stake_lend.workflow.controller import StakeLifecycleController
from stake_lend.workflow.handoff import LendingHandoff
from stake_lend.workflow.interfaces import AsyncioClock, Clock, LedgerTransport, LendingClient, StakeActionBuilder
from stake_lend.workflow.models import (
    DepositReceipt,
    LendingPosition,
    LifecycleState,
    Stage,
    WithdrawalReceipt,
    WorkflowResult,
)
from stake_lend.workflow.orchestrator import WorkflowOptions, WorkflowOrchestrator
from stake_lend.workflow.probe import StakeStatusProbe, delegation_state
from stake_lend.workflow.waiting import WaitOutcome, WaitStatus, wait_for

__all__ = [
    "StakeLifecycleController",
    "LendingHandoff",
    "AsyncioClock",
    "Clock",
    "LedgerTransport",
    "LendingClient",
    "StakeActionBuilder",
    "DepositReceipt",
    "LendingPosition",
    "LifecycleState",
    "Stage",
    "WithdrawalReceipt",
    "WorkflowResult",
    "WorkflowOptions",
    "WorkflowOrchestrator",
    "StakeStatusProbe",
    "delegation_state",
    "WaitOutcome",
    "WaitStatus",
    "wait_for",
]
