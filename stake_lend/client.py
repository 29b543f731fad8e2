"""
Stake-to-lend client - main entry point of the SDK.

Builds the JSON-RPC transport, the stake program builder, the marginfi client and the
workflow orchestrator from a single configuration.
"""

from typing import Optional

import asyncio
import logging

from solders.pubkey import Pubkey

from stake_lend._version import SDK_VERSION
from stake_lend.marginfi.client import MarginfiClient
from stake_lend.solana_rpc.actions.stake_program import StakeProgramBuilder
from stake_lend.solana_rpc.config import StakeLendConfig, get_config
from stake_lend.solana_rpc.transport import SolanaRpcTransport
from stake_lend.solana_rpc.types import StakeState
from stake_lend.workflow.models import DepositReceipt, WorkflowResult
from stake_lend.workflow.orchestrator import WorkflowOptions, WorkflowOrchestrator
from stake_lend.workflow.probe import StakeStatusProbe


class StakeLendClient:
    """
    Client for unstaking Solana stake accounts and lending the proceeds on marginfi.

    Usage:
        async with StakeLendClient() as client:
            result = await client.unstake_and_lend()
    """

    def __init__(self, config: Optional[StakeLendConfig] = None, transport: Optional[SolanaRpcTransport] = None):
        """
        Initialize the client.

        Args:
            config: Optional configuration, loaded from environment variables when omitted
            transport: Optional transport override
        """
        self.logger = logging.getLogger("stake_lend.client")

        self._config = config or get_config()
        self.transport = transport or SolanaRpcTransport(self._config)
        self.lending = MarginfiClient(self.transport, self._config)
        self.probe = StakeStatusProbe(self.transport)
        self.orchestrator = WorkflowOrchestrator.from_collaborators(
            transport=self.transport,
            builder=StakeProgramBuilder(),
            lending=self.lending,
            authority=self._config.authority,
            options=WorkflowOptions(
                poll_interval=self._config.poll_interval,
                deactivation_timeout=self._config.deactivation_timeout,
            ),
        )

        self.logger.info(f"solana-stake-lend-sdk/{SDK_VERSION} on {self._config.cluster}")
        self.logger.info(f"RPC endpoint: {self._config.rpc_url}")
        self.logger.info(f"Authority: {self._config.authority}")

    @property
    def config(self) -> StakeLendConfig:
        return self._config

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "StakeLendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _stake_account(self, stake_account: Optional[Pubkey]) -> Pubkey:
        stake_account = stake_account or self._config.stake_account
        if stake_account is None:
            raise ValueError("No stake account given and STAKE_ACCOUNT environment variable is not set")
        return stake_account

    async def stake_status(self, stake_account: Optional[Pubkey] = None) -> StakeState:
        return await self.probe.status(self._stake_account(stake_account))

    async def unstake_and_lend(
        self,
        stake_account: Optional[Pubkey] = None,
        asset: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> WorkflowResult:
        """
        Run the full stake-to-lend workflow.

        Args:
            stake_account: Stake account to unstake, defaults to STAKE_ACCOUNT
            asset: Asset to lend, defaults to LEND_ASSET
            cancel_event: Cancels the cooldown wait when set

        Returns:
            WorkflowResult: See WorkflowOrchestrator.run
        """
        return await self.orchestrator.run(
            self._stake_account(stake_account), asset or self._config.asset, cancel_event=cancel_event
        )

    async def deposit(self, amount: int, asset: Optional[str] = None) -> DepositReceipt:
        """
        Lend ``amount`` lamports from the authority's wallet, creating the lending position if needed.

        Finishes a run that stopped at the position or deposit stage: the stake was already
        withdrawn, so pass ``result.amount`` here instead of running the workflow again.

        Args:
            amount: Amount to deposit, in lamports
            asset: Asset to lend, defaults to LEND_ASSET

        Returns:
            DepositReceipt: Deposit signature, the position used and the amount
        """
        return await self.orchestrator.handoff.deposit(self._config.authority, asset or self._config.asset, amount)
