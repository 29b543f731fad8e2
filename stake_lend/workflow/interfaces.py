"""
Collaborator interfaces consumed by the stake-to-lend workflow.

The workflow only talks to the ledger, the stake program and the lending protocol
through these protocols, so each can be substituted (e.g. with fakes in tests).
"""

from typing import Any, Optional, Protocol, Sequence

import asyncio
import time

from solders.pubkey import Pubkey

from stake_lend.workflow.models import LendingPosition


class LedgerTransport(Protocol):
    async def submit_transaction(self, instructions: Sequence[Any], signers: Sequence[Any] = ()) -> str:
        """Sign and broadcast a transaction, returning its signature."""

    async def confirm(self, signature: str) -> None:
        """Wait until the transaction is confirmed, raising SubmissionError otherwise."""

    async def read_account(self, address: Pubkey) -> bytes:
        """Raw account data, raising AccountNotFoundError or TransientReadError."""

    async def get_balance(self, address: Pubkey) -> int:
        """Account balance in lamports."""


class StakeActionBuilder(Protocol):
    def deactivate(self, stake_account: Pubkey, authority: Pubkey) -> list[Any]:
        ...

    def withdraw(self, stake_account: Pubkey, authority: Pubkey, recipient: Pubkey, lamports: int) -> list[Any]:
        ...


class LendingClient(Protocol):
    async def find_position(self, authority: Pubkey, asset: str) -> Optional[LendingPosition]:
        ...

    async def create_position(self, authority: Pubkey, asset: str) -> LendingPosition:
        ...

    async def deposit(self, position: LendingPosition, amount: int) -> str:
        ...


class Clock(Protocol):
    def monotonic(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class AsyncioClock:
    """Wall-clock implementation of Clock on top of the running event loop."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
