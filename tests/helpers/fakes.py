"""
In-memory collaborators for exercising the workflow without a ledger.

Instructions produced by FakeBuilder are plain tuples whose first element names the
action; FakeTransport uses it to derive signatures and to inject failures per action.
"""

from typing import Optional

import asyncio
import dataclasses

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from stake_lend.exceptions import AccountNotFoundError
from stake_lend.solana_rpc.types import StakeState
from stake_lend.workflow.models import LendingPosition


class FakeClock:
    """Virtual time: sleeping advances the clock instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class ScriptedProbe:
    """
    Returns the scripted states in order, repeating the last one forever.

    Exceptions in the script are raised instead of returned. ``on_poll`` is called with
    the poll number (1-based) before each answer.
    """

    def __init__(self, *script, on_poll=None):
        self.script = list(script)
        self.calls = 0
        self.on_poll = on_poll

    async def status(self, stake_account: Pubkey) -> StakeState:
        self.calls += 1
        if self.on_poll is not None:
            self.on_poll(self.calls)

        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        return step


class FakeBuilder:
    def deactivate(self, stake_account, authority):
        return [("deactivate", stake_account, authority)]

    def withdraw(self, stake_account, authority, recipient, lamports):
        return [("withdraw", stake_account, authority, recipient, lamports)]


class FakeTransport:
    """Ledger transport recording submissions; failures are keyed by action name."""

    def __init__(self, balances: Optional[dict] = None):
        self.balances = dict(balances or {})
        self.accounts: dict[Pubkey, bytes] = {}
        self.submitted: list[list] = []
        self.confirmed: list[str] = []
        self.balance_reads: list[Pubkey] = []
        self.submit_errors: dict[str, Exception] = {}
        self.confirm_errors: dict[str, Exception] = {}
        self._labels: dict[str, str] = {}

    async def submit_transaction(self, instructions, signers=()) -> str:
        label = instructions[0][0]
        if label in self.submit_errors:
            raise self.submit_errors[label]

        self.submitted.append(list(instructions))
        signature = f"sig-{label}-{len(self.submitted)}"
        self._labels[signature] = label
        return signature

    async def confirm(self, signature: str) -> None:
        # Let other tasks run while the signature is pending
        await asyncio.sleep(0)
        label = self._labels[signature]
        if label in self.confirm_errors:
            raise self.confirm_errors[label]
        self.confirmed.append(signature)

    async def read_account(self, address: Pubkey) -> bytes:
        if address not in self.accounts:
            raise AccountNotFoundError(f"Account {address} not found")
        return self.accounts[address]

    async def get_balance(self, address: Pubkey) -> int:
        self.balance_reads.append(address)
        return self.balances.get(address, 0)

    def submitted_labels(self) -> list[str]:
        return [instructions[0][0] for instructions in self.submitted]


class FakeLending:
    """Lending client keeping positions in a dict."""

    def __init__(self, create_error: Optional[Exception] = None, deposit_error: Optional[Exception] = None):
        self.positions: dict[tuple, LendingPosition] = {}
        self.created: list[LendingPosition] = []
        self.deposits: list[tuple[LendingPosition, int]] = []
        self.create_error = create_error
        self.deposit_error = deposit_error

    def add_position(self, authority: Pubkey, asset: str) -> LendingPosition:
        position = LendingPosition(address=Keypair().pubkey(), authority=authority, asset=asset)
        self.positions[(authority, asset)] = position
        return position

    async def find_position(self, authority: Pubkey, asset: str) -> Optional[LendingPosition]:
        return self.positions.get((authority, asset))

    async def create_position(self, authority: Pubkey, asset: str) -> LendingPosition:
        if self.create_error is not None:
            raise self.create_error

        position = LendingPosition(
            address=Keypair().pubkey(),
            authority=authority,
            asset=asset,
            creation_signature=f"sig-create-position-{len(self.created) + 1}",
        )
        self.created.append(position)
        self.positions[(authority, asset)] = dataclasses.replace(position, creation_signature=None)
        return position

    async def deposit(self, position: LendingPosition, amount: int) -> str:
        if self.deposit_error is not None:
            raise self.deposit_error
        self.deposits.append((position, amount))
        return f"sig-deposit-{len(self.deposits)}"

