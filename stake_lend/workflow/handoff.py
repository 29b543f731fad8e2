import logging

from solders.pubkey import Pubkey

from stake_lend.exceptions import PositionCreationError, StakeLendError
from stake_lend.workflow.interfaces import LendingClient
from stake_lend.workflow.models import DepositReceipt, LendingPosition


class LendingHandoff:
    """Deposits freed funds into the authority's lending position, creating it on first use."""

    def __init__(self, lending: LendingClient):
        self.lending = lending
        self.logger = logging.getLogger("stake_lend.workflow.handoff")

    async def ensure_position(self, authority: Pubkey, asset: str) -> LendingPosition:
        """
        Find the authority's position for ``asset`` or create one.

        Raises:
            PositionCreationError: If the creation transaction failed
        """
        position = await self.lending.find_position(authority, asset)
        if position is not None:
            return position

        self.logger.info(f"Creating new lending position for {authority}...")
        try:
            position = await self.lending.create_position(authority, asset)
        except StakeLendError as e:
            raise PositionCreationError(f"Failed to create lending position for {authority}: {e}") from e

        self.logger.info(f"Created lending position {position.address}: {position.creation_signature}")
        return position

    async def deposit_into(self, position: LendingPosition, amount: int) -> str:
        """Deposit the full ``amount`` in a single transaction."""
        if amount <= 0:
            raise ValueError(f"Deposit amount must be positive, got {amount}")

        self.logger.info(f"Lending {amount} of {position.asset} through position {position.address}...")
        signature = await self.lending.deposit(position, amount)
        self.logger.info(f"{position.asset} deposited. Signature: {signature}")
        return signature

    async def deposit(self, authority: Pubkey, asset: str, amount: int) -> DepositReceipt:
        """
        Deposit ``amount`` (smallest unit of ``asset``) into the authority's lending position.

        Either the whole amount is deposited in one transaction or nothing leaves the
        authority's wallet, so a failed call can simply be repeated.

        Raises:
            ValueError: If amount is not positive
            PositionCreationError: If the position did not exist and could not be created
            SubmissionError: If the deposit transaction failed
        """
        if amount <= 0:
            raise ValueError(f"Deposit amount must be positive, got {amount}")

        position = await self.ensure_position(authority, asset)
        signature = await self.deposit_into(position, amount)
        return DepositReceipt(signature=signature, position=position, amount=amount)
