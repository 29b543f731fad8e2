"""
marginfi client - lending position lookup, creation and deposits.
"""

from typing import Optional

import base64
import logging

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from stake_lend.exceptions import NetworkConfigurationError, UnknownAssetError
from stake_lend.marginfi.instructions import (
    MARGINFI_ACCOUNT_AUTHORITY_OFFSET,
    MARGINFI_ACCOUNT_DISCRIMINATOR,
    MARGINFI_ACCOUNT_GROUP_OFFSET,
    account_initialize_instruction,
    create_idempotent_ata_instruction,
    find_associated_token_address,
    lending_account_deposit_instruction,
    sync_native_instruction,
)
from stake_lend.solana_rpc.config import BankConfig, StakeLendConfig
from stake_lend.solana_rpc.consts import NATIVE_MINT
from stake_lend.solana_rpc.transport import SolanaRpcTransport
from stake_lend.workflow.models import LendingPosition


class MarginfiClient:
    """
    Lending client for a marginfi v2 group.

    A marginfi account belongs to a group rather than to a single bank, so the same
    account serves as the position for every asset of the group.
    """

    def __init__(self, transport: SolanaRpcTransport, config: StakeLendConfig):
        if config.marginfi_program_id is None or config.marginfi_group is None:
            raise NetworkConfigurationError(
                f"marginfi is not configured for cluster {config.cluster}; set MARGINFI_PROGRAM_ID and MARGINFI_GROUP"
            )

        self.transport = transport
        self.program_id: Pubkey = config.marginfi_program_id
        self.group: Pubkey = config.marginfi_group
        self.banks = config.marginfi_banks
        self.logger = logging.getLogger("stake_lend.marginfi.client")

    def get_bank(self, asset: str) -> BankConfig:
        bank = self.banks.get(asset)
        if bank is None:
            raise UnknownAssetError(f"Unknown asset '{asset}'. Available banks: {list(self.banks.keys())}")
        return bank

    async def find_position(self, authority: Pubkey, asset: str) -> Optional[LendingPosition]:
        """The authority's marginfi account in this group, if any."""
        self.get_bank(asset)

        filters = [
            {
                "memcmp": {
                    "offset": 0,
                    "bytes": base64.b64encode(MARGINFI_ACCOUNT_DISCRIMINATOR).decode(),
                    "encoding": "base64",
                }
            },
            {"memcmp": {"offset": MARGINFI_ACCOUNT_GROUP_OFFSET, "bytes": str(self.group)}},
            {"memcmp": {"offset": MARGINFI_ACCOUNT_AUTHORITY_OFFSET, "bytes": str(authority)}},
        ]
        addresses = await self.transport.get_program_account_addresses(self.program_id, filters)
        if not addresses:
            return None

        if len(addresses) > 1:
            self.logger.debug(f"Found {len(addresses)} marginfi accounts for {authority}, using the first")
        address = sorted(addresses, key=str)[0]
        return LendingPosition(address=address, authority=authority, asset=asset)

    async def create_position(self, authority: Pubkey, asset: str) -> LendingPosition:
        """Create a new marginfi account for the authority."""
        self.get_bank(asset)

        account_keypair = Keypair()
        instruction = account_initialize_instruction(self.program_id, self.group, account_keypair.pubkey(), authority)

        signature = await self.transport.submit_transaction([instruction], signers=[account_keypair])
        await self.transport.confirm(signature)
        self.logger.info(f"Created marginfi account {account_keypair.pubkey()}: {signature}")

        return LendingPosition(
            address=account_keypair.pubkey(), authority=authority, asset=asset, creation_signature=signature
        )

    def build_deposit_instructions(self, position: LendingPosition, amount: int) -> list:
        """
        Instructions depositing ``amount`` of the position's asset.

        Native SOL is first wrapped into the authority's wrapped SOL token account.
        """
        bank = self.get_bank(position.asset)
        authority = position.authority
        token_account = find_associated_token_address(authority, bank.mint)

        instructions = []
        if bank.mint == NATIVE_MINT:
            instructions += [
                create_idempotent_ata_instruction(authority, authority, NATIVE_MINT),
                transfer(TransferParams(from_pubkey=authority, to_pubkey=token_account, lamports=amount)),
                sync_native_instruction(token_account),
            ]

        instructions.append(
            lending_account_deposit_instruction(
                self.program_id, self.group, position.address, authority, bank.address, token_account, amount
            )
        )
        return instructions

    async def deposit(self, position: LendingPosition, amount: int) -> str:
        """Deposit ``amount`` native units into the bank for the position's asset."""
        signature = await self.transport.submit_transaction(self.build_deposit_instructions(position, amount))
        await self.transport.confirm(signature)
        return signature
