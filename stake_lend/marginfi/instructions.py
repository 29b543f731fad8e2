"""marginfi v2 and SPL token instruction builders."""

import hashlib
import struct

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from stake_lend.solana_rpc.consts import ASSOCIATED_TOKEN_PROGRAM_ID, SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID

# MarginfiAccount layout: discriminator [8], group [32], authority [32], lending account...
MARGINFI_ACCOUNT_GROUP_OFFSET = 8
MARGINFI_ACCOUNT_AUTHORITY_OFFSET = 40

LIQUIDITY_VAULT_SEED = b"liquidity_vault"

_ATA_CREATE_IDEMPOTENT = 1
_TOKEN_SYNC_NATIVE = 17


def anchor_discriminator(namespace: str, name: str) -> bytes:
    """First 8 bytes of sha256("<namespace>:<name>"), as Anchor programs expect."""
    return hashlib.sha256(f"{namespace}:{name}".encode()).digest()[:8]


MARGINFI_ACCOUNT_DISCRIMINATOR = anchor_discriminator("account", "MarginfiAccount")
ACCOUNT_INITIALIZE_DISCRIMINATOR = anchor_discriminator("global", "marginfi_account_initialize")
LENDING_ACCOUNT_DEPOSIT_DISCRIMINATOR = anchor_discriminator("global", "lending_account_deposit")


def find_liquidity_vault(bank: Pubkey, program_id: Pubkey) -> Pubkey:
    vault, _bump = Pubkey.find_program_address([LIQUIDITY_VAULT_SEED, bytes(bank)], program_id)
    return vault


def find_associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    address, _bump = Pubkey.find_program_address(
        [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)], ASSOCIATED_TOKEN_PROGRAM_ID
    )
    return address


def create_idempotent_ata_instruction(payer: Pubkey, owner: Pubkey, mint: Pubkey) -> Instruction:
    return Instruction(
        ASSOCIATED_TOKEN_PROGRAM_ID,
        bytes([_ATA_CREATE_IDEMPOTENT]),
        [
            AccountMeta(payer, is_signer=True, is_writable=True),
            AccountMeta(find_associated_token_address(owner, mint), is_signer=False, is_writable=True),
            AccountMeta(owner, is_signer=False, is_writable=False),
            AccountMeta(mint, is_signer=False, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )


def sync_native_instruction(token_account: Pubkey) -> Instruction:
    """Make a wrapped SOL account's token amount match its lamports."""
    return Instruction(
        TOKEN_PROGRAM_ID,
        bytes([_TOKEN_SYNC_NATIVE]),
        [AccountMeta(token_account, is_signer=False, is_writable=True)],
    )


def account_initialize_instruction(
    program_id: Pubkey, group: Pubkey, marginfi_account: Pubkey, authority: Pubkey
) -> Instruction:
    """Create a marginfi account for ``authority``. ``marginfi_account`` must sign."""
    return Instruction(
        program_id,
        ACCOUNT_INITIALIZE_DISCRIMINATOR,
        [
            AccountMeta(group, is_signer=False, is_writable=False),
            AccountMeta(marginfi_account, is_signer=True, is_writable=True),
            AccountMeta(authority, is_signer=True, is_writable=False),
            AccountMeta(authority, is_signer=True, is_writable=True),  # fee payer
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )


def lending_account_deposit_instruction(
    program_id: Pubkey,
    group: Pubkey,
    marginfi_account: Pubkey,
    authority: Pubkey,
    bank: Pubkey,
    source_token_account: Pubkey,
    amount: int,
) -> Instruction:
    """Deposit ``amount`` native units from ``source_token_account`` into ``bank``."""
    # u64 amount followed by deposit_up_to_limit: Option<bool> = None
    data = LENDING_ACCOUNT_DEPOSIT_DISCRIMINATOR + struct.pack("<QB", amount, 0)
    return Instruction(
        program_id,
        data,
        [
            AccountMeta(group, is_signer=False, is_writable=False),
            AccountMeta(marginfi_account, is_signer=False, is_writable=True),
            AccountMeta(authority, is_signer=True, is_writable=False),
            AccountMeta(bank, is_signer=False, is_writable=True),
            AccountMeta(source_token_account, is_signer=False, is_writable=True),
            AccountMeta(find_liquidity_vault(bank, program_id), is_signer=False, is_writable=True),
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        ],
    )
