from stake_lend.marginfi.client import MarginfiClient
from stake_lend.marginfi.instructions import (
    anchor_discriminator,
    find_associated_token_address,
    find_liquidity_vault,
    lending_account_deposit_instruction,
)

__all__ = [
    "MarginfiClient",
    "anchor_discriminator",
    "find_associated_token_address",
    "find_liquidity_vault",
    "lending_account_deposit_instruction",
]
