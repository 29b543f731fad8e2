#!/usr/bin/env python3
"""
Create Stake - Create a stake account and delegate it to a validator.

Requirements:
- VOTE_ACCOUNT: Vote account of the validator to delegate to
- PRIVATE_KEY or SOLANA_KEYPAIR_PATH: Wallet funding the stake account
"""

import asyncio
import logging
import os

from dotenv import load_dotenv
from solders.pubkey import Pubkey

from stake_lend.solana_rpc import LAMPORTS_PER_SOL, SolanaRpcTransport, get_config
from stake_lend.solana_rpc.actions import CreateStakeParams, create_stake_account

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


async def main():
    """Create and delegate a 1 SOL stake account."""

    # Load environment variables from .env file
    load_dotenv()

    vote_account = Pubkey.from_string(os.environ["VOTE_ACCOUNT"])

    # Load configuration
    config = get_config()

    async with SolanaRpcTransport(config) as transport:
        result = await create_stake_account(
            transport, CreateStakeParams(vote_account=vote_account, lamports=1 * LAMPORTS_PER_SOL)
        )

    print(f"Stake account: {result['stake_account']}")
    print(f"Transaction signature: {result['signature']}")


if __name__ == "__main__":
    asyncio.run(main())
