#!/usr/bin/env python3
"""
Deposit - Lend SOL already in the authority's wallet on marginfi.

Finishes an unstake-and-lend run that stopped after the withdrawal. The lending position is
created first if the authority does not have one yet.

Requirements:
- PRIVATE_KEY or SOLANA_KEYPAIR_PATH: Authority keypair holding the SOL
- AMOUNT_LAMPORTS: Amount to lend, e.g. the withdrawn amount reported by the failed run
- LEND_ASSET: Optional, defaults to SOL
"""

import asyncio
import logging
import os

from dotenv import load_dotenv

from stake_lend import StakeLendClient
from stake_lend.solana_rpc.consts import LAMPORTS_PER_SOL

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("deposit")


async def main():
    load_dotenv()

    amount = int(os.environ["AMOUNT_LAMPORTS"])

    async with StakeLendClient() as client:
        receipt = await client.deposit(amount)

    logger.info(f"Lent {receipt.amount / LAMPORTS_PER_SOL} {receipt.position.asset} through {receipt.position.address}")
    logger.info(f"  signature: {receipt.signature}")


if __name__ == "__main__":
    asyncio.run(main())
