#!/usr/bin/env python3
"""
Stake Status - Print the activation state of the configured stake account.

Requirements:
- STAKE_ACCOUNT: Public key of your stake account
"""

import asyncio

from dotenv import load_dotenv

from stake_lend import StakeLendClient


async def main():
    load_dotenv()

    async with StakeLendClient() as client:
        state = await client.stake_status()
        print(f"Stake account {client.config.stake_account} is {state.value}")


if __name__ == "__main__":
    asyncio.run(main())
