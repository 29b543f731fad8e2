#!/usr/bin/env python3
"""
Unstake and Lend - Deactivate a stake account, withdraw it once inactive and lend the SOL on marginfi.

Deactivation completes at the next epoch boundary, so this script can run for days. Interrupting
it (Ctrl+C) stops the wait only: a confirmed deactivation keeps progressing on-ledger, and running
the script again later resumes from where the stake account is. If the run stops after the
withdrawal, finish it with examples/actions/deposit.py.

Before running this example, ensure you have a .env file with the following variables:
- RPC_ENDPOINT: Your Solana RPC endpoint (defaults to the public mainnet-beta endpoint)
- STAKE_ACCOUNT: Public key of your stake account
- PRIVATE_KEY or SOLANA_KEYPAIR_PATH: Stake/withdraw authority keypair
- POLL_INTERVAL_SECONDS, DEACTIVATION_TIMEOUT_SECONDS: Optional wait settings
"""

import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv

from stake_lend import StakeLendClient

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("unstake_and_lend")


async def main() -> int:
    """Run the stake-to-lend workflow for the configured stake account."""
    load_dotenv()

    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except NotImplementedError:
        # Signal handlers are unavailable on Windows event loops
        pass

    async with StakeLendClient() as client:
        result = await client.unstake_and_lend(cancel_event=cancel_event)

    if result.succeeded:
        logger.info("Successfully unstaked and lent SOL to marginfi!")
        return 0

    logger.error(f"Stopped at: {result.stage.description}")
    if result.funds_withdrawn:
        logger.error(
            "The stake was withdrawn to your wallet. Once the cause is fixed, lend it with "
            f"AMOUNT_LAMPORTS={result.amount} python examples/actions/deposit.py"
        )
    for signature in result.signatures:
        logger.info(f"  signature: {signature}")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
