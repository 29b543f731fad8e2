"""
Solana JSON-RPC transport.

Reads ledger state and submits signed transactions over HTTP. Every method performs
a single request (confirmation polls until its own deadline) and maps failures onto
the SDK exception taxonomy.
"""

from typing import Any, Optional, Sequence

import asyncio
import itertools
import logging
import time

import httpx
from pydantic import ValidationError
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from stake_lend._version import SDK_VERSION
from stake_lend.exceptions import (
    AccountDecodeError,
    AccountNotFoundError,
    SolanaRpcError,
    SubmissionError,
    TransientReadError,
)
from stake_lend.solana_rpc.config import StakeLendConfig
from stake_lend.solana_rpc.models import AccountInfo, ProgramAccount, RpcResponse, SignatureStatus
from stake_lend.solana_rpc.utils.transaction_utils import (
    build_signed_transaction,
    encode_transaction,
    transaction_signature,
)

CONFIRM_POLL_INTERVAL_SECONDS = 2.0
_RETRYABLE_STATUS_CODES = (429, 502, 503, 504)


class SolanaRpcTransport:
    """Ledger transport backed by a Solana JSON-RPC endpoint."""

    def __init__(self, config: StakeLendConfig, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the transport.

        Args:
            config: Stake-to-lend configuration (RPC URL, fee payer keypair, commitment, timeouts)
            client: Optional pre-built HTTP client, mainly for tests
        """
        self.config = config
        self.payer: Keypair = config.keypair
        self.commitment = config.commitment
        self.confirm_timeout = config.confirm_timeout
        self.confirm_poll_interval = CONFIRM_POLL_INTERVAL_SECONDS
        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": f"solana-stake-lend-sdk/{SDK_VERSION}",
        }
        self._client = client or httpx.AsyncClient(
            base_url=config.rpc_url, timeout=config.request_timeout, headers=self.headers
        )
        self._request_ids = itertools.count(1)
        self.logger = logging.getLogger(f"stake_lend.rpc.{self.__class__.__name__}")

    async def close(self) -> None:
        """Shut down the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "SolanaRpcTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _call(
        self,
        method: str,
        params: Optional[list[Any]] = None,
        error_cls: type[SolanaRpcError] = TransientReadError,
    ) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name
            params: Positional RPC parameters
            error_cls: Exception raised for transport and RPC-level failures

        Returns:
            The ``result`` member of the response
        """
        payload = {"jsonrpc": "2.0", "id": next(self._request_ids), "method": method, "params": params or []}
        self.logger.debug(f"RPC {method} with params: {params}")

        try:
            response = await self._client.post("", json=payload)
        except httpx.HTTPError as e:
            raise error_cls(f"{method} request failed: {e}") from e

        if response.status_code in _RETRYABLE_STATUS_CODES or response.status_code >= 500:
            raise error_cls(f"{method} failed with HTTP {response.status_code}")
        if response.status_code >= 400:
            message = f"{method} failed with HTTP {response.status_code}: {response.text[:200]}"
            # A rejected read is not transient, a rejected send is still a submission failure
            if issubclass(error_cls, SubmissionError):
                raise error_cls(message)
            raise SolanaRpcError(message)

        try:
            body = RpcResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self.logger.error(f"Failed to parse JSON-RPC response: {response.text[:200]}")
            raise error_cls(f"{method} returned an invalid JSON-RPC response") from e

        if body.error is not None:
            raise error_cls(f"{method} RPC error {body.error.code}: {body.error.message}")

        return body.result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_account_info(self, address: Pubkey) -> Optional[AccountInfo]:
        result = await self._call(
            "getAccountInfo", [str(address), {"encoding": "base64", "commitment": self.commitment}]
        )
        value = result.get("value") if result else None
        if value is None:
            return None
        try:
            return AccountInfo.model_validate(value)
        except ValidationError as e:
            raise AccountDecodeError(f"Malformed account info for {address}: {e}") from e

    async def read_account(self, address: Pubkey) -> bytes:
        """
        Read the raw data of an account.

        Raises:
            AccountNotFoundError: If the account does not exist
            AccountDecodeError: If the node returned undecodable account data
            TransientReadError: If the read failed
        """
        account = await self.get_account_info(address)
        if account is None:
            raise AccountNotFoundError(f"Account {address} not found")
        return account.raw_data()

    async def get_balance(self, address: Pubkey) -> int:
        """Balance of an account in lamports."""
        result = await self._call("getBalance", [str(address), {"commitment": self.commitment}])
        return int(result["value"])

    async def get_minimum_balance_for_rent_exemption(self, space: int) -> int:
        result = await self._call("getMinimumBalanceForRentExemption", [space, {"commitment": self.commitment}])
        return int(result)

    async def get_latest_blockhash(self) -> Hash:
        result = await self._call("getLatestBlockhash", [{"commitment": self.commitment}])
        return Hash.from_string(result["value"]["blockhash"])

    async def get_program_account_addresses(self, program_id: Pubkey, filters: list[dict]) -> list[Pubkey]:
        """Addresses of all accounts owned by ``program_id`` matching ``filters``."""
        result = await self._call(
            "getProgramAccounts",
            [
                str(program_id),
                {
                    "encoding": "base64",
                    "commitment": self.commitment,
                    "filters": filters,
                    # Only the addresses are needed
                    "dataSlice": {"offset": 0, "length": 0},
                },
            ],
        )
        accounts = [ProgramAccount.model_validate(item) for item in result or []]
        return [Pubkey.from_string(account.pubkey) for account in accounts]

    async def get_signature_status(self, signature: str) -> Optional[SignatureStatus]:
        result = await self._call("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])
        statuses = result.get("value", []) if result else []
        if not statuses or statuses[0] is None:
            return None
        return SignatureStatus.model_validate(statuses[0])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def submit_transaction(self, instructions: Sequence[Instruction], signers: Sequence[Keypair] = ()) -> str:
        """
        Sign and broadcast a transaction paid for by the configured keypair.

        Args:
            instructions: Instructions to submit in one transaction
            signers: Additional signers besides the fee payer

        Returns:
            str: The transaction signature

        Raises:
            SubmissionError: If no blockhash could be fetched or the node rejected the transaction
        """
        try:
            blockhash = await self.get_latest_blockhash()
        except TransientReadError as e:
            raise SubmissionError(f"Could not fetch a recent blockhash: {e}") from e

        transaction = build_signed_transaction(instructions, self.payer, blockhash, signers)
        signature = transaction_signature(transaction)

        result = await self._call(
            "sendTransaction",
            [
                encode_transaction(transaction),
                {"encoding": "base64", "skipPreflight": False, "preflightCommitment": self.commitment},
            ],
            error_cls=SubmissionError,
        )
        if result != signature:
            self.logger.warning(f"Node returned signature {result}, expected {signature}")

        self.logger.info(f"Submitted transaction: {signature}")
        return signature

    async def confirm(self, signature: str) -> None:
        """
        Poll until a transaction reaches the configured commitment.

        Raises:
            SubmissionError: If the transaction failed on-chain or was not confirmed in time
        """
        deadline = time.monotonic() + self.confirm_timeout
        while time.monotonic() < deadline:
            try:
                status = await self.get_signature_status(signature)
            except TransientReadError as e:
                self.logger.warning(f"Signature status read failed for {signature}, retrying: {e}")
                status = None

            if status is not None:
                if status.err is not None:
                    raise SubmissionError(f"Transaction {signature} failed: {status.err}", signature=signature)
                if status.is_confirmed(self.commitment):
                    self.logger.info(f"Transaction confirmed: {signature}")
                    return

            await asyncio.sleep(self.confirm_poll_interval)

        raise SubmissionError(
            f"Transaction {signature} not confirmed within {self.confirm_timeout}s", signature=signature
        )
