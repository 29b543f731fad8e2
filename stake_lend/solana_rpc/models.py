"""
Pydantic models for the Solana JSON-RPC payloads the SDK consumes.
"""

from __future__ import annotations

from typing import Any, Optional

import base64

from pydantic import BaseModel, ConfigDict, Field

from stake_lend.exceptions import AccountDecodeError


class RpcErrorPayload(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class RpcResponse(BaseModel):
    jsonrpc: str = "2.0"
    id: Optional[int] = None
    result: Optional[Any] = None
    error: Optional[RpcErrorPayload] = None


class AccountInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lamports: int
    owner: str
    data: list[str] = Field(description='''[payload, encoding] as returned with encoding=base64''')
    executable: bool = False

    def raw_data(self) -> bytes:
        """
        Decode the account data.

        Raises:
            AccountDecodeError: If the data is not a valid base64 payload
        """
        if len(self.data) != 2 or self.data[1] != "base64":
            raise AccountDecodeError(f"Unsupported account data encoding: {self.data[1:]}")
        try:
            return base64.b64decode(self.data[0], validate=True)
        except ValueError as e:
            raise AccountDecodeError(f"Invalid base64 account data: {e}") from e


class ProgramAccount(BaseModel):
    pubkey: str
    account: AccountInfo


class SignatureStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slot: int
    confirmations: Optional[int] = None
    err: Optional[Any] = None
    confirmation_status: Optional[str] = Field(default=None, alias='''confirmationStatus''')

    def is_confirmed(self, commitment: str = "confirmed") -> bool:
        if commitment == "finalized":
            return self.confirmation_status == "finalized"
        return self.confirmation_status in ("confirmed", "finalized")
