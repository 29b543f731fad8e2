from stake_lend.solana_rpc.utils.stake_layout import (
    Delegation,
    StakeAccount,
    decode_clock_epoch,
    decode_stake_account,
)
from stake_lend.solana_rpc.utils.transaction_utils import (
    build_signed_transaction,
    encode_transaction,
    transaction_signature,
)

__all__ = [
    "Delegation",
    "StakeAccount",
    "decode_clock_epoch",
    "decode_stake_account",
    "build_signed_transaction",
    "encode_transaction",
    "transaction_signature",
]
