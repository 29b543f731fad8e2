"""Transaction utility functions for RPC actions."""

from typing import Sequence

import base64

from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.transaction import Transaction


def build_signed_transaction(
    instructions: Sequence[Instruction],
    payer: Keypair,
    blockhash: Hash,
    signers: Sequence[Keypair] = (),
) -> Transaction:
    """Build a legacy transaction paid for by ``payer`` and signed by every required signer.

    Args:
        instructions: Instructions to include, in order
        payer: Fee payer, always the first signer
        blockhash: Recent blockhash
        signers: Additional signers (e.g. freshly generated account keypairs)

    Returns:
        Transaction: The signed transaction
    """
    # Deduplicate signers while keeping the payer first
    keypairs = [payer]
    for signer in signers:
        if signer.pubkey() not in {k.pubkey() for k in keypairs}:
            keypairs.append(signer)

    message = Message.new_with_blockhash(list(instructions), payer.pubkey(), blockhash)
    return Transaction(keypairs, message, blockhash)


def encode_transaction(transaction: Transaction) -> str:
    """Serialize a signed transaction for sendTransaction (base64)."""
    return base64.b64encode(bytes(transaction)).decode()


def transaction_signature(transaction: Transaction) -> str:
    """The fee payer's signature, which identifies the transaction."""
    return str(transaction.signatures[0])
