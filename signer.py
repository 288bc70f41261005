#!/usr/bin/env python3
"""Sign a rebuilt swap message with the payer's Ed25519 key."""

from solders.keypair import Keypair
from solders.message import MessageV0, to_bytes_versioned
from solders.transaction import VersionedTransaction

from errors import SigningError


def sign_message(message: MessageV0, kp: Keypair) -> VersionedTransaction:
    """
    Single-signer only: the fee payer (account 0) must be `kp`.
    Signs the versioned payload (0x80 prefix + message) and returns a
    ready-to-send `VersionedTransaction`.
    """
    if message.header.num_required_signatures != 1:
        raise SigningError(
            f"expected 1 required signature, message wants "
            f"{message.header.num_required_signatures}"
        )
    if message.account_keys[0] != kp.pubkey():
        raise SigningError(f"fee payer {message.account_keys[0]} is not {kp.pubkey()}")

    sig = kp.sign_message(to_bytes_versioned(message))
    return VersionedTransaction.populate(message, [sig])
