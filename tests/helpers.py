"""
Test doubles: throwaway keys, a Jupiter-shaped v0 transaction, serialized
lookup-table accounts and an in-memory stand-in for RpcPool.
"""

from __future__ import annotations

import struct
from types import SimpleNamespace
from unittest.mock import AsyncMock

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from rpc_pool import LatestBlockhash

PLACEHOLDER_HASH = Hash(bytes([1] * 32))
LATEST_HASH = Hash(bytes([7] * 32))
def alt_account_data(addresses, authority: Pubkey | None = None) -> bytes:
    """On-chain layout: u32 tag, u64 deactivation, u64 last ext, u8 start idx,
    Option<Pubkey> authority, u16 padding (56 bytes) then 32-byte keys."""
    meta = struct.pack("<IQQB", 1, 2**64 - 1, 0, 0)
    meta += b"\x01" + bytes(authority or Pubkey.new_unique())
    meta += b"\x00\x00"
    return meta + b"".join(bytes(a) for a in addresses)


def swap_like_ix(payer: Pubkey, writable: Pubkey, readonly: Pubkey,
                 program: Pubkey | None = None) -> Instruction:
    return Instruction(
        program or Pubkey.new_unique(),
        b"\x09swap",
        [
            AccountMeta(payer, True, True),
            AccountMeta(writable, False, True),
            AccountMeta(readonly, False, False),
        ],
    )


def make_swap_tx(payer: Pubkey, ixs, tables=(), blockhash: Hash = PLACEHOLDER_HASH):
    """Unsigned v0 tx, zeroed signature slot, like Jupiter's /swap."""
    msg = MessageV0.try_compile(payer, list(ixs), list(tables), blockhash)
    return VersionedTransaction.populate(msg, [Signature.default()])


class FakePool:
    """Records lookups; `accounts` maps table key → raw account data."""

    def __init__(self, accounts=None, blockhash: Hash = LATEST_HASH) -> None:
        self.accounts = dict(accounts or {})
        self.lookups = []
        self.blockhash = LatestBlockhash(blockhash, 4242)
        self.submitted = Keypair().sign_message(b"txid")
        self.submit = AsyncMock(return_value=self.submitted)
        self.confirm = AsyncMock(return_value=None)
        self.close = AsyncMock()

    async def get_account_info(self, key):
        self.lookups.append(key)
        data = self.accounts.get(key)
        return SimpleNamespace(value=None if data is None else SimpleNamespace(data=data))

    async def latest_blockhash(self):
        return self.blockhash


