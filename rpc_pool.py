#!/usr/bin/env python3
"""
Async RPC pair.

Keeps the general-purpose `AsyncClient` (blockhashes, lookup tables,
confirmation) and the Nozomi relay `AsyncClient` (submission only).
"""

from __future__ import annotations

import asyncio
import logging
from typing import NamedTuple

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import (
    RPCException,
    RPCNoResultException,
    TransactionExpiredBlockheightExceededError,
    UnconfirmedTxError,
)
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from config import SwapConfig
from errors import (
    BlockhashExpired,
    ConfirmationTimedOut,
    SubmissionRejected,
    TransactionFailed,
)

log = logging.getLogger(__name__)


class LatestBlockhash(NamedTuple):
    blockhash: Hash
    last_valid_block_height: int


class RpcPool:
    """Owns two `AsyncClient`s: `primary` (ledger) and `relay` (Nozomi)."""

    def __init__(self, cfg: SwapConfig,
                 primary: AsyncClient | None = None,
                 relay: AsyncClient | None = None) -> None:
        self.commitment = Commitment(cfg.commitment)
        self.skip_preflight = cfg.skip_preflight
        self.max_retries = cfg.max_retries
        self._relay_name = cfg.nozomi_url            # no uuid in logs / errors

        self.primary = primary or AsyncClient(cfg.rpc_url, commitment=self.commitment)
        self.relay = relay or AsyncClient(cfg.relay_endpoint)

    # ───────────────────────────── ledger ─────────────────────────────
    async def latest_blockhash(self) -> LatestBlockhash:
        resp = await self.primary.get_latest_blockhash(self.commitment)
        return LatestBlockhash(resp.value.blockhash, resp.value.last_valid_block_height)

    async def get_account_info(self, key: Pubkey):
        return await self.primary.get_account_info(key)

    # ───────────────────────────── relay ──────────────────────────────
    async def submit(self, tx: VersionedTransaction) -> Signature:
        opts = TxOpts(skip_preflight=self.skip_preflight, max_retries=self.max_retries)
        log.debug("sending %d bytes to %s", len(bytes(tx)), self._relay_name)
        try:
            resp = await self.relay.send_raw_transaction(bytes(tx), opts=opts)
        except (RPCException, RPCNoResultException, SolanaRpcException) as exc:
            raise SubmissionRejected(str(exc), endpoint=self._relay_name) from exc
        return resp.value

    async def confirm(self, sig: Signature, blockhash: LatestBlockhash) -> None:
        """Poll the ledger endpoint until confirmed or the blockhash window closes."""
        try:
            resp = await self.primary.confirm_transaction(
                sig,
                self.commitment,
                last_valid_block_height=blockhash.last_valid_block_height,
            )
        except TransactionExpiredBlockheightExceededError as exc:
            raise BlockhashExpired(
                signature=sig,
                last_valid_block_height=blockhash.last_valid_block_height,
            ) from exc
        except UnconfirmedTxError as exc:
            raise ConfirmationTimedOut(str(exc), signature=sig) from exc

        status = resp.value[0] if resp.value else None
        if status is not None and status.err is not None:
            raise TransactionFailed(signature=sig, err=status.err)

    async def close(self) -> None:
        await asyncio.gather(
            self.primary.close(), self.relay.close(), return_exceptions=True
        )
