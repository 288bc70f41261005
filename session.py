#!/usr/bin/env python3
"""
High-level session: quote → build → resolve → blockhash → augment → sign →
submit → confirm, one stage at a time.

Each stage raises a `SwapError` on failure; `swap()` turns that into a
`StageResult` and stops, so nothing after a failed stage runs (in particular
nothing is signed once decompilation has failed).
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from solders.keypair import Keypair
from solders.signature import Signature

import jupiter_client
from config import SwapConfig
from errors import SwapError
from lookup_tables import resolve_lookup_table_addresses, resolve_lookup_tables
from rpc_pool import LatestBlockhash, RpcPool
from signer import sign_message
from tx_builder import (
    assemble_from_instructions,
    augment_swap_transaction,
    decode_swap_transaction,
    tip_instruction,
)

log = logging.getLogger(__name__)

MODES = ("transaction", "instructions")


@dataclass(frozen=True)
class StageResult:
    stage: str
    ok: bool
    value: Any = None
    error: Optional[SwapError] = None

    @classmethod
    def success(cls, stage: str, value: Any = None) -> "StageResult":
        return cls(stage, True, value=value)

    @classmethod
    def failure(cls, stage: str, error: SwapError) -> "StageResult":
        return cls(stage, False, error=error)


@dataclass(slots=True)
class SwapReceipt:
    signature: Signature
    blockhash: LatestBlockhash
    elapsed_s: float
    quote: Dict
    tip_lamports: int


@dataclass
class PipelineOutcome:
    results: List[StageResult] = field(default_factory=list)
    receipt: Optional[SwapReceipt] = None

    @property
    def ok(self) -> bool:
        return self.receipt is not None and all(r.ok for r in self.results)

    @property
    def failed_stage(self) -> Optional[str]:
        return next((r.stage for r in self.results if not r.ok), None)

    @property
    def error(self) -> Optional[SwapError]:
        return next((r.error for r in self.results if not r.ok), None)

    def stages(self) -> List[str]:
        return [r.stage for r in self.results]


@dataclass
class _SwapState:
    mode: str
    quote: Dict = field(default_factory=dict)
    built: Any = None                 # VersionedTransaction | SwapInstructions
    tables: List = field(default_factory=list)
    blockhash: Optional[LatestBlockhash] = None
    message: Any = None
    tx: Any = None
    signature: Optional[Signature] = None
    started: float = 0.0
    elapsed_s: float = 0.0


class SwapSession:
    """Runs one Nozomi-tipped Jupiter swap for `kp`."""

    def __init__(self, cfg: SwapConfig, kp: Keypair, pool: RpcPool | None = None,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.cfg = cfg
        self.kp = kp
        self._owns_pool = pool is None
        self.pool = pool or RpcPool(cfg)
        self._clock = clock

    async def __aenter__(self) -> "SwapSession":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_pool:
            await self.pool.close()

    # ───────────────────────── pipeline ───────────────────────────────
    async def swap(self, mode: str = "transaction") -> PipelineOutcome:
        if mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {mode!r}")

        state = _SwapState(mode=mode)
        outcome = PipelineOutcome()
        stages = [
            ("quote",     self._quote),
            ("build",     self._build),
            ("resolve",   self._resolve),
            ("blockhash", self._blockhash),
            ("augment",   self._augment),
            ("sign",      self._sign),
            ("submit",    self._submit),
            ("confirm",   self._confirm),
        ]
        for name, fn in stages:
            res = await self._run_stage(name, fn, state)
            outcome.results.append(res)
            if not res.ok:
                log.error("Swap aborted at %s: %s", name, res.error)
                return outcome

        outcome.receipt = SwapReceipt(
            signature=state.signature,
            blockhash=state.blockhash,
            elapsed_s=state.elapsed_s,
            quote=state.quote,
            tip_lamports=self.cfg.tip_lamports,
        )
        return outcome

    async def _run_stage(self, name: str, fn, state: _SwapState) -> StageResult:
        log.debug("stage %s: start", name)
        try:
            value = await fn(state)
        except SwapError as exc:
            return StageResult.failure(name, exc)
        except Exception as exc:
            err = SwapError(f"{name}: unexpected {type(exc).__name__}: {exc}")
            err.__cause__ = exc
            return StageResult.failure(name, err)
        log.debug("stage %s: done", name)
        return StageResult.success(name, value)

    # ───────────────────────── stages ─────────────────────────────────
    async def _quote(self, state: _SwapState) -> Dict:
        state.quote = await asyncio.to_thread(jupiter_client.get_quote, self.cfg)
        return state.quote

    async def _build(self, state: _SwapState):
        owner = str(self.kp.pubkey())
        if state.mode == "instructions":
            state.built = await asyncio.to_thread(
                jupiter_client.get_swap_instructions, state.quote, owner, self.cfg
            )
        else:
            raw = await asyncio.to_thread(
                jupiter_client.build_swap_tx, state.quote, owner, self.cfg
            )
            state.built = decode_swap_transaction(raw)
        return state.built

    async def _resolve(self, state: _SwapState) -> List:
        if state.mode == "instructions":
            keys = state.built.address_lookup_table_addresses
            state.tables = await resolve_lookup_table_addresses(self.pool, keys)
        else:
            state.tables = await resolve_lookup_tables(self.pool, state.built.message)
        return state.tables

    async def _blockhash(self, state: _SwapState) -> LatestBlockhash:
        state.blockhash = await self.pool.latest_blockhash()
        return state.blockhash

    async def _augment(self, state: _SwapState):
        payer = self.kp.pubkey()
        tip = tip_instruction(payer, self.cfg.tip_address, self.cfg.tip_lamports)
        if state.mode == "instructions":
            state.message = assemble_from_instructions(
                payer, state.built, tip, state.tables, state.blockhash.blockhash
            )
        else:
            state.message = augment_swap_transaction(
                state.built, state.tables, state.blockhash.blockhash, tip
            )
        return state.message

    async def _sign(self, state: _SwapState):
        state.tx = sign_message(state.message, self.kp)
        return state.tx

    async def _submit(self, state: _SwapState) -> Signature:
        state.started = self._clock()
        state.signature = await self.pool.submit(state.tx)
        log.info("Nozomi response: txid: %s", state.signature)
        return state.signature

    async def _confirm(self, state: _SwapState) -> float:
        await self.pool.confirm(state.signature, state.blockhash)
        state.elapsed_s = self._clock() - state.started
        log.info("Confirmed in: %.2f seconds", state.elapsed_s)
        return state.elapsed_s
