#!/usr/bin/env python3
"""
Minimal Jupiter REST helper.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Type

import requests
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from config import SwapConfig
from errors import QuoteUnavailable, SwapBuildFailed, _HttpError

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------

def _req(url: str, error: Type[_HttpError], method: str = "get",
         timeout: float = 8, **kw) -> Dict:
    """One wrapper for all HTTP calls (raises `error` on non-200)."""
    try:
        r = requests.request(method, url, timeout=timeout, **kw)
    except requests.RequestException as exc:
        raise error(f"request failed ({exc})", url=url) from exc

    if r.status_code != 200:
        raise error("bad status", url=url, status=r.status_code, body=r.text)
    try:
        data = r.json()
    except ValueError as exc:
        raise error("non-JSON body", url=url, status=r.status_code, body=r.text) from exc
    if not isinstance(data, dict):
        raise error("unexpected payload", url=url, status=r.status_code, body=r.text)
    return data

# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def get_quote(cfg: SwapConfig) -> Dict:
    """GET /quote. The response is passed through untouched."""
    url = f"{cfg.jupiter_url}/quote"
    params = dict(
        inputMint=cfg.input_mint,
        outputMint=cfg.output_mint,
        amount=cfg.amount,
        # stable intermediate hops only; keeps slippage down
        restrictIntermediateTokens=str(cfg.restrict_intermediate_tokens).lower(),
        slippageBps=cfg.slippage_bps,
    )
    rsp = _req(url, QuoteUnavailable, params=params, timeout=cfg.http_timeout)

    if "outAmount" not in rsp:
        raise QuoteUnavailable("no route", url=url, status=200, body=str(rsp))

    log.info("Quote %s %s → %s %s (%s bps)",
             rsp.get("inAmount"), cfg.input_mint, rsp.get("outAmount"),
             cfg.output_mint, cfg.slippage_bps)
    return rsp


def _swap_body(quote: Dict, user_pubkey: str, cfg: SwapConfig) -> Dict:
    return {
        "quoteResponse": quote,
        "userPublicKey": user_pubkey,
        "wrapAndUnwrapSol": cfg.wrap_and_unwrap_sol,
    }


def build_swap_tx(quote: Dict, user_pubkey: str, cfg: SwapConfig) -> bytes:
    """POST /swap → raw (unsigned) transaction bytes."""
    url = f"{cfg.jupiter_url}/swap"
    rsp = _req(url, SwapBuildFailed, method="post",
               json=_swap_body(quote, user_pubkey, cfg), timeout=cfg.http_timeout)

    raw_b64 = rsp.get("swapTransaction")
    if not isinstance(raw_b64, str):
        raise SwapBuildFailed("missing swapTransaction", url=url, status=200, body=str(rsp))
    try:
        return base64.b64decode(raw_b64, validate=True)
    except ValueError as exc:
        raise SwapBuildFailed("swapTransaction is not base64", url=url, status=200,
                              body=raw_b64) from exc

# ---------------------------------------------------------------------------
# /swap-instructions
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class SwapInstructions:
    swap_instruction: Instruction
    compute_budget_instructions: List[Instruction] = field(default_factory=list)
    setup_instructions: List[Instruction] = field(default_factory=list)
    other_instructions: List[Instruction] = field(default_factory=list)
    token_ledger_instruction: Optional[Instruction] = None
    cleanup_instruction: Optional[Instruction] = None
    address_lookup_table_addresses: List[Pubkey] = field(default_factory=list)


def parse_instruction(obj: Dict) -> Instruction:
    """Jupiter's JSON instruction → solders `Instruction`."""
    accounts = [
        AccountMeta(Pubkey.from_string(a["pubkey"]), bool(a["isSigner"]), bool(a["isWritable"]))
        for a in obj.get("accounts", [])
    ]
    return Instruction(
        Pubkey.from_string(obj["programId"]),
        base64.b64decode(obj.get("data", "")),
        accounts,
    )


def get_swap_instructions(quote: Dict, user_pubkey: str, cfg: SwapConfig) -> SwapInstructions:
    url = f"{cfg.jupiter_url}/swap-instructions"
    rsp = _req(url, SwapBuildFailed, method="post",
               json=_swap_body(quote, user_pubkey, cfg), timeout=cfg.http_timeout)
    if "error" in rsp:
        raise SwapBuildFailed(str(rsp["error"]), url=url, status=200, body=str(rsp))

    def _opt(key: str) -> Optional[Instruction]:
        return parse_instruction(rsp[key]) if rsp.get(key) else None

    def _many(key: str) -> List[Instruction]:
        return [parse_instruction(ix) for ix in rsp.get(key) or []]

    try:
        return SwapInstructions(
            swap_instruction=parse_instruction(rsp["swapInstruction"]),
            compute_budget_instructions=_many("computeBudgetInstructions"),
            setup_instructions=_many("setupInstructions"),
            other_instructions=_many("otherInstructions"),
            token_ledger_instruction=_opt("tokenLedgerInstruction"),
            cleanup_instruction=_opt("cleanupInstruction"),
            address_lookup_table_addresses=[
                Pubkey.from_string(a) for a in rsp.get("addressLookupTableAddresses") or []
            ],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SwapBuildFailed(f"malformed instructions ({exc})", url=url, status=200,
                              body=str(rsp)) from exc
