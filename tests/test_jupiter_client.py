"""
test_jupiter_client.py: Jupiter REST wrapper.

Tests:
    1. /quote gets the documented query parameters
    2. amount = 0 is passed through to the API untouched
    3. HTTP / payload failures map to QuoteUnavailable / SwapBuildFailed
    4. /swap body shape and base64 decoding
    5. /swap-instructions JSON → solders Instructions
"""

import base64
from unittest.mock import MagicMock, patch

import pytest
import requests
from solders.pubkey import Pubkey

import jupiter_client
from config import SwapConfig
from errors import QuoteUnavailable, SwapBuildFailed

QUOTE = {"inAmount": "100000000", "outAmount": "17000000", "routePlan": []}


def _resp(status=200, payload=None, text=""):
    r = MagicMock()
    r.status_code = status
    r.text = text
    r.json.return_value = payload
    return r


# ─── /quote ──────────────────────────────────────────────────────────────────

class TestGetQuote:
    def test_query_parameters(self, cfg):
        with patch.object(jupiter_client.requests, "request", return_value=_resp(payload=QUOTE)) as req:
            assert jupiter_client.get_quote(cfg) == QUOTE

        method, url = req.call_args.args
        params = req.call_args.kwargs["params"]
        assert method == "get"
        assert url == "https://jup.test/v6/quote"
        assert params == {
            "inputMint": "So11111111111111111111111111111111111111112",
            "outputMint": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
            "amount": 100_000_000,
            "restrictIntermediateTokens": "true",
            "slippageBps": 50,
        }

    def test_zero_amount_passes_through_unchanged(self):
        cfg = SwapConfig(nozomi_uuid="u", amount=0)
        with patch.object(jupiter_client.requests, "request", return_value=_resp(payload=QUOTE)) as req:
            jupiter_client.get_quote(cfg)
        assert req.call_args.kwargs["params"]["amount"] == 0

    def test_negative_amount_rejected_before_any_call(self):
        with pytest.raises(ValueError):
            SwapConfig(nozomi_uuid="u", amount=-1)

    def test_payload_forwarded_untouched(self, cfg):
        quote = dict(QUOTE, data={"contextSlot": 1})
        with patch.object(jupiter_client.requests, "request", return_value=_resp(payload=quote)):
            assert jupiter_client.get_quote(cfg) is quote

    def test_non_200_carries_status_and_url(self, cfg):
        with patch.object(jupiter_client.requests, "request",
                          return_value=_resp(status=400, text="Could not find any route")):
            with pytest.raises(QuoteUnavailable) as ei:
                jupiter_client.get_quote(cfg)
        assert ei.value.status == 400
        assert ei.value.url == "https://jup.test/v6/quote"
        assert "Could not find any route" in str(ei.value)

    def test_missing_out_amount(self, cfg):
        with patch.object(jupiter_client.requests, "request",
                          return_value=_resp(payload={"error": "nope"})):
            with pytest.raises(QuoteUnavailable):
                jupiter_client.get_quote(cfg)

    def test_connection_error(self, cfg):
        with patch.object(jupiter_client.requests, "request",
                          side_effect=requests.ConnectionError("refused")):
            with pytest.raises(QuoteUnavailable) as ei:
                jupiter_client.get_quote(cfg)
        assert ei.value.status is None

    def test_non_json_body(self, cfg):
        r = _resp(text="<html>")
        r.json.side_effect = ValueError("no json")
        with patch.object(jupiter_client.requests, "request", return_value=r):
            with pytest.raises(QuoteUnavailable):
                jupiter_client.get_quote(cfg)


# ─── /swap ───────────────────────────────────────────────────────────────────

class TestBuildSwapTx:
    def test_body_and_decoding(self, cfg):
        raw = b"\x01" + b"\x00" * 64 + b"message"
        payload = {"swapTransaction": base64.b64encode(raw).decode()}
        with patch.object(jupiter_client.requests, "request", return_value=_resp(payload=payload)) as req:
            out = jupiter_client.build_swap_tx(QUOTE, "Owner111", cfg)

        assert out == raw
        method, url = req.call_args.args
        assert (method, url) == ("post", "https://jup.test/v6/swap")
        assert req.call_args.kwargs["json"] == {
            "quoteResponse": QUOTE,
            "userPublicKey": "Owner111",
            "wrapAndUnwrapSol": True,
        }

    def test_missing_transaction(self, cfg):
        with patch.object(jupiter_client.requests, "request", return_value=_resp(payload={})):
            with pytest.raises(SwapBuildFailed):
                jupiter_client.build_swap_tx(QUOTE, "Owner111", cfg)

    def test_server_error(self, cfg):
        with patch.object(jupiter_client.requests, "request", return_value=_resp(status=500, text="boom")):
            with pytest.raises(SwapBuildFailed) as ei:
                jupiter_client.build_swap_tx(QUOTE, "Owner111", cfg)
        assert ei.value.status == 500


# ─── /swap-instructions ─────────────────────────────────────────────────────

def _ix_json(program, data=b"\x01"):
    return {
        "programId": str(program),
        "accounts": [{"pubkey": str(program), "isSigner": False, "isWritable": True}],
        "data": base64.b64encode(data).decode(),
    }


def test_swap_instructions_parsed(cfg):
    swap_prog, cb_prog, alt = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
    payload = {
        "computeBudgetInstructions": [_ix_json(cb_prog, b"cb")],
        "setupInstructions": [],
        "swapInstruction": _ix_json(swap_prog, b"swap"),
        "cleanupInstruction": None,
        "addressLookupTableAddresses": [str(alt)],
    }
    with patch.object(jupiter_client.requests, "request", return_value=_resp(payload=payload)):
        out = jupiter_client.get_swap_instructions(QUOTE, "Owner111", cfg)

    assert out.swap_instruction.program_id == swap_prog
    assert bytes(out.swap_instruction.data) == b"swap"
    assert out.swap_instruction.accounts[0].is_writable is True
    assert [bytes(i.data) for i in out.compute_budget_instructions] == [b"cb"]
    assert out.cleanup_instruction is None
    assert out.token_ledger_instruction is None
    assert out.address_lookup_table_addresses == [alt]


def test_swap_instructions_error_field(cfg):
    with patch.object(jupiter_client.requests, "request",
                      return_value=_resp(payload={"error": "slippage"})):
        with pytest.raises(SwapBuildFailed):
            jupiter_client.get_swap_instructions(QUOTE, "Owner111", cfg)
