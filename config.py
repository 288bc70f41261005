#!/usr/bin/env python3
"""
Runtime settings for a single Nozomi-tipped Jupiter swap.

Everything that used to be a module-level literal (tip address, tip size,
endpoints, default pair) lives on `SwapConfig` so tests can swap values
without touching the environment.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

import base58
from dotenv import load_dotenv
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from errors import ConfigError

LAMPORTS_PER_SOL = 1_000_000_000

DEFAULT_RPC_URL     = "https://api.mainnet-beta.solana.com"
DEFAULT_NOZOMI_URL  = "http://ams1.nozomi.temporal.xyz/"
DEFAULT_JUPITER_URL = "https://quote-api.jup.ag/v6"

WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
NOZOMI_TIP_ADDRESS = Pubkey.from_string("TEMPaMeCRFAS9EKF53Jd6KpHxgL47uWLcpFArU1Fanq")


@dataclass(slots=True)
class SwapConfig:
    nozomi_uuid: str
    rpc_url: str = DEFAULT_RPC_URL
    nozomi_url: str = DEFAULT_NOZOMI_URL
    jupiter_url: str = DEFAULT_JUPITER_URL

    tip_address: Pubkey = field(default_factory=lambda: NOZOMI_TIP_ADDRESS)
    tip_lamports: int = LAMPORTS_PER_SOL // 1000           # 0.001 SOL

    # SOL → USDC, 0.1 SOL, 0.5 % slippage
    input_mint: str = WSOL_MINT
    output_mint: str = USDC_MINT
    amount: int = LAMPORTS_PER_SOL // 10
    slippage_bps: int = 50
    restrict_intermediate_tokens: bool = True
    wrap_and_unwrap_sol: bool = True

    skip_preflight: bool = True
    max_retries: int = 2
    commitment: str = "confirmed"
    http_timeout: float = 8.0

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("amount must not be negative")
        if self.slippage_bps < 0:
            raise ValueError("slippage_bps must not be negative")
        if self.tip_lamports < 0:
            raise ValueError("tip_lamports must not be negative")

    @property
    def relay_endpoint(self) -> str:
        return f"{self.nozomi_url}?c={self.nozomi_uuid}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "SwapConfig":
        """
        Build from `env` (defaults to os.environ after loading `.env`).
        Keyword overrides win over the environment.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        uuid = env.get("NOZOMI_UUID")
        if not uuid:
            raise ConfigError("NOZOMI_UUID not set")

        kw = dict(
            nozomi_uuid=uuid,
            rpc_url=env.get("RPC_URL") or DEFAULT_RPC_URL,
            nozomi_url=env.get("NOZOMI_URL") or DEFAULT_NOZOMI_URL,
            jupiter_url=(env.get("JUPITER_URL") or DEFAULT_JUPITER_URL).rstrip("/"),
        )
        try:
            if env.get("NOZOMI_TIP_LAMPORTS"):
                kw["tip_lamports"] = int(env["NOZOMI_TIP_LAMPORTS"])
            if env.get("SLIPPAGE_BPS"):
                kw["slippage_bps"] = int(env["SLIPPAGE_BPS"])
        except ValueError as exc:
            raise ConfigError(f"bad numeric setting: {exc}") from exc

        kw.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kw)


def load_keypair(value: Optional[str]) -> Keypair:
    """
    Parse PRIVATE_KEY: either a JSON byte array (solana-keygen format)
    or a base58 secret string.
    """
    if not value or not value.strip():
        raise ConfigError("PRIVATE_KEY not set")
    value = value.strip()

    try:
        if value.startswith("["):
            secret = bytes(json.loads(value))
        else:
            secret = base58.b58decode(value)
    except (ValueError, TypeError) as exc:
        # never echo the secret itself
        raise ConfigError(f"PRIVATE_KEY could not be parsed ({type(exc).__name__})") from exc

    if len(secret) != 64:
        raise ConfigError(f"PRIVATE_KEY must decode to 64 bytes, got {len(secret)}")
    try:
        return Keypair.from_bytes(secret)
    except ValueError as exc:
        raise ConfigError("PRIVATE_KEY is not a valid ed25519 keypair") from exc
