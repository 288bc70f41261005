#!/usr/bin/env python3
"""
Swap SOL → USDC through Jupiter and land it via Nozomi.

    NOZOMI_UUID=... PRIVATE_KEY='[1,2,...]' python main.py --amount 100000000

Exit status: 0 confirmed, 1 pipeline failure, 2 bad configuration.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from config import SwapConfig, load_keypair
from errors import ConfigError
from session import MODES, SwapSession

log = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Jupiter swap with a Nozomi tip.")
    p.add_argument("--input-mint", default=None, help="defaults to wSOL")
    p.add_argument("--output-mint", default=None, help="defaults to USDC")
    p.add_argument("--amount", type=int, default=None,
                   help="input amount in smallest units (default 0.1 SOL)")
    p.add_argument("--slippage-bps", type=int, default=None)
    p.add_argument("--tip-lamports", type=int, default=None)
    p.add_argument("--mode", choices=MODES, default="transaction",
                   help="patch Jupiter's /swap tx, or assemble from /swap-instructions")
    p.add_argument("--log-level", default=None)
    return p.parse_args(argv)


async def run(cfg: SwapConfig, kp, mode: str) -> int:
    async with SwapSession(cfg, kp) as session:
        outcome = await session.swap(mode)
    if not outcome.ok:
        log.error("Swap failed at stage %s: %s", outcome.failed_stage, outcome.error)
        return 1
    log.info("Swap %s confirmed in %.2fs", outcome.receipt.signature, outcome.receipt.elapsed_s)
    return 0


def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(args.log_level or os.getenv("LOG_LEVEL", "INFO"))

    try:
        cfg = SwapConfig.from_env(
            os.environ,
            input_mint=args.input_mint,
            output_mint=args.output_mint,
            amount=args.amount,
            slippage_bps=args.slippage_bps,
            tip_lamports=args.tip_lamports,
        )
        kp = load_keypair(os.getenv("PRIVATE_KEY"))
    except (ConfigError, ValueError) as exc:
        log.error("Configuration error: %s", exc)
        return 2

    try:
        return asyncio.run(run(cfg, kp, args.mode))
    except Exception:
        log.exception("Unhandled failure")
        return 1


if __name__ == "__main__":
    sys.exit(main())
