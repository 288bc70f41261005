#!/usr/bin/env python3
"""
Error types raised by the swap pipeline.

Every error is fatal to a single run; the pipeline records it against the
stage that raised it and stops.
"""

from __future__ import annotations

from typing import Optional


class SwapError(Exception):
    """Base class for everything the pipeline knows how to report."""


class ConfigError(SwapError):
    pass


class _HttpError(SwapError):
    def __init__(self, msg: str, *, url: str, status: Optional[int] = None,
                 body: str = "") -> None:
        super().__init__(f"{msg}: {url} → {status}: {body[:300]}")
        self.url = url
        self.status = status
        self.body = body


class QuoteUnavailable(_HttpError):
    """Jupiter /quote failed or returned no route."""


class SwapBuildFailed(_HttpError):
    """Jupiter /swap (or /swap-instructions) failed or returned junk."""


class TransactionDecodeError(SwapError):
    pass


class LookupTableNotFound(SwapError):
    def __init__(self, account_key, reason: str = "not returned by RPC") -> None:
        super().__init__(f"Address lookup table {account_key} {reason}")
        self.account_key = account_key


LookupTableMissing = LookupTableNotFound


class DecompileError(SwapError):
    """Message could not be turned into instructions or back again."""


class SigningError(SwapError):
    pass


class SubmissionRejected(SwapError):
    def __init__(self, msg: str, *, endpoint: str) -> None:
        super().__init__(f"{endpoint}: {msg}")
        self.endpoint = endpoint


class ConfirmationTimedOut(SwapError):
    def __init__(self, msg: str, *, signature) -> None:
        super().__init__(f"{signature}: {msg}")
        self.signature = signature


class BlockhashExpired(ConfirmationTimedOut):
    def __init__(self, *, signature, last_valid_block_height: int) -> None:
        super().__init__(
            f"blockhash expired past height {last_valid_block_height}",
            signature=signature,
        )
        self.last_valid_block_height = last_valid_block_height


class TransactionFailed(SwapError):
    """Landed on chain but the runtime returned an error."""

    def __init__(self, *, signature, err) -> None:
        super().__init__(f"{signature} failed on chain: {err}")
        self.signature = signature
        self.err = err
