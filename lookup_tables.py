#!/usr/bin/env python3
"""
Address-lookup-table resolution.

A v0 message only carries table keys + indexes; to decompile it we need the
tables' current on-chain contents. One `getAccountInfo` per table, issued in
message order; reference counts are tiny (0-2) so there is no batching.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from solders.address_lookup_table_account import (
    AddressLookupTable,
    AddressLookupTableAccount,
)
from solders.pubkey import Pubkey

from errors import LookupTableNotFound

log = logging.getLogger(__name__)


async def fetch_lookup_table(client, key: Pubkey) -> AddressLookupTableAccount:
    """`client` is anything with an async `get_account_info` (AsyncClient, RpcPool)."""
    resp = await client.get_account_info(key)
    account = resp.value
    if account is None:
        raise LookupTableNotFound(key)

    try:
        table = AddressLookupTable.deserialize(bytes(account.data))
    except ValueError as exc:
        raise LookupTableNotFound(key, "is not a valid lookup table") from exc

    log.debug("ALT %s: %d addresses", key, len(table.addresses))
    return AddressLookupTableAccount(key, list(table.addresses))


async def resolve_lookup_table_addresses(client, keys: Iterable[Pubkey]) -> List[AddressLookupTableAccount]:
    tables: List[AddressLookupTableAccount] = []
    for key in keys:
        tables.append(await fetch_lookup_table(client, key))
    return tables


async def resolve_lookup_tables(client, message) -> List[AddressLookupTableAccount]:
    """
    Resolve every table referenced by `message`, same order as
    `message.address_table_lookups`. Legacy messages have none → [].
    """
    lookups = getattr(message, "address_table_lookups", None) or []
    return await resolve_lookup_table_addresses(client, [lk.account_key for lk in lookups])
