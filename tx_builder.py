#!/usr/bin/env python3
"""
Rebuild a Jupiter swap transaction with a Nozomi tip appended.

decode → decompile (needs resolved ALTs) → append tip → recompile against the
same ALTs → stamp the freshly fetched blockhash.
"""

from __future__ import annotations

import base64
import binascii
from typing import List, Sequence, Tuple, Union

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.errors import BincodeError
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from errors import DecompileError, TransactionDecodeError


def decode_swap_transaction(raw: Union[bytes, str]) -> VersionedTransaction:
    """Accepts raw bytes or the base64 string Jupiter hands back."""
    try:
        if isinstance(raw, str):
            raw = base64.b64decode(raw, validate=True)
        return VersionedTransaction.from_bytes(raw)
    except (binascii.Error, BincodeError, ValueError) as exc:
        raise TransactionDecodeError(f"cannot decode swap transaction: {exc}") from exc


def tip_instruction(payer: Pubkey, tip_address: Pubkey, lamports: int) -> Instruction:
    return transfer(TransferParams(from_pubkey=payer, to_pubkey=tip_address, lamports=lamports))


# ───────────────────────── decompile / compile ────────────────────────────
def _account_metas(message, lookup_tables: Sequence[AddressLookupTableAccount]) -> List[AccountMeta]:
    """
    Full key list in index order: static keys, then every table's writable
    loads, then every table's readonly loads.
    """
    hdr = message.header
    keys = list(message.account_keys)
    n_static = len(keys)
    n_sig = hdr.num_required_signatures

    metas = []
    for i, key in enumerate(keys):
        if i < n_sig:
            writable = i < n_sig - hdr.num_readonly_signed_accounts
        else:
            writable = i < n_static - hdr.num_readonly_unsigned_accounts
        metas.append(AccountMeta(key, i < n_sig, writable))

    lookups = getattr(message, "address_table_lookups", None) or []
    if not lookups:
        return metas

    by_key = {t.key: t for t in lookup_tables}
    writable_loads, readonly_loads = [], []
    for lk in lookups:
        table = by_key.get(lk.account_key)
        if table is None:
            raise DecompileError(f"lookup table {lk.account_key} was not resolved")
        addrs = table.addresses
        try:
            writable_loads += [addrs[j] for j in lk.writable_indexes]
            readonly_loads += [addrs[j] for j in lk.readonly_indexes]
        except IndexError as exc:
            raise DecompileError(
                f"index out of range for lookup table {lk.account_key} ({len(addrs)} entries)"
            ) from exc

    metas += [AccountMeta(k, False, True) for k in writable_loads]
    metas += [AccountMeta(k, False, False) for k in readonly_loads]
    return metas


def decompile_message(message, lookup_tables: Sequence[AddressLookupTableAccount] = ()
                      ) -> Tuple[Pubkey, List[Instruction]]:
    """Compiled message (legacy or v0) → (payer, editable instruction list)."""
    metas = _account_metas(message, lookup_tables)
    if not metas:
        raise DecompileError("message has no account keys")

    ixs = []
    try:
        for cix in message.instructions:
            ixs.append(Instruction(
                metas[cix.program_id_index].pubkey,
                bytes(cix.data),
                [metas[j] for j in cix.accounts],
            ))
    except IndexError as exc:
        raise DecompileError("instruction references an unknown account index") from exc

    return metas[0].pubkey, ixs


def compile_message(payer: Pubkey, instructions: Sequence[Instruction],
                    lookup_tables: Sequence[AddressLookupTableAccount],
                    blockhash: Hash) -> MessageV0:
    try:
        return MessageV0.try_compile(payer, list(instructions), list(lookup_tables), blockhash)
    except ValueError as exc:
        raise DecompileError(f"recompile failed: {exc}") from exc


def with_blockhash(message: MessageV0, blockhash: Hash) -> MessageV0:
    return MessageV0(
        message.header,
        list(message.account_keys),
        blockhash,
        list(message.instructions),
        list(message.address_table_lookups),
    )


# ───────────────────────── the two build paths ───────────────────────────
def augment_swap_transaction(tx: VersionedTransaction,
                             lookup_tables: Sequence[AddressLookupTableAccount],
                             blockhash: Hash,
                             tip_ix: Instruction) -> MessageV0:
    """
    Jupiter /swap tx + resolved ALTs → v0 message with `tip_ix` as the last
    instruction and `blockhash` as its recent blockhash.
    """
    message = tx.message
    payer, ixs = decompile_message(message, lookup_tables)
    ixs.append(tip_ix)
    rebuilt = compile_message(payer, ixs, lookup_tables, message.recent_blockhash)
    return with_blockhash(rebuilt, blockhash)


def assemble_from_instructions(payer: Pubkey, swap_ixs, tip_ix: Instruction,
                               lookup_tables: Sequence[AddressLookupTableAccount],
                               blockhash: Hash) -> MessageV0:
    """Jupiter /swap-instructions payload → v0 message; tip sits right after the swap."""
    ixs: List[Instruction] = []
    if swap_ixs.token_ledger_instruction is not None:
        ixs.append(swap_ixs.token_ledger_instruction)
    ixs += swap_ixs.compute_budget_instructions
    ixs += swap_ixs.setup_instructions
    ixs += [swap_ixs.swap_instruction, tip_ix]
    ixs += swap_ixs.other_instructions
    if swap_ixs.cleanup_instruction is not None:
        ixs.append(swap_ixs.cleanup_instruction)
    return compile_message(payer, ixs, lookup_tables, blockhash)
