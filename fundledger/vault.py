"""
vault.py - Vault diff and counter reconciliation

The vault holds the fund's lovelace and the tokens tracked by asset
groups. Any transaction may move value in and out of the vault, but the
net change must reconcile with the caller's declared counters:

    diff(tx)             actual net vault change (produced - consumed)
    diff_lovelace(tx)    its lovelace component, with config + time range
    diff_counted(...)    d_lovelace + per-asset count changes of the
                         asset group threads named by the caller
    counters_are_consistent(...)
                         diff(tx) == diff_counted(...) and the lovelace
                         part equals d_lovelace

Thread outputs must line up position by position with their inputs, and
only `count` may differ between paired assets. The final comparison is
between Values, so it doesn't depend on token order.
"""

from __future__ import annotations
from typing import List, Sequence, Set, Tuple

from .asset_group import AssetGroup, read_group, nothing_spent as no_group_spent
from .core import (
    AssetClass, RecordTable, Transaction, Value,
    ASSETS_ADDRESS, VAULT_ADDRESS,
    WrongAddress, InvalidDatum, InvalidMarker, NotASingleton, Overfull,
    IdentityFieldChanged, CounterMismatch, MissingWitness,
    find_unique_marked, sum_values,
)
from .external import require_config
from .tokens import assets_token, group_markers


# Fixed payload of every vault record.
VAULT_DATUM = b""


def nothing_spent(tx: Transaction) -> bool:
    """True iff neither a vault record nor an asset group record is consumed."""
    return not tx.inputs_at(VAULT_ADDRESS) and no_group_spent(tx)


def diff(tx: Transaction) -> Value:
    """
    Net change of the vault: produced minus consumed value.

    Produced vault records holding more than one token class are not
    counted.

    Raises:
        InvalidDatum: A produced vault record doesn't carry VAULT_DATUM.
    """
    produced = tx.outputs_at(VAULT_ADDRESS)
    for output in produced:
        if output.datum != VAULT_DATUM:
            raise InvalidDatum(f"Vault output has wrong datum {output.datum!r}")

    added = sum_values(o.value for o in produced if len(o.value.assets) <= 1)
    removed = sum_values(i.value for i in tx.inputs_at(VAULT_ADDRESS))
    return added - removed


def diff_lovelace(tx: Transaction) -> int:
    """
    Lovelace component of diff().

    Raises:
        MissingWitness: The config record isn't visible, or no time range is set.
    """
    require_config(tx)
    if tx.time_range is None:
        raise MissingWitness("Transaction validity time range not set")
    return diff(tx).lovelace


def _thread_input(tx: Transaction, group_id: int) -> AssetGroup:
    record = find_unique_marked(tx.inputs, assets_token(group_id))
    _, group = read_group(record)
    return group


def _thread_deltas(group0: AssetGroup, group1: AssetGroup, group_id: int) -> List[Tuple[AssetClass, int]]:
    if len(group0.assets) != len(group1.assets):
        raise IdentityFieldChanged(
            f"Asset group {group_id} went from {len(group0.assets)} to {len(group1.assets)} assets"
        )
    return [(a0.asset_class, a0.count_delta(a1)) for a0, a1 in zip(group0.assets, group1.assets)]


def diff_counted(
    tx: Transaction,
    d_lovelace: int,
    asset_group_output_ptrs: Sequence[int],
) -> Value:
    """
    Value change implied by the asset group threads plus d_lovelace.

    Args:
        tx: Transaction snapshot.
        d_lovelace: Declared lovelace change of the vault.
        asset_group_output_ptrs: Indices into tx.outputs of the produced
                                 asset groups, one per thread.

    Raises:
        InvalidPointer: A pointer is out of range.
        WrongAddress: A produced group isn't at ASSETS_ADDRESS.
        InvalidMarker: A thread side doesn't carry exactly one marker, or
                       the output carries other tokens.
        NotASingleton: A thread is named twice.
        Overfull: A produced group exceeds MAX_GROUP_SIZE.
        IdentityFieldChanged: Paired assets differ in more than count, or
                              the asset lists differ in length.
        CounterMismatch: A consumed asset group isn't covered by a thread.
    """
    outputs = RecordTable(tx.outputs)
    threaded: Set[int] = set()
    deltas: List[Tuple[AssetClass, int]] = []

    for ptr in asset_group_output_ptrs:
        output = outputs.get(ptr)
        if output.address != ASSETS_ADDRESS:
            raise WrongAddress(f"Asset group output {ptr} at {output.address}")
        group_id, group1 = read_group(output)
        marker = assets_token(group_id)
        extra = [ac for ac in output.value.asset_classes() if ac != marker]
        if extra:
            raise InvalidMarker(f"Asset group {group_id} output carries extra tokens {extra}")
        if group_id in threaded:
            raise NotASingleton(f"Asset group {group_id} thread named twice")
        threaded.add(group_id)
        if not group1.is_not_overfull():
            raise Overfull(f"Asset group {group_id} holds {len(group1)} assets")

        group0 = _thread_input(tx, group_id)
        deltas.extend(_thread_deltas(group0, group1, group_id))

    for spent in tx.inputs_at(ASSETS_ADDRESS):
        spent_ids = {gid for gid, _ in group_markers(spent.value)}
        if not spent_ids & threaded:
            raise CounterMismatch(f"Spent asset group record {spent.output_id} isn't threaded")

    return Value(d_lovelace, deltas)


def counters_are_consistent(
    tx: Transaction,
    d_lovelace: int,
    asset_group_output_ptrs: Sequence[int],
) -> bool:
    """
    True iff the declared counters explain the vault's net change.

    Structural problems in the threads raise (see diff_counted); a
    reconciliation mismatch returns False.
    """
    counted = diff_counted(tx, d_lovelace, asset_group_output_ptrs)
    if diff_lovelace(tx) != d_lovelace:
        return False
    return diff(tx) == counted
