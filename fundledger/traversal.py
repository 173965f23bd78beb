"""
traversal.py - Pointer-chase traversal over referenced asset groups

Multi-group queries don't scan the transaction for asset groups. The caller
passes an ordered list of pointers into the transaction's reference inputs,
and the traversal checks that pointer k resolves to asset group
first_id + k:

    group_ptrs = [4, 0, 7]      first_id = 10
    ref_inputs[4] -> group 10
    ref_inputs[0] -> group 11
    ref_inputs[7] -> group 12

Because the expected id is derived from the pointer position, duplicate,
reversed or gapped pointer lists are all rejected by the same id check.
Every pointer is validated, even after a search has found its answer.

Aggregates built on the traversal:
    search_for_asset_class  -> bool
    sum_total_asset_value   -> (oldest_timestamp, total_value)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .asset_group import AssetGroup, read_group
from .core import (
    AssetClass, Record, RecordTable, Transaction,
    InvalidPointer, WrongId, OutOfOrderPointer, NoPriceData,
)
from .tokens import has_group_marker


A = TypeVar('A')

# Fold step: (accumulator, group) -> accumulator
GroupFold = Callable[[A, AssetGroup], A]


def resolve_group(table: RecordTable, ptr: int, expected_id: int) -> AssetGroup:
    """
    Resolve one pointer to the asset group with id `expected_id`.

    Raises:
        InvalidPointer: Out of range, or the record isn't an asset group.
        WrongAddress: The record isn't at ASSETS_ADDRESS.
        OutOfOrderPointer: The group id is lower than expected.
        WrongId: The group id is higher than expected.
    """
    record = table.get(ptr)
    if not has_group_marker(record.value):
        raise InvalidPointer(f"Pointer {ptr} doesn't point to an asset group")
    group_id, group = read_group(record)
    if group_id < expected_id:
        raise OutOfOrderPointer(
            f"Pointer {ptr} resolves to asset group {group_id}, expected {expected_id}"
        )
    if group_id != expected_id:
        raise WrongId(f"Pointer {ptr} resolves to asset group {group_id}, expected {expected_id}")
    return group


def resolve_groups(
    records: Sequence[Record],
    group_ptrs: Sequence[int],
    first_id: int,
) -> List[AssetGroup]:
    """Resolve every pointer, in order, to groups first_id, first_id+1, ..."""
    table = RecordTable(records)
    return [resolve_group(table, ptr, first_id + k) for k, ptr in enumerate(group_ptrs)]


def fold_groups(
    tx: Transaction,
    group_ptrs: Sequence[int],
    first_id: int,
    fn: GroupFold,
    initial: A,
) -> A:
    """
    Fold `fn` over the referenced asset groups, left to right.

    All pointers are resolved and validated before the fold runs.
    """
    acc = initial
    for group in resolve_groups(tx.ref_inputs, group_ptrs, first_id):
        acc = fn(acc, group)
    return acc


def search_for_asset_class(
    tx: Transaction,
    asset_class: AssetClass,
    group_ptrs: Sequence[int],
    first_id: int,
) -> bool:
    """True iff any pointed asset group holds `asset_class`."""
    return fold_groups(
        tx, group_ptrs, first_id,
        lambda found, group: found or group.has_asset(asset_class),
        False,
    )


def find_group_position(
    tx: Transaction,
    asset_class: AssetClass,
    group_ptrs: Sequence[int],
    first_id: int,
) -> Optional[int]:
    """
    Position in group_ptrs of the first group holding `asset_class`, or None.

    Like search_for_asset_class, every pointer is validated.
    """
    groups = resolve_groups(tx.ref_inputs, group_ptrs, first_id)
    for k, group in enumerate(groups):
        if group.has_asset(asset_class):
            return k
    return None


@dataclass(frozen=True, slots=True)
class ValueAccumulator:
    """
    Partial result of a total-value fold.

    oldest_timestamp is None until at least one asset has been seen.
    """
    total: int = 0
    oldest_timestamp: Optional[int] = None

    def add_group(self, group: AssetGroup) -> 'ValueAccumulator':
        total = self.total
        oldest = self.oldest_timestamp
        for asset in group.assets:
            total += asset.value_of()
            if oldest is None or asset.price_timestamp < oldest:
                oldest = asset.price_timestamp
        return ValueAccumulator(total, oldest)


def accumulate_value(
    tx: Transaction,
    group_ptrs: Sequence[int],
    first_id: int,
    seed: Optional[ValueAccumulator] = None,
) -> ValueAccumulator:
    """Fold the pointed groups into `seed` (default: empty accumulator)."""
    return fold_groups(
        tx, group_ptrs, first_id,
        lambda acc, group: acc.add_group(group),
        seed if seed is not None else ValueAccumulator(),
    )


def sum_total_asset_value(
    tx: Transaction,
    group_ptrs: Sequence[int],
    first_id: int,
) -> Tuple[int, int]:
    """
    Total lovelace value and oldest price timestamp of the pointed groups.

    total = sum(count * price.numerator // price.denominator)
    oldest = min(price_timestamp)

    Returns:
        (oldest_timestamp, total_value)

    Raises:
        NoPriceData: The pointed groups hold no assets at all.
        InvalidPrice: An asset price has a zero denominator.
    """
    acc = accumulate_value(tx, group_ptrs, first_id)
    if acc.oldest_timestamp is None:
        raise NoPriceData("Pointed asset groups hold no assets, oldest price timestamp undefined")
    return acc.oldest_timestamp, acc.total
