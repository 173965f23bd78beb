"""
asset_ptr.py - Pointers to individual asset records

An AssetPtr locates one asset record inside an asset group held by the
transaction: group_index selects the record in a record list, and
asset_class_index selects the asset inside that group. The resolved asset
must carry the asset class the caller expects.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from .asset import Asset
from .asset_group import read_group
from .core import (
    AssetClass, Record, RecordTable, Transaction,
    InvalidPointer, NoMatch,
)
from .tokens import has_group_marker


@dataclass(frozen=True, slots=True)
class AssetPtr:
    group_index: int = 0
    asset_class_index: int = 0

    def resolve(self, records: Sequence[Record], asset_class: AssetClass) -> Asset:
        """
        Resolve to the asset record for `asset_class`.

        Raises:
            InvalidPointer: An index is out of range, or the record isn't an asset group.
            NoMatch: The resolved asset has a different asset class.
        """
        record = RecordTable(records).get(self.group_index)
        if not has_group_marker(record.value):
            raise InvalidPointer(f"Record {self.group_index} isn't an asset group")
        _, group = read_group(record)
        if not 0 <= self.asset_class_index < len(group.assets):
            raise InvalidPointer(
                f"Asset index {self.asset_class_index} out of range for group of {len(group.assets)}"
            )
        asset = group.assets[self.asset_class_index]
        if asset.asset_class != asset_class:
            raise NoMatch(f"Pointer resolves to {asset.asset_class}, expected {asset_class}")
        return asset


def resolve_input(ptr: AssetPtr, tx: Transaction, asset_class: AssetClass) -> Asset:
    return ptr.resolve(tx.inputs, asset_class)


def resolve_output(ptr: AssetPtr, tx: Transaction, asset_class: AssetClass) -> Asset:
    return ptr.resolve(tx.outputs, asset_class)
