"""
asset_group.py - Fixed-capacity shards of the fund's tracked assets

The fund's assets are too numerous for one record, so they are split into
asset groups of at most MAX_GROUP_SIZE assets each. Every group:

    - is tagged by exactly one "assets <id>" marker token
    - resides at ASSETS_ADDRESS
    - has an id in the dense range 0 .. n_groups-1

This module provides:
1. AssetGroup - the frozen shard payload with its structural predicates
2. read_group() - the single place that validates a shard record
3. Lookup functions over a transaction snapshot:
   find_current, find_output, find_input_asset, find_output_asset,
   find_single_input, nothing_spent

Multi-record scans validate every candidate before answering: a
well-formed early match doesn't hide a malformed later record.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .asset import Asset
from .core import (
    AssetClass, Record, Transaction,
    ASSETS_ADDRESS, MAX_GROUP_SIZE,
    NoMatch, NotASingleton, WrongAddress, InvalidMarker,
    datum_as,
)
from .tokens import group_marker, group_markers, has_group_marker


@dataclass(frozen=True, slots=True)
class AssetGroup:
    """
    Immutable shard payload: an ordered list of asset records.

    asset_class is unique within a group by construction, so lookups return
    the first match.
    """
    assets: Tuple[Asset, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'assets', tuple(self.assets))

    def find_asset(self, asset_class: AssetClass) -> Optional[Asset]:
        for asset in self.assets:
            if asset.asset_class == asset_class:
                return asset
        return None

    def has_asset(self, asset_class: AssetClass) -> bool:
        return self.find_asset(asset_class) is not None

    def is_empty(self) -> bool:
        return len(self.assets) == 0

    def is_not_overfull(self) -> bool:
        return len(self.assets) <= MAX_GROUP_SIZE

    def __len__(self) -> int:
        return len(self.assets)


# Module-level forms of the predicates.

def find_asset(group: AssetGroup, asset_class: AssetClass) -> Optional[Asset]:
    return group.find_asset(asset_class)


def has_asset(group: AssetGroup, asset_class: AssetClass) -> bool:
    return group.has_asset(asset_class)


def is_empty(group: AssetGroup) -> bool:
    return group.is_empty()


def is_not_overfull(group: AssetGroup) -> bool:
    return group.is_not_overfull()


# ============================================================================
# RECORD VALIDATION
# ============================================================================

def read_group(record: Record, check_address: bool = True) -> Tuple[int, AssetGroup]:
    """
    Validate an asset group record and return (id, group).

    Args:
        record: Consumed, referenced or produced record.
        check_address: Require the record to be at ASSETS_ADDRESS.

    Raises:
        WrongAddress: The record isn't at ASSETS_ADDRESS.
        InvalidMarker: Not exactly one marker class, or a quantity other than 1.
        InvalidDatum: The payload isn't an AssetGroup.
    """
    if check_address and record.address != ASSETS_ADDRESS:
        raise WrongAddress(f"Asset group record at {record.address}, expected {ASSETS_ADDRESS}")
    group_id, qty = group_marker(record.value)
    if qty != 1:
        raise InvalidMarker(f"Asset group {group_id} record carries {qty} tokens, expected 1")
    return group_id, datum_as(record, AssetGroup)


def _is_group_candidate(record: Record) -> bool:
    return record.address == ASSETS_ADDRESS or has_group_marker(record.value)


def _read_all_groups(records: Iterable[Record]) -> List[Tuple[int, AssetGroup]]:
    """Validate every record that is at ASSETS_ADDRESS or carries a group marker."""
    return [read_group(r) for r in records if _is_group_candidate(r)]


# ============================================================================
# TRANSACTION LOOKUPS
# ============================================================================

def find_current(tx: Transaction) -> Tuple[int, AssetGroup]:
    """
    Return (id, group) of the asset group record being spent.

    Uses tx.current_input when set, otherwise the single consumed record
    carrying a group marker. The address isn't checked: whichever address
    holds the marker, it is the shard being validated.

    Raises:
        NoMatch: The record doesn't carry a group marker.
        NotASingleton: No current input is set and several inputs carry markers.
    """
    current = tx.get_current_input()
    if current is not None:
        candidates = [current] if has_group_marker(current.value) else []
    else:
        candidates = [i for i in tx.inputs if has_group_marker(i.value)]
    if not candidates:
        raise NoMatch("Current input doesn't contain an asset group token")
    if len(candidates) > 1:
        raise NotASingleton(f"{len(candidates)} inputs contain asset group tokens")
    return read_group(candidates[0], check_address=False)


def find_output(tx: Transaction, group_id: int) -> AssetGroup:
    """
    Return the produced asset group with id `group_id`.

    Raises:
        NoMatch: No output carries the marker.
        NotASingleton: Several outputs carry the marker.
        WrongAddress: The output isn't at ASSETS_ADDRESS.
        InvalidMarker: The output carries extra group markers.
    """
    candidates = [o for o in tx.outputs if any(gid == group_id for gid, _ in group_markers(o.value))]
    if not candidates:
        raise NoMatch(f"No output contains the asset group {group_id} token")
    if len(candidates) > 1:
        raise NotASingleton(f"{len(candidates)} outputs contain the asset group {group_id} token")
    _, group = read_group(candidates[0])
    return group


def _find_asset_in(records: Iterable[Record], asset_class: AssetClass) -> Asset:
    groups = _read_all_groups(records)
    for _, group in groups:
        asset = group.find_asset(asset_class)
        if asset is not None:
            return asset
    raise NoMatch(f"{asset_class} not found in any asset group")


def find_input_asset(tx: Transaction, asset_class: AssetClass) -> Asset:
    """First asset record for asset_class among consumed asset groups."""
    return _find_asset_in(tx.inputs, asset_class)


def find_output_asset(tx: Transaction, asset_class: AssetClass) -> Asset:
    """First asset record for asset_class among produced asset groups."""
    return _find_asset_in(tx.outputs, asset_class)


def find_single_input(tx: Transaction) -> Tuple[int, AssetGroup]:
    """
    Return (id, group) of the only record consumed from ASSETS_ADDRESS.

    Only the address counts for the singleton check: a second record at
    ASSETS_ADDRESS fails even if it lacks a marker.

    Raises:
        NoMatch: Nothing is consumed from ASSETS_ADDRESS.
        NotASingleton: More than one record is consumed from ASSETS_ADDRESS.
        InvalidMarker: The single record doesn't carry exactly one marker.
    """
    spent = tx.inputs_at(ASSETS_ADDRESS)
    if not spent:
        raise NoMatch("No asset group input")
    if len(spent) > 1:
        raise NotASingleton(f"{len(spent)} inputs spent from the assets address")
    return read_group(spent[0])


def nothing_spent(tx: Transaction) -> bool:
    """True iff no record is consumed from ASSETS_ADDRESS."""
    return not tx.inputs_at(ASSETS_ADDRESS)
