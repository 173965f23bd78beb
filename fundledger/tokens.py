"""
tokens.py - Marker token names of the fund policy

Every singleton record of the fund is tagged by one marker token minted
under FUND_POLICY:

    config          the fee/governance configuration record
    portfolio       the portfolio directory
    supply          the supply record (carries the global tick)
    assets <id>     one token per asset group, id = 0 .. n_groups-1

Series names ("assets <id>") are parsed strictly: once the prefix matches,
the remainder must be a single space followed by a canonical integer.
"""

from __future__ import annotations
import re
from typing import Optional, Tuple

from .core import (
    AssetClass, Value, FUND_POLICY,
    InvalidMarker, InvalidTokenName,
)


CONFIG = "config"
PORTFOLIO = "portfolio"
SUPPLY = "supply"
ASSETS_PREFIX = "assets"

# Canonical integer: no leading zeros, no sign on zero.
_CANONICAL_INT = re.compile(r"0|-?[1-9][0-9]*")


def assets(group_id: int) -> str:
    """Token name of the marker for asset group `group_id`."""
    return f"{ASSETS_PREFIX} {group_id}"


def assets_token(group_id: int) -> AssetClass:
    return AssetClass(FUND_POLICY, assets(group_id))


def config_token() -> AssetClass:
    return AssetClass(FUND_POLICY, CONFIG)


def portfolio_token() -> AssetClass:
    return AssetClass(FUND_POLICY, PORTFOLIO)


def supply_token() -> AssetClass:
    return AssetClass(FUND_POLICY, SUPPLY)


def parse_series(prefix: str, name: str) -> Optional[int]:
    """
    Parse a "<prefix> <id>" token name.

    Returns:
        The id, or None if `name` doesn't start with `prefix`.

    Raises:
        InvalidTokenName: The prefix matches but the remainder isn't a
                          separator followed by a canonical integer.
    """
    if not name.startswith(prefix):
        return None
    rest = name[len(prefix):]
    if not rest.startswith(" "):
        raise InvalidTokenName(f"Token name {name!r} lacks separator after {prefix!r}")
    digits = rest[1:]
    if not _CANONICAL_INT.fullmatch(digits):
        raise InvalidTokenName(f"Token name {name!r} has malformed id {digits!r}")
    return int(digits)


def parse_assets(name: str) -> Optional[int]:
    return parse_series(ASSETS_PREFIX, name)


def group_markers(value: Value) -> Tuple[Tuple[int, int], ...]:
    """All (group_id, qty) pairs of asset group markers held in `value`."""
    found = []
    for asset_class, qty in value.assets_of_policy(FUND_POLICY):
        group_id = parse_assets(asset_class.token_name)
        if group_id is not None:
            found.append((group_id, qty))
    return tuple(found)


def group_marker(value: Value) -> Tuple[int, int]:
    """
    Return (group_id, qty) of the single asset group marker in `value`.

    Raises:
        InvalidMarker: Zero, or more than one, asset group marker classes.
    """
    markers = group_markers(value)
    if not markers:
        raise InvalidMarker("Value doesn't contain an asset group token")
    if len(markers) > 1:
        raise InvalidMarker(f"Value contains {len(markers)} asset group tokens")
    return markers[0]


def has_group_marker(value: Value) -> bool:
    return bool(group_markers(value))
