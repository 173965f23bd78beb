"""
external.py - Read-only records owned by collaborators

The configuration record (fees, size limits, governance) and the supply
record (global tick) are maintained elsewhere. The validation core only
needs to locate them and read a few fields.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .core import (
    Transaction, CONFIG_ADDRESS, SUPPLY_ADDRESS,
    MissingWitness, NoMatch,
    datum_as, find_unique_marked,
)
from .tokens import config_token, supply_token


@dataclass(frozen=True, slots=True)
class Config:
    """
    Fund configuration, owned by governance.

    Read-only here: validators only require the record to be visible
    (see require_config); its fields are for collaborators.
    """
    agent: str = ""
    max_price_age: int = 0
    fees: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Supply:
    """Token supply record; `tick` is the global epoch counter."""
    tick: int = 0
    n_tokens: int = 0
    n_vouchers: int = 0
    last_voucher_id: int = -1


def find_config(tx: Transaction) -> Optional[Config]:
    """The config record, referenced or consumed, or None if not visible."""
    try:
        record = find_unique_marked(tx.visible_records(), config_token(), CONFIG_ADDRESS)
    except NoMatch:
        return None
    return datum_as(record, Config)


def require_config(tx: Transaction) -> Config:
    config = find_config(tx)
    if config is None:
        raise MissingWitness("Config record isn't referenced or spent")
    return config


def find_supply(tx: Transaction) -> Supply:
    """The supply record, referenced or consumed."""
    record = find_unique_marked(tx.visible_records(), supply_token(), SUPPLY_ADDRESS)
    return datum_as(record, Supply)


def current_tick(tx: Transaction) -> int:
    return find_supply(tx).tick
