"""
portfolio.py - Portfolio directory and reduction state

The portfolio is the singleton directory record of the fund. It tracks the
number of asset groups and the state of the current multi-step reduction:

    Portfolio
        n_groups: int
        reduction: Idle | Reducing(group_iter, start_tick, mode)

    mode: TotalAssetValue(total, oldest_timestamp)
        | Exists(asset_class, found)
        | DoesNotExist(asset_class)

A reduction is a resumable fold over asset groups 0 .. n_groups-1, split
across transactions. Its result is trustworthy only once
group_iter == n_groups for the pinned start_tick.

This module also provides sum_lovelace(), which values a multi-asset Value
in lovelace using asset records located by AssetPtr.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence, Tuple, Union

from .asset_ptr import AssetPtr
from .core import (
    AssetClass, Record, Transaction, Value,
    PORTFOLIO_ADDRESS,
    InvalidPointer, StalePrice, ReductionIncomplete,
    datum_as, find_unique_marked,
)
from .tokens import portfolio_token


# ============================================================================
# REDUCTION MODES
# ============================================================================

@dataclass(frozen=True, slots=True)
class TotalAssetValue:
    """Sum of count * price over all assets, with the oldest price timestamp."""
    total: int = 0
    oldest_timestamp: int = 0


@dataclass(frozen=True, slots=True)
class Exists:
    """Whether asset_class is held by any asset group."""
    asset_class: AssetClass
    found: bool = False


@dataclass(frozen=True, slots=True)
class DoesNotExist:
    """Proof that asset_class is held by no asset group."""
    asset_class: AssetClass


ReductionMode = Union[TotalAssetValue, Exists, DoesNotExist]


@dataclass(frozen=True, slots=True)
class Idle:
    """No reduction in progress."""
    pass


@dataclass(frozen=True, slots=True)
class Reducing:
    """
    Reduction in progress.

    Attributes:
        group_iter: Number of asset groups visited so far (next group id).
        start_tick: Global tick the reduction is pinned to.
        mode: Partial result.
    """
    group_iter: int
    start_tick: int
    mode: ReductionMode


PortfolioReduction = Union[Idle, Reducing]


def is_idle(reduction: PortfolioReduction) -> bool:
    return isinstance(reduction, Idle)


def same_mode_kind(a: ReductionMode, b: ReductionMode) -> bool:
    return type(a) is type(b)


# ============================================================================
# PORTFOLIO
# ============================================================================

@dataclass(frozen=True, slots=True)
class Portfolio:
    n_groups: int = 0
    reduction: PortfolioReduction = field(default_factory=Idle)

    def __post_init__(self):
        if self.n_groups < 0:
            raise ValueError(f"n_groups must be non-negative, got {self.n_groups}")

    def is_idle(self) -> bool:
        return is_idle(self.reduction)

    def get_reduction_result(self) -> ReductionMode:
        """
        Mode of a finished reduction.

        Raises:
            ReductionIncomplete: Idle, or not every asset group was visited.
        """
        reduction = self.reduction
        if not isinstance(reduction, Reducing):
            raise ReductionIncomplete("Portfolio isn't reducing")
        if reduction.group_iter != self.n_groups:
            raise ReductionIncomplete(
                f"Reduction visited {reduction.group_iter} of {self.n_groups} asset groups"
            )
        return reduction.mode

    @staticmethod
    def find_input(tx: Transaction) -> 'Portfolio':
        """The consumed portfolio record."""
        record = find_unique_marked(tx.inputs, portfolio_token(), PORTFOLIO_ADDRESS)
        return datum_as(record, Portfolio)

    @staticmethod
    def find_output(tx: Transaction) -> 'Portfolio':
        """The produced portfolio record, returned with exactly one token."""
        record = find_unique_marked(tx.outputs, portfolio_token(), PORTFOLIO_ADDRESS)
        return datum_as(record, Portfolio)

    @staticmethod
    def find_ref(tx: Transaction) -> 'Portfolio':
        """The referenced portfolio record."""
        record = find_unique_marked(tx.ref_inputs, portfolio_token(), PORTFOLIO_ADDRESS)
        return datum_as(record, Portfolio)

    @staticmethod
    def find_thread(tx: Transaction) -> Tuple['Portfolio', 'Portfolio']:
        """(consumed, produced) portfolio records."""
        return Portfolio.find_input(tx), Portfolio.find_output(tx)


def witnessed_by_portfolio(tx: Transaction) -> bool:
    """True iff the portfolio record is consumed from PORTFOLIO_ADDRESS."""
    token = portfolio_token()
    return any(
        i.address == PORTFOLIO_ADDRESS and i.value.get(token) > 0
        for i in tx.inputs
    )


# ============================================================================
# VALUATION
# ============================================================================

def sum_lovelace(
    v: Value,
    records: Sequence[Record],
    ptrs: Sequence[AssetPtr],
    price_expiry: int,
) -> int:
    """
    Lovelace value of `v`, pricing each token from an asset record.

    ptrs[0] stands for the lovelace component and is never resolved;
    ptrs[i + 1] locates the asset record of the i-th token of `v` in
    canonical order. Surplus pointers are ignored.

    Args:
        v: Value to price.
        records: Records the pointers index (usually ref inputs).
        ptrs: One placeholder followed by one pointer per token.
        price_expiry: Oldest acceptable price timestamp.

    Raises:
        InvalidPointer: Too few pointers, or a pointer doesn't resolve.
        StalePrice: A price timestamp is older than price_expiry.
        InvalidPrice: A price has a zero denominator.
    """
    if not ptrs:
        raise InvalidPointer("Missing lovelace placeholder pointer")
    if len(ptrs) < len(v.assets) + 1:
        raise InvalidPointer(
            f"{len(ptrs)} pointers given for {len(v.assets)} tokens plus lovelace"
        )
    total = v.lovelace
    for ptr, (asset_class, qty) in zip(ptrs[1:], v.assets):
        asset = ptr.resolve(records, asset_class)
        if asset.price_timestamp < price_expiry:
            raise StalePrice(
                f"{asset_class} price from {asset.price_timestamp} older than {price_expiry}"
            )
        total += asset.value_of(qty)
    return total
