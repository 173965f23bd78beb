"""
Core types and pure functions for the fund validation core.

This module provides the foundational data structures for every validator:
1. Constants: the fund policy, canonical record addresses, shard capacity
2. Immutable snapshot types: AssetClass, Value, Address, TxOutput, TxInput,
   TimeRange, Transaction
3. Exceptions: FundError and the rejection taxonomy
4. Lookup helpers: RecordTable, find_unique_marked, datum_as
5. Verdicts: Verdict and judge() for callers that want accept/reject

All functions in this module are pure and operate on an immutable
transaction snapshot. No function can mutate ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import (
    Any, Callable, Dict, Iterable, Iterator, Mapping, Optional,
    Sequence, Tuple, Type, TypeVar, Union,
)


logger = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

# Minting policy under which every marker token of the fund is issued.
FUND_POLICY = "fund"

# Maximum number of asset records a single asset group may hold.
MAX_GROUP_SIZE = 3


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FundError(Exception):
    """Base exception for every rejection raised by the validation core."""
    pass


class NoMatch(FundError):
    """Raised when an expected record or asset is absent from the transaction."""
    pass


class NotASingleton(FundError):
    """Raised when a record that must be unique appears more than once."""
    pass


class WrongAddress(FundError):
    """Raised when a record does not reside at its canonical address."""
    pass


class InvalidPointer(FundError):
    """Raised when a caller-supplied pointer is out of range or resolves to the wrong record."""
    pass


class WrongId(InvalidPointer):
    """Raised when a pointed asset group does not carry the expected id."""
    pass


class OutOfOrderPointer(WrongId):
    """Raised when pointed asset group ids repeat or go backwards."""
    pass


class InvalidMarker(FundError):
    """Raised when a record doesn't carry exactly one marker token of the right kind."""
    pass


class InvalidDatum(FundError):
    """Raised when a record's payload isn't of the expected type."""
    pass


class InvalidTokenName(FundError):
    """Raised when a token name has a known prefix but a malformed suffix."""
    pass


class Overfull(FundError):
    """Raised when an asset group holds more than MAX_GROUP_SIZE assets."""
    pass


class GroupNotEmpty(FundError):
    """Raised when an asset group must be empty but isn't."""
    pass


class StaleEpoch(FundError):
    """Raised when a reduction step is pinned to a tick other than the current one."""
    pass


class StalePrice(FundError):
    """Raised when an asset price is older than the required expiry."""
    pass


class InvalidPrice(FundError):
    """Raised when an asset price can't be evaluated (zero denominator)."""
    pass


class IdentityFieldChanged(FundError):
    """Raised when asset_class, price or price_timestamp change under a count-only update."""
    pass


class CounterMismatch(FundError):
    """Raised when declared counters don't reconcile with the observed changes."""
    pass


class ReductionMismatch(FundError):
    """Raised when a declared reduction state doesn't match the recomputed one."""
    pass


class InvalidTransition(FundError):
    """Raised when a portfolio state transition starts from the wrong state."""
    pass


class StorageSpent(FundError):
    """Raised when a record is consumed that the operation must only read."""
    pass


class NoPriceData(FundError):
    """Raised when an aggregate covers zero assets and so has no oldest price."""
    pass


class MissingWitness(FundError):
    """Raised when a record or time range the operation depends on is not present."""
    pass


class ReductionIncomplete(FundError):
    """Raised when a reduction result is requested before all groups were visited."""
    pass


# ============================================================================
# IDENTIFIERS
# ============================================================================

@dataclass(frozen=True, slots=True, order=True)
class AssetClass:
    """
    Identifier of a native token: minting policy plus token name.

    The base currency (lovelace) is not an AssetClass, it is the `lovelace`
    component of a Value.
    """
    policy: str
    token_name: str

    def __repr__(self) -> str:
        return f"AssetClass({self.policy}.{self.token_name})"


@dataclass(frozen=True, slots=True)
class Address:
    """
    A record address.

    Two addresses with the same spending credential but a different staking
    credential are different addresses.
    """
    spending: str
    staking: Optional[str] = None

    def __repr__(self) -> str:
        if self.staking:
            return f"Address({self.spending}/{self.staking})"
        return f"Address({self.spending})"


ASSETS_ADDRESS = Address("assets_validator")
PORTFOLIO_ADDRESS = Address("portfolio_validator")
VAULT_ADDRESS = Address("vault")
CONFIG_ADDRESS = Address("config_validator")
SUPPLY_ADDRESS = Address("supply_validator")


# ============================================================================
# VALUE
# ============================================================================

AssetQuantities = Union[Mapping[AssetClass, int], Iterable[Tuple[AssetClass, int]]]


def _freeze_assets(assets: AssetQuantities) -> Tuple[Tuple[AssetClass, int], ...]:
    """
    Convert token quantities to a canonical frozen representation.

    Duplicate asset classes are merged, zero quantities are dropped and the
    result is sorted by asset class, so equal values compare equal.
    """
    items = assets.items() if isinstance(assets, Mapping) else assets
    merged: Dict[AssetClass, int] = {}
    for asset_class, qty in items:
        merged[asset_class] = merged.get(asset_class, 0) + int(qty)
    return tuple(sorted((ac, q) for ac, q in merged.items() if q != 0))


@dataclass(frozen=True, slots=True)
class Value:
    """
    Multi-asset quantity: base currency plus token counts.

    Attributes:
        lovelace: Base-currency component.
        assets: Token quantities. Accepts a mapping or (asset_class, qty)
                pairs and is stored as a sorted tuple without zero entries.

    Equality is therefore independent of the order in which tokens were
    supplied.
    """
    lovelace: int = 0
    assets: Tuple[Tuple[AssetClass, int], ...] = ()

    def __post_init__(self):
        if not isinstance(self.lovelace, int) or isinstance(self.lovelace, bool):
            raise ValueError(f"Value lovelace must be int, got {type(self.lovelace)}")
        object.__setattr__(self, 'assets', _freeze_assets(self.assets))

    def get(self, asset_class: AssetClass) -> int:
        """Return the quantity of asset_class, 0 if absent."""
        for ac, qty in self.assets:
            if ac == asset_class:
                return qty
        return 0

    def asset_classes(self) -> Tuple[AssetClass, ...]:
        return tuple(ac for ac, _ in self.assets)

    def assets_of_policy(self, policy: str) -> Tuple[Tuple[AssetClass, int], ...]:
        return tuple((ac, qty) for ac, qty in self.assets if ac.policy == policy)

    def without_lovelace(self) -> 'Value':
        return Value(0, self.assets)

    def is_zero(self) -> bool:
        return self.lovelace == 0 and not self.assets

    def __iter__(self) -> Iterator[Tuple[AssetClass, int]]:
        return iter(self.assets)

    def __add__(self, other: 'Value') -> 'Value':
        if not isinstance(other, Value):
            return NotImplemented
        return Value(self.lovelace + other.lovelace, self.assets + other.assets)

    def __neg__(self) -> 'Value':
        return Value(-self.lovelace, tuple((ac, -qty) for ac, qty in self.assets))

    def __sub__(self, other: 'Value') -> 'Value':
        if not isinstance(other, Value):
            return NotImplemented
        return self + (-other)

    def __repr__(self) -> str:
        if not self.assets:
            return f"Value({self.lovelace})"
        tokens = ", ".join(f"{ac.token_name}: {qty}" for ac, qty in self.assets)
        return f"Value({self.lovelace}, {{{tokens}}})"


def sum_values(values: Iterable[Value]) -> Value:
    """Sum values, starting from the zero value."""
    total = Value()
    for v in values:
        total = total + v
    return total


# ============================================================================
# TRANSACTION SNAPSHOT
# ============================================================================

@dataclass(frozen=True, slots=True)
class TxOutput:
    """
    A ledger record: address, held value and decoded payload.

    Attributes:
        address: Where the record resides.
        value: Value locked in the record, marker tokens included.
        datum: Decoded payload (AssetGroup, Portfolio, Config, Supply,
               the vault sentinel, or anything else).
    """
    address: Address
    value: Value = field(default_factory=Value)
    datum: Any = None


@dataclass(frozen=True, slots=True)
class TxInput:
    """A consumed or referenced record, identified by the output that created it."""
    output_id: str
    output: TxOutput

    @property
    def address(self) -> Address:
        return self.output.address

    @property
    def value(self) -> Value:
        return self.output.value

    @property
    def datum(self) -> Any:
        return self.output.datum


# Anything exposing address, value and datum.
Record = Union[TxInput, TxOutput]


@dataclass(frozen=True, slots=True)
class TimeRange:
    """Validity interval of a transaction (inclusive bounds, in ms)."""
    start: int
    end: int

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"TimeRange end {self.end} before start {self.start}")


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    Immutable, already-parsed snapshot of a proposed transaction.

    Attributes:
        inputs: Consumed records, in ledger order.
        ref_inputs: Records read by reference, in ledger order.
        outputs: Produced records, in ledger order.
        minted: Tokens minted (positive) or burned (negative); lovelace is 0.
        time_range: Declared validity interval, if any.
        current_input: Index into inputs of the record being validated.
    """
    inputs: Tuple[TxInput, ...] = ()
    ref_inputs: Tuple[TxInput, ...] = ()
    outputs: Tuple[TxOutput, ...] = ()
    minted: Value = field(default_factory=Value)
    time_range: Optional[TimeRange] = None
    current_input: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'inputs', tuple(self.inputs))
        object.__setattr__(self, 'ref_inputs', tuple(self.ref_inputs))
        object.__setattr__(self, 'outputs', tuple(self.outputs))
        if self.minted.lovelace != 0:
            raise ValueError("Transaction can't mint lovelace")
        if self.current_input is not None and not 0 <= self.current_input < len(self.inputs):
            raise ValueError(f"current_input {self.current_input} out of range")

    def get_current_input(self) -> Optional[TxInput]:
        if self.current_input is None:
            return None
        return self.inputs[self.current_input]

    def inputs_at(self, address: Address) -> Tuple[TxInput, ...]:
        return tuple(i for i in self.inputs if i.address == address)

    def outputs_at(self, address: Address) -> Tuple[TxOutput, ...]:
        return tuple(o for o in self.outputs if o.address == address)

    def visible_records(self) -> Tuple[TxInput, ...]:
        """Records the transaction can read: referenced first, then consumed."""
        return self.ref_inputs + self.inputs

    def __repr__(self) -> str:
        return (
            f"Transaction({len(self.inputs)} inputs, {len(self.ref_inputs)} refs, "
            f"{len(self.outputs)} outputs)"
        )


# ============================================================================
# LOOKUP HELPERS
# ============================================================================

class RecordTable:
    """
    Pointer -> record lookup built once per call from a record list.

    Pointers are caller-supplied integers, so every lookup is range-checked.
    """

    __slots__ = ('_records',)

    def __init__(self, records: Sequence[Record]):
        self._records: Dict[int, Record] = dict(enumerate(records))

    def __len__(self) -> int:
        return len(self._records)

    def get(self, ptr: int) -> Record:
        if isinstance(ptr, bool) or not isinstance(ptr, int):
            raise InvalidPointer(f"Pointer must be int, got {type(ptr).__name__}")
        try:
            return self._records[ptr]
        except KeyError:
            raise InvalidPointer(
                f"Pointer {ptr} out of range (0..{len(self._records) - 1})"
            ) from None


T = TypeVar('T')


def datum_as(record: Record, datum_type: Type[T]) -> T:
    """Return the record's payload, raising InvalidDatum if it has the wrong type."""
    datum = record.datum
    if not isinstance(datum, datum_type):
        raise InvalidDatum(
            f"Expected {datum_type.__name__} datum, got {type(datum).__name__}"
        )
    return datum


def find_unique_marked(
    records: Iterable[Record],
    marker: AssetClass,
    address: Optional[Address] = None,
) -> Record:
    """
    Return the single record carrying exactly one `marker` token.

    Args:
        records: Records to scan.
        marker: Marker token identifying the record.
        address: Canonical address the record must reside at (None = any).

    Raises:
        NoMatch: No record carries the marker.
        NotASingleton: More than one record carries the marker.
        WrongAddress: The record isn't at `address`.
        InvalidMarker: The record carries a marker quantity other than 1.
    """
    matches = [r for r in records if r.value.get(marker) != 0]
    if not matches:
        raise NoMatch(f"No record carries {marker}")
    if len(matches) > 1:
        raise NotASingleton(f"{len(matches)} records carry {marker}")
    record = matches[0]
    if address is not None and record.address != address:
        raise WrongAddress(f"Record carrying {marker} is at {record.address}, expected {address}")
    qty = record.value.get(marker)
    if qty != 1:
        raise InvalidMarker(f"Record carries {qty} x {marker}, expected exactly 1")
    return record


# ============================================================================
# VERDICTS
# ============================================================================

class Verdict(Enum):
    """
    Outcome of running a validator against a transaction.

    ACCEPTED: Every gate passed.
    REJECTED: A gate failed; the transaction must be rebuilt from scratch.
    """
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def judge(check: Callable[..., bool], *args: Any, **kwargs: Any) -> Tuple[Verdict, Optional[str]]:
    """
    Run a validator and fold its outcome into a verdict.

    A validator signals rejection by returning False or raising a
    FundError. Any other exception is a programming error and propagates.

    Returns:
        (Verdict.ACCEPTED, None) or (Verdict.REJECTED, reason)

    Example:
        verdict, reason = judge(validate_reset_reduction, tx, p0, p1)
    """
    name = getattr(check, '__name__', repr(check))
    try:
        ok = check(*args, **kwargs)
    except FundError as e:
        reason = f"{type(e).__name__}: {e}"
        logger.info("%s rejected: %s", name, reason)
        return Verdict.REJECTED, reason
    if not ok:
        logger.info("%s rejected: returned False", name)
        return Verdict.REJECTED, f"{name} returned False"
    logger.debug("%s accepted", name)
    return Verdict.ACCEPTED, None
