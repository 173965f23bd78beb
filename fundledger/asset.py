"""
asset.py - Asset records tracked inside asset groups

An Asset is the base data unit of the fund's portfolio:

    asset_class       identity of the tracked token
    count             quantity held by the fund
    price             (numerator, denominator) in lovelace per unit
    price_timestamp   when the price was last set

Identity is the asset_class. A count-only update may change `count` and
nothing else; any change to asset_class, price or price_timestamp is an
identity violation.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from .core import AssetClass, InvalidPrice, IdentityFieldChanged


# (numerator, denominator)
Ratio = Tuple[int, int]

# Fields a count-only update must leave untouched.
IDENTITY_FIELDS = ('asset_class', 'price', 'price_timestamp')


@dataclass(frozen=True, slots=True)
class Asset:
    """
    Immutable asset record.

    Attributes:
        asset_class: Identity of the tracked token.
        count: Quantity held by the fund.
        price: Lovelace per unit as (numerator, denominator).
        price_timestamp: Time the price was last set (ms).
    """
    asset_class: AssetClass
    count: int = 0
    price: Ratio = (0, 1)
    price_timestamp: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'price', (int(self.price[0]), int(self.price[1])))

    def value_of(self, qty: Optional[int] = None) -> int:
        """
        Lovelace value of `qty` units (defaults to count), floored.

        Raises:
            InvalidPrice: The price denominator is zero.
        """
        num, den = self.price
        if den == 0:
            raise InvalidPrice(f"{self.asset_class} price has a zero denominator")
        if qty is None:
            qty = self.count
        return qty * num // den

    def changed_identity_fields(self, other: 'Asset') -> Tuple[str, ...]:
        """Names of the identity fields that differ between self and other."""
        return tuple(f for f in IDENTITY_FIELDS if getattr(self, f) != getattr(other, f))

    def count_delta(self, after: 'Asset') -> int:
        """
        Count change from self to `after`, a count-only update of self.

        Raises:
            IdentityFieldChanged: `after` isn't a count-only update of self.
        """
        changed = self.changed_identity_fields(after)
        if changed:
            raise IdentityFieldChanged(
                f"{self.asset_class}: {', '.join(changed)} changed under a count-only update"
            )
        return after.count - self.count
