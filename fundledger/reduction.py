"""
reduction.py - Portfolio state transitions

Validators for every transition of the portfolio directory:

    Idle ──start──> Reducing ──continue──> Reducing ──reset──> Idle
    Idle ──add asset group / remove asset group──> Idle

Each validator returns True when the proposed transition is well-formed
and raises a FundError subclass naming the first gate that failed. Use
core.judge() to turn that into an accept/reject verdict.

Reduction is a resumable fold. Each step recomputes the expected state from
the previous partial result and the newly pointed chunk of asset groups:

    step(previous_mode, chunk) -> (group_iter, mode)

and the declared output state must equal it exactly. Reductions only read
asset groups by reference, so no asset group may be consumed by a step.

Group lifecycle keeps ids dense: a group is added at id n_groups and only
the highest, empty group can be removed.
"""

from __future__ import annotations
from typing import Optional, Sequence, Tuple

from .asset_group import find_output, find_single_input, nothing_spent
from .core import (
    Transaction,
    InvalidTransition, ReductionMismatch, StaleEpoch, StorageSpent,
    NoPriceData, WrongId, GroupNotEmpty, InvalidMarker,
)
from .portfolio import (
    Portfolio, Reducing, ReductionMode,
    TotalAssetValue, Exists, DoesNotExist, same_mode_kind,
)
from .tokens import group_markers
from .traversal import (
    ValueAccumulator, accumulate_value, find_group_position, search_for_asset_class,
)


# ============================================================================
# STEP FUNCTION
# ============================================================================

def reduction_step(
    tx: Transaction,
    previous: Optional[ReductionMode],
    declared: ReductionMode,
    group_ptrs: Sequence[int],
    first_id: int,
) -> Tuple[int, ReductionMode]:
    """
    Recompute (group_iter, mode) after visiting the pointed asset groups.

    Args:
        tx: Transaction snapshot; group_ptrs index its ref inputs.
        previous: Partial result of the earlier steps (None when starting).
        declared: Mode claimed by the caller; selects the kind of fold and,
                  for Exists/DoesNotExist, the asset class searched for.
        group_ptrs: Pointers to groups first_id, first_id+1, ...
        first_id: Id of the first group of this chunk.

    Returns:
        (group_iter, mode) the caller must have declared.

    Raises:
        NoPriceData: A TotalAssetValue reduction has seen no asset at all.
        ReductionMismatch: A DoesNotExist reduction meets its asset class.
        plus any traversal error for an invalid pointer.
    """
    end = first_id + len(group_ptrs)

    if isinstance(declared, TotalAssetValue):
        seed = None
        if isinstance(previous, TotalAssetValue):
            seed = ValueAccumulator(previous.total, previous.oldest_timestamp)
        acc = accumulate_value(tx, group_ptrs, first_id, seed)
        if acc.oldest_timestamp is None:
            raise NoPriceData("Reduction has seen no assets, oldest price timestamp undefined")
        return end, TotalAssetValue(acc.total, acc.oldest_timestamp)

    if isinstance(declared, Exists):
        position = find_group_position(tx, declared.asset_class, group_ptrs, first_id)
        if isinstance(previous, Exists) and previous.found:
            return end, Exists(declared.asset_class, True)
        if position is not None:
            # stop right after the group holding the asset class
            return first_id + position + 1, Exists(declared.asset_class, True)
        return end, Exists(declared.asset_class, False)

    if isinstance(declared, DoesNotExist):
        if search_for_asset_class(tx, declared.asset_class, group_ptrs, first_id):
            raise ReductionMismatch(f"{declared.asset_class} exists in a pointed asset group")
        return end, DoesNotExist(declared.asset_class)

    raise TypeError(f"Unknown reduction mode {type(declared).__name__}")


# ============================================================================
# GATES
# ============================================================================

def _require_reducing(portfolio: Portfolio, which: str) -> Reducing:
    if not isinstance(portfolio.reduction, Reducing):
        raise InvalidTransition(f"{which} portfolio isn't reducing")
    return portfolio.reduction


def _require_idle(portfolio: Portfolio, which: str) -> None:
    if not portfolio.is_idle():
        raise InvalidTransition(f"{which} portfolio isn't idle")


def _require_storage_untouched(tx: Transaction) -> None:
    if not nothing_spent(tx):
        raise StorageSpent("Asset group records can't be spent by this action")


def _require_same_n_groups(portfolio0: Portfolio, portfolio1: Portfolio) -> None:
    if portfolio0.n_groups != portfolio1.n_groups:
        raise ReductionMismatch(
            f"n_groups changed from {portfolio0.n_groups} to {portfolio1.n_groups}"
        )


def _require_declared(
    declared: Reducing,
    group_iter: int,
    mode: ReductionMode,
    n_groups: int,
) -> None:
    if declared.group_iter != group_iter:
        raise ReductionMismatch(
            f"Declared group_iter {declared.group_iter}, expected {group_iter}"
        )
    if group_iter > n_groups:
        raise ReductionMismatch(f"group_iter {group_iter} exceeds n_groups {n_groups}")
    if declared.mode != mode:
        raise ReductionMismatch(f"Declared {declared.mode!r}, expected {mode!r}")


# ============================================================================
# REDUCTION TRANSITIONS
# ============================================================================

def validate_start_reduction(
    tx: Transaction,
    portfolio0: Portfolio,
    portfolio1: Portfolio,
    group_ptrs: Sequence[int],
    tick: int,
) -> bool:
    """
    Idle -> Reducing, visiting groups 0 .. len(group_ptrs)-1.

    Args:
        tx: Transaction snapshot.
        portfolio0: Consumed portfolio (must be Idle).
        portfolio1: Produced portfolio with the declared reduction state.
        group_ptrs: Pointers into tx.ref_inputs.
        tick: Current global tick (see external.current_tick).
    """
    _require_idle(portfolio0, "Input")
    state1 = _require_reducing(portfolio1, "Output")
    _require_same_n_groups(portfolio0, portfolio1)
    _require_storage_untouched(tx)

    if state1.start_tick != tick:
        raise StaleEpoch(f"Reduction start_tick {state1.start_tick} != current tick {tick}")

    group_iter, mode = reduction_step(tx, None, state1.mode, group_ptrs, 0)
    _require_declared(state1, group_iter, mode, portfolio1.n_groups)
    return True


def validate_continue_reduction(
    tx: Transaction,
    portfolio0: Portfolio,
    portfolio1: Portfolio,
    group_ptrs: Sequence[int],
    tick: int,
) -> bool:
    """
    Reducing -> Reducing, visiting the next len(group_ptrs) groups.

    The epoch must be unchanged and current, and the mode kind (and the
    asset class searched for) can't change mid-reduction.
    """
    state0 = _require_reducing(portfolio0, "Input")
    state1 = _require_reducing(portfolio1, "Output")
    _require_same_n_groups(portfolio0, portfolio1)
    _require_storage_untouched(tx)

    if state0.start_tick != tick or state1.start_tick != tick:
        raise StaleEpoch(
            f"Reduction epoch {state0.start_tick} -> {state1.start_tick}, current tick {tick}"
        )
    if not same_mode_kind(state0.mode, state1.mode):
        raise ReductionMismatch(
            f"Reduction mode can't switch from {type(state0.mode).__name__} "
            f"to {type(state1.mode).__name__}"
        )
    if isinstance(state0.mode, (Exists, DoesNotExist)):
        if state0.mode.asset_class != state1.mode.asset_class:
            raise ReductionMismatch("Reduction asset class can't change")

    group_iter, mode = reduction_step(
        tx, state0.mode, state1.mode, group_ptrs, state0.group_iter
    )
    _require_declared(state1, group_iter, mode, portfolio1.n_groups)
    return True


def validate_reset_reduction(
    tx: Transaction,
    portfolio0: Portfolio,
    portfolio1: Portfolio,
) -> bool:
    """Reducing -> Idle. Resetting an idle portfolio is invalid."""
    _require_reducing(portfolio0, "Input")
    _require_storage_untouched(tx)
    _require_same_n_groups(portfolio0, portfolio1)
    _require_idle(portfolio1, "Output")
    return True


# ============================================================================
# ASSET GROUP LIFECYCLE
# ============================================================================

def validate_add_asset_group(
    tx: Transaction,
    portfolio0: Portfolio,
    portfolio1: Portfolio,
    added_id: int,
) -> bool:
    """
    Idle -> Idle, creating empty asset group `added_id` == n_groups.

    Exactly one marker token for the new group must be minted and the new
    group produced empty at ASSETS_ADDRESS.
    """
    _require_idle(portfolio0, "Input")
    _require_idle(portfolio1, "Output")
    if added_id != portfolio0.n_groups:
        raise WrongId(f"New asset group must have id {portfolio0.n_groups}, got {added_id}")
    if portfolio1.n_groups != portfolio0.n_groups + 1:
        raise ReductionMismatch(
            f"n_groups must become {portfolio0.n_groups + 1}, got {portfolio1.n_groups}"
        )
    _require_storage_untouched(tx)

    minted = group_markers(tx.minted)
    if minted != ((added_id, 1),):
        raise InvalidMarker(f"Expected one asset group {added_id} token minted, got {minted}")

    group = find_output(tx, added_id)
    if not group.is_empty():
        raise GroupNotEmpty(f"New asset group {added_id} holds {len(group)} assets")
    return True


def validate_remove_asset_group(
    tx: Transaction,
    portfolio0: Portfolio,
    portfolio1: Portfolio,
    removed_id: int,
) -> bool:
    """
    Idle -> Idle, destroying the highest asset group, which must be empty.

    The group is the only record spent from ASSETS_ADDRESS and its marker
    token is burned.
    """
    _require_idle(portfolio0, "Input")
    _require_idle(portfolio1, "Output")
    if portfolio0.n_groups == 0 or removed_id != portfolio0.n_groups - 1:
        raise WrongId(
            f"Only the highest asset group ({portfolio0.n_groups - 1}) can be removed, "
            f"got {removed_id}"
        )
    if portfolio1.n_groups != portfolio0.n_groups - 1:
        raise ReductionMismatch(
            f"n_groups must become {portfolio0.n_groups - 1}, got {portfolio1.n_groups}"
        )

    group_id, group = find_single_input(tx)
    if group_id != removed_id:
        raise WrongId(f"Spent asset group has id {group_id}, expected {removed_id}")
    if not group.is_empty():
        raise GroupNotEmpty(f"Asset group {removed_id} holds {len(group)} assets")

    burned = group_markers(tx.minted)
    if burned != ((removed_id, -1),):
        raise InvalidMarker(f"Expected asset group {removed_id} token burned, got {burned}")
    return True
