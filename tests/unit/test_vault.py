"""
test_vault.py - Unit tests for vault diff and counter reconciliation

Tests:
- diff: net vault change, datum check, multi-token outputs ignored
- diff_lovelace: needs the config record and a validity range
- diff_counted: thread structure checks
- counters_are_consistent: accepted and rejected reconciliations
"""

import pytest

from fundledger import (
    Value, vault,
    InvalidDatum, InvalidMarker, InvalidPointer, WrongAddress, NotASingleton, NoMatch,
    Overfull, IdentityFieldChanged, CounterMismatch, MissingWitness,
    diff, diff_lovelace, diff_counted, counters_are_consistent,
)

from tests.tx_builder import TxBuilder, ac, asset


class TestDiff:

    def test_lovelace_in_and_out(self):
        tx = (TxBuilder()
              .take_from_vault(1_000_000)
              .take_from_vault(2_000_000)
              .take_from_vault(10_000_000)
              .send_to_vault(15_000_000)
              .send_to_vault(2_000_000)
              .build())
        assert diff(tx) == Value(4_000_000)

    def test_multi_token_outputs_not_counted(self):
        tx = (TxBuilder()
              .take_from_vault(1_000_000)
              .take_from_vault(2_000_000)
              .take_from_vault(10_000_000)
              .send_to_vault(15_000_000, {ac(0): 10, ac(1): 20})
              .send_to_vault(2_000_000, {ac(0): 10})
              .build())
        assert diff(tx) == Value(-11_000_000, {ac(0): 10})

    def test_tokens_taken(self):
        tx = TxBuilder().take_from_vault(0, {ac(0): 1_000_000}).build()
        assert diff(tx) == Value(0, {ac(0): -1_000_000})

    def test_wrong_datum(self):
        tx = TxBuilder().send_to_vault(5_000_000, datum=b"\x01").build()
        with pytest.raises(InvalidDatum):
            diff(tx)

    def test_other_addresses_ignored(self):
        tx = TxBuilder().add_dummy_inputs(3).add_asset_group_output(0).build()
        assert diff(tx) == Value()


class TestDiffLovelace:

    def _builder(self):
        return TxBuilder().take_from_vault(1_000_000).send_to_vault(3_000_000)

    def test_with_witnesses(self):
        tx = self._builder().add_config_ref().set_time_range(0, 1000).build()
        assert diff_lovelace(tx) == 2_000_000

    def test_config_missing(self):
        tx = self._builder().set_time_range(0, 1000).build()
        with pytest.raises(MissingWitness):
            diff_lovelace(tx)

    def test_time_range_missing(self):
        tx = self._builder().add_config_ref().build()
        with pytest.raises(MissingWitness):
            diff_lovelace(tx)


class TestNothingSpent:

    def test_nothing(self):
        assert vault.nothing_spent(TxBuilder().add_dummy_inputs(2).send_to_vault(5).build())

    def test_vault_spent(self):
        assert not vault.nothing_spent(TxBuilder().take_from_vault(5).build())

    def test_group_spent(self):
        assert not vault.nothing_spent(TxBuilder().add_asset_group_input(0).build())


GROUP0_BEFORE = [asset(0, 0, (1, 1), 123)]
GROUP0_AFTER = [asset(0, 12, (1, 1), 123)]
GROUP1_BEFORE = [asset(1, 10, (2, 1), 123), asset(2, 20, (3, 1), 123), asset(3, 30, (4, 1), 123)]
GROUP1_AFTER = [asset(1, 15, (2, 1), 123), asset(2, 25, (3, 1), 123), asset(3, 0, (4, 1), 123)]


def rebalance_builder(group0_after=GROUP0_AFTER, group1_before=GROUP1_BEFORE, group1_after=GROUP1_AFTER):
    """
    Vault gives up ac2:20 and ac3:30 and receives ac0:12, ac1:5, ac2:25.

    Outputs: group 0 at 0, group 1 at 1, vault records after.
    """
    return (TxBuilder()
            .add_config_ref()
            .set_time_range(0, 1000)
            .take_from_vault(0, {ac(2): 20, ac(3): 30})
            .add_asset_group_thread(0, GROUP0_BEFORE, group0_after)
            .add_asset_group_thread(1, group1_before, group1_after)
            .send_to_vault(0, {ac(0): 12})
            .send_to_vault(0, {ac(1): 5})
            .send_to_vault(0, {ac(2): 25}))


class TestDiffCounted:

    def test_counted(self):
        tx = rebalance_builder().build()
        expected = Value(7, {ac(0): 12, ac(1): 5, ac(2): 5, ac(3): -30})
        assert diff_counted(tx, 7, [0, 1]) == expected

    def test_no_threads(self):
        assert diff_counted(TxBuilder().build(), -5, []) == Value(-5)

    def test_unthreaded_spent_group(self):
        tx = rebalance_builder().build()
        with pytest.raises(CounterMismatch):
            diff_counted(tx, 0, [0])

    def test_thread_named_twice(self):
        tx = rebalance_builder().build()
        with pytest.raises(NotASingleton):
            diff_counted(tx, 0, [0, 0, 1])

    def test_pointer_to_vault_output(self):
        tx = rebalance_builder().build()
        with pytest.raises(WrongAddress):
            diff_counted(tx, 0, [0, 1, 2])

    def test_pointer_out_of_range(self):
        tx = rebalance_builder().build()
        with pytest.raises(InvalidPointer):
            diff_counted(tx, 0, [0, 1, 9])

    def test_price_changed(self):
        after = [asset(0, 12, (2, 1), 123)]
        tx = rebalance_builder(group0_after=after).build()
        with pytest.raises(IdentityFieldChanged):
            diff_counted(tx, 0, [0, 1])

    def test_asset_class_changed(self):
        after = [asset(5, 12, (1, 1), 123)]
        tx = rebalance_builder(group0_after=after).build()
        with pytest.raises(IdentityFieldChanged):
            diff_counted(tx, 0, [0, 1])

    def test_price_timestamp_changed(self):
        after = [asset(0, 12, (1, 1), 124)]
        tx = rebalance_builder(group0_after=after).build()
        with pytest.raises(IdentityFieldChanged):
            diff_counted(tx, 0, [0, 1])

    def test_asset_added(self):
        tx = rebalance_builder(group0_after=GROUP0_AFTER + [asset(7)]).build()
        with pytest.raises(IdentityFieldChanged):
            diff_counted(tx, 0, [0, 1])

    def test_asset_dropped(self):
        tx = rebalance_builder(group1_after=GROUP1_AFTER[:2]).build()
        with pytest.raises(IdentityFieldChanged):
            diff_counted(tx, 0, [0, 1])

    def test_overfull_output(self):
        tx = rebalance_builder(group1_after=GROUP1_AFTER + [asset(4)]).build()
        with pytest.raises(Overfull):
            diff_counted(tx, 0, [0, 1])

    def test_output_with_extra_tokens(self):
        tx = (TxBuilder()
              .add_asset_group_input(0, GROUP0_BEFORE)
              .add_asset_group_output(0, GROUP0_AFTER, extra={ac(0): 12})
              .build())
        with pytest.raises(InvalidMarker):
            diff_counted(tx, 0, [0])

    def test_thread_input_missing(self):
        tx = TxBuilder().add_asset_group_output(0, GROUP0_AFTER).build()
        with pytest.raises(NoMatch):
            diff_counted(tx, 0, [0])


class TestCountersAreConsistent:

    def test_consistent(self):
        assert counters_are_consistent(rebalance_builder().build(), 0, [0, 1])

    def test_thread_order_irrelevant(self):
        assert counters_are_consistent(rebalance_builder().build(), 0, [1, 0])

    def test_both_sides_reversed(self):
        tx = rebalance_builder(
            group1_before=GROUP1_BEFORE[::-1],
            group1_after=GROUP1_AFTER[::-1],
        ).build()
        assert counters_are_consistent(tx, 0, [0, 1])

    def test_only_output_reversed(self):
        tx = rebalance_builder(group1_after=GROUP1_AFTER[::-1]).build()
        with pytest.raises(IdentityFieldChanged):
            counters_are_consistent(tx, 0, [0, 1])

    def test_count_overstated(self):
        after = [asset(0, 13, (1, 1), 123)]
        assert not counters_are_consistent(rebalance_builder(group0_after=after).build(), 0, [0, 1])

    def test_lovelace_misdeclared(self):
        assert not counters_are_consistent(rebalance_builder().build(), 1, [0, 1])

    def test_lovelace_moved(self):
        tx = rebalance_builder().send_to_vault(5_000_000).build()
        assert counters_are_consistent(tx, 5_000_000, [0, 1])

    def test_untracked_token_deposit(self):
        tx = rebalance_builder().send_to_vault(0, {ac(9): 1}).build()
        assert not counters_are_consistent(tx, 0, [0, 1])

    def test_missing_thread_raises(self):
        with pytest.raises(CounterMismatch):
            counters_are_consistent(rebalance_builder().build(), 0, [1])

    def test_requires_config(self):
        tx = (TxBuilder()
              .set_time_range(0, 1)
              .take_from_vault(5)
              .send_to_vault(5)
              .build())
        with pytest.raises(MissingWitness):
            counters_are_consistent(tx, 0, [])
