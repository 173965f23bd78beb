"""
conftest.py - Shared pytest fixtures for fundledger tests

Provides:
- Asset records priced so values are easy to check by hand
- Reference-only transactions holding a chain of asset groups
- Portfolio states for the reduction tests
"""

import pytest

from fundledger import Portfolio, Idle, Reducing, TotalAssetValue

from tests.tx_builder import TxBuilder, ac, asset


@pytest.fixture
def three_group_tx():
    """
    Groups 0..2 referenced in reverse order (pointers [2, 1, 0]).

    values: group 0 = 1000, group 1 = 600 + 50, group 2 = 0 (empty)
    oldest timestamp: 90
    """
    return (TxBuilder()
            .add_asset_group_ref(2, [])
            .add_asset_group_ref(1, [asset(1, 300, (2, 1), 120), asset(2, 100, (1, 2), 90)])
            .add_asset_group_ref(0, [asset(0, 1000, (1, 1), 100)])
            .add_supply_ref(tick=7)
            .build())


@pytest.fixture
def three_group_ptrs():
    return [2, 1, 0]


@pytest.fixture
def idle_portfolio():
    return Portfolio(n_groups=3, reduction=Idle())


@pytest.fixture
def finished_total_portfolio():
    return Portfolio(
        n_groups=3,
        reduction=Reducing(group_iter=3, start_tick=7, mode=TotalAssetValue(1650, 90)),
    )


@pytest.fixture
def tracked_class():
    return ac(1)
