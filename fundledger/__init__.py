"""
fundledger - Validation core of a tokenized-fund ledger protocol

Pure, stateless decision functions over an immutable transaction snapshot.
The fund's assets live in fixed-capacity asset groups chained together by
caller-supplied pointers; these functions accept or reject proposed
transitions of the portfolio directory, the asset groups and the vault.

Usage:
    from fundledger import (
        Transaction, Portfolio, Reducing, TotalAssetValue,
        validate_start_reduction, judge,
    )

    verdict, reason = judge(
        validate_start_reduction, tx, portfolio0, portfolio1,
        group_ptrs=[0, 1, 2], tick=current_tick(tx),
    )
"""

# Core types
from .core import (
    AssetClass,
    Address,
    Value,
    TxOutput,
    TxInput,
    TimeRange,
    Transaction,
    RecordTable,
    Verdict,
    judge,
    find_unique_marked,
    datum_as,
    sum_values,
    FUND_POLICY,
    MAX_GROUP_SIZE,
    ASSETS_ADDRESS,
    PORTFOLIO_ADDRESS,
    VAULT_ADDRESS,
    CONFIG_ADDRESS,
    SUPPLY_ADDRESS,
    FundError,
    NoMatch,
    NotASingleton,
    WrongAddress,
    InvalidPointer,
    WrongId,
    OutOfOrderPointer,
    InvalidMarker,
    InvalidDatum,
    InvalidTokenName,
    Overfull,
    GroupNotEmpty,
    StaleEpoch,
    StalePrice,
    InvalidPrice,
    IdentityFieldChanged,
    CounterMismatch,
    ReductionMismatch,
    InvalidTransition,
    StorageSpent,
    NoPriceData,
    MissingWitness,
    ReductionIncomplete,
)

# Token names
from . import tokens
from .tokens import (
    assets_token,
    config_token,
    portfolio_token,
    supply_token,
    parse_assets,
    parse_series,
    group_marker,
)

# Assets and asset groups
from .asset import Asset, Ratio
from .asset_group import (
    AssetGroup,
    read_group,
    find_current,
    find_output,
    find_input_asset,
    find_output_asset,
    find_single_input,
    find_asset,
    has_asset,
    is_empty,
    is_not_overfull,
    nothing_spent,
)
from .asset_ptr import AssetPtr, resolve_input, resolve_output

# Traversal
from .traversal import (
    ValueAccumulator,
    resolve_group,
    resolve_groups,
    fold_groups,
    search_for_asset_class,
    find_group_position,
    sum_total_asset_value,
)

# Portfolio
from .portfolio import (
    Portfolio,
    Idle,
    Reducing,
    TotalAssetValue,
    Exists,
    DoesNotExist,
    ReductionMode,
    PortfolioReduction,
    is_idle,
    witnessed_by_portfolio,
    sum_lovelace,
)

# Portfolio transitions
from .reduction import (
    reduction_step,
    validate_start_reduction,
    validate_continue_reduction,
    validate_reset_reduction,
    validate_add_asset_group,
    validate_remove_asset_group,
)

# Vault
from . import vault
from .vault import (
    VAULT_DATUM,
    diff,
    diff_lovelace,
    diff_counted,
    counters_are_consistent,
)

# External records
from .external import Config, Supply, find_config, find_supply, current_tick


__all__ = [
    # Core
    'AssetClass', 'Address', 'Value', 'TxOutput', 'TxInput', 'TimeRange',
    'Transaction', 'RecordTable', 'Verdict', 'judge',
    'find_unique_marked', 'datum_as', 'sum_values',
    'FUND_POLICY', 'MAX_GROUP_SIZE', 'ASSETS_ADDRESS', 'PORTFOLIO_ADDRESS',
    'VAULT_ADDRESS', 'CONFIG_ADDRESS', 'SUPPLY_ADDRESS',
    # Errors
    'FundError', 'NoMatch', 'NotASingleton', 'WrongAddress', 'InvalidPointer',
    'WrongId', 'OutOfOrderPointer', 'InvalidMarker', 'InvalidDatum',
    'InvalidTokenName', 'Overfull', 'GroupNotEmpty', 'StaleEpoch', 'StalePrice',
    'InvalidPrice', 'IdentityFieldChanged', 'CounterMismatch', 'ReductionMismatch',
    'InvalidTransition', 'StorageSpent', 'NoPriceData', 'MissingWitness',
    'ReductionIncomplete',
    # Tokens
    'tokens', 'assets_token', 'config_token', 'portfolio_token', 'supply_token',
    'parse_assets', 'parse_series', 'group_marker',
    # Assets
    'Asset', 'Ratio', 'AssetGroup', 'read_group',
    'find_current', 'find_output', 'find_input_asset', 'find_output_asset',
    'find_single_input', 'find_asset', 'has_asset', 'is_empty', 'is_not_overfull',
    'nothing_spent', 'AssetPtr', 'resolve_input', 'resolve_output',
    # Traversal
    'ValueAccumulator', 'resolve_group', 'resolve_groups', 'fold_groups',
    'search_for_asset_class', 'find_group_position', 'sum_total_asset_value',
    # Portfolio
    'Portfolio', 'Idle', 'Reducing', 'TotalAssetValue', 'Exists', 'DoesNotExist',
    'ReductionMode', 'PortfolioReduction', 'is_idle', 'witnessed_by_portfolio',
    'sum_lovelace',
    # Transitions
    'reduction_step', 'validate_start_reduction', 'validate_continue_reduction',
    'validate_reset_reduction', 'validate_add_asset_group',
    'validate_remove_asset_group',
    # Vault
    'vault', 'VAULT_DATUM', 'diff', 'diff_lovelace', 'diff_counted',
    'counters_are_consistent',
    # External
    'Config', 'Supply', 'find_config', 'find_supply', 'current_tick',
]

__version__ = '0.1.0'
