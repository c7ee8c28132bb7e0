"""Normalised influence weights for strategies backing a shared application."""

__version__ = "0.1.0"

from .adapters import (
    attach_delegated_balances,
    detect_tokens,
    ensure_all_tokens,
    format_ether,
    group_deposits,
    parse_ether,
    sync_coefficients,
    to_deposit_strategy,
    to_token_strategy,
)
from .data_source import Snapshot, SnapshotLoader, StrategySource, generate_random_strategy
from .enums import CalculationType
from .models import (
    DelegatedBalance,
    DepositStrategy,
    RiskWeightResult,
    TokenAmount,
    TokenCoefficient,
    TokenConfig,
    TokenShare,
    TokenStrategy,
    TokenWeightEntry,
    WeightCalculationOptions,
    normalize_token,
    strategy_key,
)
from .report import WeightReport
from .risk_engine import RiskEngine
from .service import calculate_simulation_weights, calculate_strategy_weights
from .weight_engine import WeightEngine

__all__ = [
    "CalculationType",
    "DelegatedBalance",
    "DepositStrategy",
    "RiskEngine",
    "RiskWeightResult",
    "Snapshot",
    "SnapshotLoader",
    "StrategySource",
    "TokenAmount",
    "TokenCoefficient",
    "TokenConfig",
    "TokenShare",
    "TokenStrategy",
    "TokenWeightEntry",
    "WeightCalculationOptions",
    "WeightEngine",
    "WeightReport",
    "attach_delegated_balances",
    "calculate_simulation_weights",
    "calculate_strategy_weights",
    "detect_tokens",
    "ensure_all_tokens",
    "format_ether",
    "generate_random_strategy",
    "group_deposits",
    "normalize_token",
    "parse_ether",
    "strategy_key",
    "sync_coefficients",
    "to_deposit_strategy",
    "to_token_strategy",
]
