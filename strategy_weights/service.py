"""
strategy_weights/service.py
---------------------------
Caller-level wrappers around the engines.

The engines are total over well-formed input.  These wrappers sit at the
boundary with external data: anything unexpected (a record of the wrong
type, an unknown calculation type) is logged and replaced by an empty
result so the caller can always render something.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Union

from strategy_weights.enums import CalculationType
from strategy_weights.models import (
    DepositStrategy,
    RiskWeightResult,
    TokenConfig,
    TokenStrategy,
    WeightCalculationOptions,
)
from strategy_weights.risk_engine import RiskEngine
from strategy_weights.weight_engine import WeightEngine

logger = logging.getLogger(__name__)


def calculate_strategy_weights(
    strategies: Sequence[TokenStrategy],
    options: Optional[WeightCalculationOptions],
    calculation_type: Union[CalculationType, str] = CalculationType.ARITHMETIC,
) -> Dict[str, float]:
    """Weighted-Mean Engine, or ``{}`` if it fails."""
    try:
        weights = WeightEngine.calculate(strategies, options, calculation_type)
    except Exception:
        logger.exception("Error calculating %s strategy weights", calculation_type)
        return {}
    logger.info("Calculated weights for %d strategies", len(weights))
    return weights


def calculate_simulation_weights(
    strategies: Sequence[DepositStrategy],
    token_configs: Optional[Sequence[TokenConfig]] = None,
) -> List[RiskWeightResult]:
    """
    Risk-Normalized Engine, or ``[]`` if it fails.

    Token configs default to :meth:`RiskEngine.default_token_configs`.
    """
    try:
        if token_configs is None:
            token_configs = RiskEngine.default_token_configs(strategies)
        results = RiskEngine.calculate(strategies, token_configs)
    except Exception:
        logger.exception("Error calculating simulation weights")
        return []
    logger.info("Calculated simulation weights for %d strategies", len(results))
    return results
