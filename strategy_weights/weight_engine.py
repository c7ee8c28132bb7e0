"""
strategy_weights/weight_engine.py
---------------------------------
Weighted-Mean Engine: per-strategy token amounts → one normalised weight.

Design contract:
  - No data fetching
  - No rendering
  - Never mutates its inputs
  - Fully deterministic and stateless (all methods are @staticmethod)
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from strategy_weights.enums import CalculationType
from strategy_weights.models import (
    TokenStrategy,
    WeightCalculationOptions,
    normalize_token,
)
from strategy_weights.numeric import (
    coefficient_mass,
    normalize,
    parse_amount,
    safe_divide,
    safe_log,
)

logger = logging.getLogger(__name__)


class WeightEngine:
    """
    Reduce each strategy's coefficient-weighted token amounts (plus its
    validator balance) to a single score, then normalise the scores.

    Supports three mean types:
        ``"arithmetic"`` – Σ cᵢ·aᵢ / C
        ``"geometric"``  – Π aᵢ^cᵢ, evaluated in log space
        ``"harmonic"``   – C / Σ cᵢ/aᵢ

    where ``C`` is the total coefficient mass (token coefficients plus the
    validator coefficient).  Only tokens listed in the coefficients take
    part; a coefficient of 0 never moves a result.

    Returned weights are keyed by the stringified strategy id and sum to 1
    whenever at least one strategy scores above zero; otherwise every
    weight is 0.
    """

    DEFAULT_TYPE: CalculationType = CalculationType.ARITHMETIC

    # ------------------------------------------------------------------ #
    #  Public entry point
    # ------------------------------------------------------------------ #

    @staticmethod
    def calculate(
        strategies: Sequence[TokenStrategy],
        options: Optional[WeightCalculationOptions],
        calculation_type: Union[CalculationType, str] = CalculationType.ARITHMETIC,
    ) -> Dict[str, float]:
        """
        Compute normalised weights for *strategies*.

        Parameters
        ----------
        strategies:
            Strategies in the ``tokens`` map view.
        options:
            Token coefficients and the validator coefficient.  ``None`` (or
            ``coefficients=None``) yields an empty result.
        calculation_type:
            A :class:`CalculationType` or its string value.

        Returns
        -------
        ``{strategy_key: weight}``; empty when there is nothing to weigh.

        Raises
        ------
        ValueError
            If *calculation_type* is not one of the three mean types.
        """
        kind = WeightEngine._resolve_type(calculation_type)

        if not strategies or options is None or options.coefficients is None:
            return {}

        logger.debug("Calculating %s weights for %d strategies", kind.value, len(strategies))

        if kind is CalculationType.ARITHMETIC:
            return WeightEngine.arithmetic(strategies, options)
        if kind is CalculationType.GEOMETRIC:
            return WeightEngine.geometric(strategies, options)
        return WeightEngine.harmonic(strategies, options)

    # ------------------------------------------------------------------ #
    #  Mean types
    # ------------------------------------------------------------------ #

    @staticmethod
    def arithmetic(
        strategies: Sequence[TokenStrategy],
        options: WeightCalculationOptions,
    ) -> Dict[str, float]:
        """
        Weight ∝ (Σ cᵢ·aᵢ + c_v·balance) / C.

        Amounts and coefficients are each divided by their largest magnitude
        before multiplying, so huge values cannot overflow to ``inf``.  A
        common scale cancels out once the scores are normalised.
        """
        if not strategies:
            return {}

        coefficients = np.array(
            [c.coefficient for c in options.coefficients] + [options.validator_coefficient or 0.0],
            dtype=float,
        )
        rows = []
        for strategy in strategies:
            amounts = strategy.amounts()
            rows.append(
                [parse_amount(amounts.get(normalize_token(c.token))) for c in options.coefficients]
                + [strategy.validator_balance_weight]
            )
        matrix = np.array(rows, dtype=float)

        matrix = matrix / (float(np.abs(matrix).max()) or 1.0)
        coefficients = coefficients / (float(np.abs(coefficients).max()) or 1.0)
        mass = float(coefficients.sum())

        raw: Dict[str, float] = {}
        for strategy, score in zip(strategies, matrix @ coefficients):
            raw[strategy.key] = safe_divide(float(score), mass)

        return normalize(raw)

    @staticmethod
    def harmonic(
        strategies: Sequence[TokenStrategy],
        options: WeightCalculationOptions,
    ) -> Dict[str, float]:
        """
        Weight ∝ C / (Σ cᵢ/aᵢ + c_v/balance).

        Tokens with a zero amount add no ratio term; a strategy whose ratio
        sum is zero scores 0.
        """
        mass = coefficient_mass(options.coefficients, options.validator_coefficient)
        raw: Dict[str, float] = {}

        for strategy in strategies:
            amounts = strategy.amounts()
            ratio_sum = 0.0
            for c in options.coefficients:
                amount = parse_amount(amounts.get(normalize_token(c.token)))
                if amount > 0:
                    ratio_sum += c.coefficient / amount
            if strategy.validator_balance_weight > 0:
                ratio_sum += options.validator_coefficient / strategy.validator_balance_weight
            raw[strategy.key] = safe_divide(mass, ratio_sum)

        return normalize(raw)

    @staticmethod
    def geometric(
        strategies: Sequence[TokenStrategy],
        options: WeightCalculationOptions,
    ) -> Dict[str, float]:
        """
        Weight ∝ Π aᵢ^cᵢ · balance^c_v, computed as exp(log-sum − max log-sum).

        A positive coefficient on a zero or missing amount makes the whole
        product zero.
        """
        keys: List[str] = []
        log_sums: List[float] = []

        for strategy in strategies:
            keys.append(strategy.key)
            log_sums.append(WeightEngine._log_product(strategy, options))

        logs = np.array(log_sums, dtype=float)
        finite = np.isfinite(logs)
        if not finite.any():
            return {key: 0.0 for key in keys}

        # Shift by the largest finite log-sum so the biggest term is exp(0) = 1
        shifted = np.where(finite, logs - logs[finite].max(), -np.inf)
        weights = np.exp(shifted)

        return normalize(dict(zip(keys, (float(w) for w in weights))))

    # ------------------------------------------------------------------ #
    #  Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _log_product(
        strategy: TokenStrategy,
        options: WeightCalculationOptions,
    ) -> float:
        """Σ cᵢ·ln(aᵢ) + c_v·ln(balance), or -inf once any factor is zero."""
        amounts = strategy.amounts()
        log_sum = 0.0

        for c in options.coefficients:
            if c.coefficient <= 0:
                continue
            term = safe_log(parse_amount(amounts.get(normalize_token(c.token))))
            if term == -math.inf:
                return -math.inf
            log_sum += c.coefficient * term

        if options.validator_coefficient > 0:
            term = safe_log(strategy.validator_balance_weight)
            if term == -math.inf:
                return -math.inf
            log_sum += options.validator_coefficient * term

        return log_sum

    @staticmethod
    def _resolve_type(calculation_type: Union[CalculationType, str]) -> CalculationType:
        return CalculationType.parse(calculation_type)
