"""
strategy_weights/risk_engine.py
-------------------------------
Risk-Normalized Obligation Engine: per-token, decay-weighted shares.

For every token independently::

    termₛ  = (depositₛ / totalObligated) · exp(−β · max(1, riskₛ))
    weightₛ = termₛ / Σ term

so each token's column of weights sums to 1.  Validator-delegated balances
are normalised separately against their own total.

Deposit ratios are taken as exact fractions of arbitrary-precision
integers and only become floats when multiplied by the decay term.
"""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from fractions import Fraction
from typing import Dict, List, Optional, Sequence

from strategy_weights.config import BASIS_POINTS, DEFAULT_SHARED_RISK_LEVEL, RISK_FLOOR
from strategy_weights.models import (
    DepositStrategy,
    RiskWeightResult,
    TokenConfig,
    TokenShare,
    TokenWeightEntry,
    normalize_token,
)
from strategy_weights.numeric import parse_units, safe_divide

logger = logging.getLogger(__name__)


class RiskEngine:
    """
    Distribute each token's weight across the strategies that deposit it.

    Stateless; every call builds fresh :class:`RiskWeightResult` objects,
    one per input strategy, in input order.
    """

    @staticmethod
    def calculate(
        strategies: Sequence[DepositStrategy],
        token_configs: Sequence[TokenConfig],
    ) -> List[RiskWeightResult]:
        """
        Compute per-strategy, per-token weights and validator weights.

        Parameters
        ----------
        strategies:
            Strategies in the ``tokenWeights`` list view.
        token_configs:
            One entry per token to weigh.  Tokens whose total obligated
            balance is zero are skipped.

        Returns
        -------
        List of :class:`RiskWeightResult`, aligned with *strategies*.
        """
        if not strategies:
            return []

        results = [RiskWeightResult(id=s.id) for s in strategies]
        risks = [RiskEngine.accumulate_risk(s) for s in strategies]

        for config in token_configs or ():
            RiskEngine._weigh_token(config, strategies, risks, results)

        RiskEngine._weigh_validators(strategies, results)

        logger.debug(
            "Calculated risk-normalized weights for %d strategies over %d tokens",
            len(strategies), len(token_configs or ()),
        )
        return results

    @staticmethod
    def accumulate_risk(strategy: DepositStrategy) -> Dict[str, float]:
        """
        Lower-cased token → Σ weight / 10000 over every entry for that token.

        A strategy may list the same token more than once; the risks add up.
        """
        risk: Dict[str, float] = {}
        for entry in strategy.token_weights:
            token = normalize_token(entry.token)
            risk[token] = risk.get(token, 0.0) + entry.weight / BASIS_POINTS
        return risk

    @staticmethod
    def default_token_configs(
        strategies: Sequence[DepositStrategy],
        shared_risk_level: int = DEFAULT_SHARED_RISK_LEVEL,
    ) -> List[TokenConfig]:
        """
        Derive one :class:`TokenConfig` per distinct token, in first-seen
        order, with the summed deposits as the total obligated balance.
        """
        totals: "OrderedDict[str, int]" = OrderedDict()
        for strategy in strategies:
            for entry in strategy.token_weights:
                token = normalize_token(entry.token)
                totals[token] = totals.get(token, 0) + parse_units(entry.deposit_amount)

        return [
            TokenConfig(
                token=token,
                shared_risk_level=shared_risk_level,
                total_obligated_balance=str(total),
            )
            for token, total in totals.items()
        ]

    @staticmethod
    def token_totals(results: Sequence[RiskWeightResult]) -> Dict[str, float]:
        """Sum each token's weight column across all strategies."""
        totals: Dict[str, float] = {}
        for result in results:
            for share in result.token_weights:
                token = normalize_token(share.token)
                totals[token] = totals.get(token, 0.0) + share.weight
        return totals

    # ------------------------------------------------------------------ #
    #  Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _weigh_token(
        config: TokenConfig,
        strategies: Sequence[DepositStrategy],
        risks: Sequence[Dict[str, float]],
        results: List[RiskWeightResult],
    ) -> None:
        token = normalize_token(config.token)
        total = parse_units(config.total_obligated_balance)
        if total == 0:
            logger.debug("Skipping token %s: total obligated balance is zero", config.token)
            return

        beta = config.beta
        denominator = 0.0
        terms: List[tuple] = []

        for index, strategy in enumerate(strategies):
            deposit = RiskEngine._deposit_for(strategy, token)
            if deposit == 0:
                continue

            risk = max(RISK_FLOOR, risks[index].get(token, 0.0))
            term = float(Fraction(deposit, total)) * math.exp(-beta * risk)
            denominator += term
            terms.append((index, term))

        scale = safe_divide(1.0, denominator)
        for index, term in terms:
            results[index].token_weights.append(TokenShare(token=config.token, weight=term * scale))

    @staticmethod
    def _weigh_validators(
        strategies: Sequence[DepositStrategy],
        results: List[RiskWeightResult],
    ) -> None:
        balances = [max(s.validator_balance_weight, 0.0) for s in strategies]
        total = sum(balances)
        if total <= 0:
            return
        for result, balance in zip(results, balances):
            result.validator_balance_weight = balance / total

    @staticmethod
    def _deposit_for(strategy: DepositStrategy, token: str) -> int:
        """Deposit of the first entry naming *token*; 0 when absent or malformed."""
        entry: Optional[TokenWeightEntry] = next(
            (tw for tw in strategy.token_weights if normalize_token(tw.token) == token),
            None,
        )
        if entry is None:
            return 0
        return parse_units(entry.deposit_amount)
