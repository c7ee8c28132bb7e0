"""
strategy_weights/report.py
--------------------------
Renderer-facing views of engine output.

Nothing here changes a weight; it only reshapes results into tables and
text that a front-end can display directly.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

import pandas as pd

from strategy_weights.models import RiskWeightResult, StrategyId, strategy_key


class WeightReport:
    """Tabular and text views of a ``{strategy_key: weight}`` map."""

    @staticmethod
    def frame(
        weights: Mapping[str, float],
        strategy_ids: Optional[Iterable[StrategyId]] = None,
    ) -> pd.DataFrame:
        """
        One row per strategy with its raw weight and its share in percent.

        When *strategy_ids* is given every listed strategy appears, with a
        raw weight of 0 if the engine returned nothing for it; otherwise the
        rows follow *weights*.
        """
        if strategy_ids is None:
            keys = list(weights)
        else:
            keys = [strategy_key(sid) for sid in strategy_ids]

        raw = [float(weights.get(key, 0.0)) for key in keys]
        total = sum(raw)

        df = pd.DataFrame({"strategy": keys, "raw_weight": raw})
        df["percent"] = df["raw_weight"] / total * 100.0 if total > 0 else 0.0
        return df

    @staticmethod
    def as_text(
        weights: Mapping[str, float],
        strategy_ids: Optional[Iterable[StrategyId]] = None,
    ) -> str:
        """``"Strategy <id>: 12.34%"``, one line per strategy."""
        df = WeightReport.frame(weights, strategy_ids)
        return "\n".join(
            f"Strategy {row.strategy}: {row.percent:.2f}%"
            for row in df.itertuples(index=False)
        )

    @staticmethod
    def pie_rows(
        weights: Mapping[str, float],
        strategy_ids: Optional[Iterable[StrategyId]] = None,
    ) -> pd.DataFrame:
        """Rows with a strictly positive share; zero slices are dropped."""
        df = WeightReport.frame(weights, strategy_ids)
        return df[df["percent"] > 0].reset_index(drop=True)

    @staticmethod
    def risk_frame(results: Sequence[RiskWeightResult]) -> pd.DataFrame:
        """
        Strategy × token weight matrix from the Risk-Normalized Engine.

        Index is the strategy key, one column per token (0 where a strategy
        has no entry), plus a ``validator`` column (NaN where unset).
        """
        rows = [
            {"strategy": r.key, "token": share.token.lower(), "weight": share.weight}
            for r in results
            for share in r.token_weights
        ]
        order = [r.key for r in results]

        if rows:
            long = pd.DataFrame(rows)
            matrix = long.pivot_table(
                index="strategy", columns="token", values="weight", aggfunc="sum", fill_value=0.0
            )
            matrix.columns.name = None
        else:
            matrix = pd.DataFrame(index=pd.Index([], name="strategy"))

        matrix = matrix.reindex(order, fill_value=0.0)
        matrix.index.name = "strategy"
        matrix["validator"] = pd.Series(
            [r.validator_balance_weight for r in results], index=matrix.index, dtype="float64"
        )
        return matrix
