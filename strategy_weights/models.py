"""
strategy_weights/models.py
--------------------------
Typed input and output records for both engines.

The two strategy shapes are deliberately separate types:

* :class:`TokenStrategy`   – ``tokens`` map view, read by the Weighted-Mean Engine
* :class:`DepositStrategy` – ``tokenWeights`` list view, read by the
  Risk-Normalized Obligation Engine

Conversion between them lives in :mod:`strategy_weights.adapters`.
Every ``from_dict`` accepts the camelCase shape handed over by the data
source; every ``to_dict`` emits it back for the renderer.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

from strategy_weights.config import BASIS_POINTS

StrategyId = Union[int, str]

_INTEGER_ID = re.compile(r"-?[0-9]+")


def strategy_key(strategy_id: StrategyId) -> str:
    """
    Stringify a strategy id so that ``5``, ``5.0``, ``"5"`` and ``" 5 "``
    all land on the same key.
    """
    if isinstance(strategy_id, float) and strategy_id.is_integer():
        return str(int(strategy_id))
    text = str(strategy_id).strip()
    if _INTEGER_ID.fullmatch(text):
        return str(int(text))
    return text


def normalize_token(token: str) -> str:
    """Token identifiers are compared case-insensitively."""
    return str(token).strip().lower()


def _as_float(value, default: float = 0.0) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def _strategy_id(data: Mapping) -> StrategyId:
    for key in ("id", "strategy"):
        value = data.get(key)
        if value is not None and value != "":
            return value
    raise ValueError(f"Strategy record has neither 'id' nor 'strategy': {dict(data)!r}")


# ---------------------------------------------------------------------------
# Weighted-Mean Engine inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenAmount:
    amount: str
    obligated_percentage: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping) -> "TokenAmount":
        return cls(
            amount=str(data.get("amount", "0")),
            obligated_percentage=_as_float(data.get("obligatedPercentage", 0.0)),
        )

    def to_dict(self) -> dict:
        return {"amount": self.amount, "obligatedPercentage": self.obligated_percentage}


@dataclass(frozen=True)
class TokenStrategy:
    """A strategy in the ``tokens`` map view (amounts at display scale)."""
    id: StrategyId
    tokens: Mapping[str, TokenAmount] = field(default_factory=dict)
    validator_balance_weight: float = 0.0

    @property
    def key(self) -> str:
        return strategy_key(self.id)

    def amounts(self) -> Dict[str, str]:
        """Lower-cased token → raw amount string."""
        return {normalize_token(t): entry.amount for t, entry in self.tokens.items()}

    @classmethod
    def from_dict(cls, data: Mapping) -> "TokenStrategy":
        tokens = {
            token: TokenAmount.from_dict(entry)
            for token, entry in (data.get("tokens") or {}).items()
        }
        return cls(
            id=_strategy_id(data),
            tokens=tokens,
            validator_balance_weight=_as_float(data.get("validatorBalanceWeight", 0.0)),
        )

    def to_dict(self) -> dict:
        return {
            "strategy": self.id,
            "tokens": {token: entry.to_dict() for token, entry in self.tokens.items()},
            "validatorBalanceWeight": self.validator_balance_weight,
        }


@dataclass(frozen=True)
class TokenCoefficient:
    token: str
    coefficient: float

    @classmethod
    def from_dict(cls, data: Mapping) -> "TokenCoefficient":
        return cls(token=str(data["token"]), coefficient=_as_float(data.get("coefficient", 0.0)))

    def to_dict(self) -> dict:
        return {"token": self.token, "coefficient": self.coefficient}


@dataclass(frozen=True)
class WeightCalculationOptions:
    coefficients: Optional[Tuple[TokenCoefficient, ...]]
    validator_coefficient: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping) -> "WeightCalculationOptions":
        raw = data.get("coefficients")
        coefficients = None if raw is None else tuple(TokenCoefficient.from_dict(c) for c in raw)
        return cls(
            coefficients=coefficients,
            validator_coefficient=_as_float(data.get("validatorCoefficient", 0.0)),
        )


# ---------------------------------------------------------------------------
# Risk-Normalized Obligation Engine inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenWeightEntry:
    token: str
    weight: float = 0.0            # risk, in basis points
    deposit_amount: str = "0"      # smallest unit

    @classmethod
    def from_dict(cls, data: Mapping) -> "TokenWeightEntry":
        deposit = data.get("depositAmount")
        return cls(
            token=str(data["token"]),
            weight=_as_float(data.get("weight", 0.0)),
            deposit_amount="0" if deposit is None else str(deposit),
        )

    def to_dict(self) -> dict:
        return {"token": self.token, "weight": self.weight, "depositAmount": self.deposit_amount}


@dataclass(frozen=True)
class DepositStrategy:
    """A strategy in the ``tokenWeights`` list view (amounts in smallest unit)."""
    id: StrategyId
    token_weights: Tuple[TokenWeightEntry, ...] = ()
    validator_balance_weight: float = 0.0

    @property
    def key(self) -> str:
        return strategy_key(self.id)

    @classmethod
    def from_dict(cls, data: Mapping) -> "DepositStrategy":
        return cls(
            id=_strategy_id(data),
            token_weights=tuple(
                TokenWeightEntry.from_dict(tw) for tw in (data.get("tokenWeights") or [])
            ),
            validator_balance_weight=_as_float(data.get("validatorBalanceWeight", 0.0)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tokenWeights": [tw.to_dict() for tw in self.token_weights],
            "validatorBalanceWeight": self.validator_balance_weight,
        }


@dataclass(frozen=True)
class DelegatedBalance:
    """Validator balance delegated to one strategy, in smallest unit."""
    strategy_id: StrategyId
    delegation: str = "0"

    @property
    def key(self) -> str:
        return strategy_key(self.strategy_id)

    @classmethod
    def from_dict(cls, data: Mapping) -> "DelegatedBalance":
        delegation = data.get("delegation")
        return cls(
            strategy_id=data["strategyId"],
            delegation="0" if delegation is None else str(delegation),
        )

    def to_dict(self) -> dict:
        return {"strategyId": self.strategy_id, "delegation": self.delegation}


@dataclass(frozen=True)
class TokenConfig:
    token: str
    shared_risk_level: int        # basis points, 0..10000
    total_obligated_balance: str  # smallest unit

    @property
    def beta(self) -> float:
        """Decay rate β in [0, 1]."""
        return self.shared_risk_level / BASIS_POINTS

    @classmethod
    def from_dict(cls, data: Mapping) -> "TokenConfig":
        return cls(
            token=str(data["token"]),
            shared_risk_level=int(_as_float(data.get("sharedRiskLevel", 0))),
            total_obligated_balance=str(data.get("totalObligatedBalance", "0")),
        )

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "sharedRiskLevel": self.shared_risk_level,
            "totalObligatedBalance": self.total_obligated_balance,
        }


# ---------------------------------------------------------------------------
# Risk-Normalized Obligation Engine outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenShare:
    token: str
    weight: float


@dataclass
class RiskWeightResult:
    id: StrategyId
    token_weights: List[TokenShare] = field(default_factory=list)
    validator_balance_weight: Optional[float] = None

    @property
    def key(self) -> str:
        return strategy_key(self.id)

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "tokenWeights": [{"token": s.token, "weight": s.weight} for s in self.token_weights],
        }
        if self.validator_balance_weight is not None:
            out["validatorBalanceWeight"] = self.validator_balance_weight
        return out
