"""
strategy_weights/adapters.py
----------------------------
Conversions at the data-source boundary.

The engines each read exactly one strategy shape.  Everything that turns
raw deposit records or one view into the other happens here, explicitly,
so neither engine has to guess which fields are populated.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import replace
from decimal import Decimal, InvalidOperation, localcontext
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from strategy_weights.config import DEFAULT_COEFFICIENT, ETHER_DECIMALS
from strategy_weights.models import (
    DelegatedBalance,
    DepositStrategy,
    StrategyId,
    TokenAmount,
    TokenCoefficient,
    TokenStrategy,
    TokenWeightEntry,
    normalize_token,
)
from strategy_weights.numeric import parse_units

AnyStrategy = Union[TokenStrategy, DepositStrategy]

_UNIT = Decimal(10) ** ETHER_DECIMALS


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

def format_ether(units: int) -> str:
    """Smallest-unit integer → decimal string (``1500000000000000000`` → ``"1.5"``)."""
    whole, frac = divmod(max(int(units), 0), 10 ** ETHER_DECIMALS)
    text = f"{whole}.{frac:0{ETHER_DECIMALS}d}".rstrip("0").rstrip(".")
    return text or "0"


def parse_ether(text) -> int:
    """Decimal string → smallest-unit integer, truncating excess precision."""
    if text is None:
        return 0
    try:
        value = Decimal(str(text).strip())
    except (InvalidOperation, ValueError):
        return 0
    if not value.is_finite() or value <= 0:
        return 0
    with localcontext() as ctx:
        ctx.prec = 80
        return int(value * _UNIT)


# ---------------------------------------------------------------------------
# View conversion
# ---------------------------------------------------------------------------

def to_token_strategy(strategy: DepositStrategy) -> TokenStrategy:
    """
    ``tokenWeights`` view → ``tokens`` view.

    Deposits naming the same token are summed; the first entry's weight
    becomes the token's obligated percentage.
    """
    totals: "OrderedDict[str, int]" = OrderedDict()
    percentages = {}
    for entry in strategy.token_weights:
        token = normalize_token(entry.token)
        totals[token] = totals.get(token, 0) + parse_units(entry.deposit_amount)
        percentages.setdefault(token, entry.weight)

    tokens = {
        token: TokenAmount(amount=format_ether(total), obligated_percentage=percentages[token])
        for token, total in totals.items()
    }
    return TokenStrategy(
        id=strategy.id,
        tokens=tokens,
        validator_balance_weight=strategy.validator_balance_weight,
    )


def to_deposit_strategy(strategy: TokenStrategy) -> DepositStrategy:
    """``tokens`` view → ``tokenWeights`` view."""
    entries = tuple(
        TokenWeightEntry(
            token=token,
            weight=amount.obligated_percentage,
            deposit_amount=str(parse_ether(amount.amount)),
        )
        for token, amount in strategy.tokens.items()
    )
    return DepositStrategy(
        id=strategy.id,
        token_weights=entries,
        validator_balance_weight=strategy.validator_balance_weight,
    )


def attach_delegated_balances(
    strategies: Sequence[AnyStrategy],
    balances: Iterable[DelegatedBalance],
) -> List[AnyStrategy]:
    """
    Copy each strategy's delegated validator balance onto it.

    Balances are matched by strategy key and converted from smallest unit to
    ether scale; the first record for a strategy wins.  Strategies with no
    record keep their current ``validator_balance_weight``.
    """
    by_key = {}
    for balance in balances:
        by_key.setdefault(balance.key, balance)

    out: List[AnyStrategy] = []
    for strategy in strategies:
        balance = by_key.get(strategy.key)
        if balance is None:
            out.append(strategy)
            continue
        ether = float(format_ether(parse_units(balance.delegation)))
        out.append(replace(strategy, validator_balance_weight=ether))
    return out


def group_deposits(
    strategy_id: StrategyId,
    deposits: Iterable[Mapping],
    original_weights: Optional[Iterable[Mapping]] = None,
    validator_balance_weight: float = 0.0,
) -> DepositStrategy:
    """
    Build a :class:`DepositStrategy` from raw deposit records.

    *deposits* are ``{"token", "depositAmount"}`` mappings as returned by a
    balance query; several records for one token are summed.  The weight for
    each token is carried over from *original_weights* (``weight``, falling
    back to ``obligatedPercentage``), else 0.
    """
    weights = {}
    for tw in original_weights or ():
        token = normalize_token(tw["token"])
        if token not in weights:
            weights[token] = float(tw.get("weight") or tw.get("obligatedPercentage") or 0)

    totals: "OrderedDict[str, int]" = OrderedDict()
    for deposit in deposits:
        token = normalize_token(deposit["token"])
        totals[token] = totals.get(token, 0) + parse_units(deposit.get("depositAmount"))

    return DepositStrategy(
        id=strategy_id,
        token_weights=tuple(
            TokenWeightEntry(token=token, weight=weights.get(token, 0.0), deposit_amount=str(total))
            for token, total in totals.items()
        ),
        validator_balance_weight=validator_balance_weight,
    )


# ---------------------------------------------------------------------------
# Token discovery
# ---------------------------------------------------------------------------

def detect_tokens(strategies: Iterable[AnyStrategy]) -> List[str]:
    """Distinct lower-cased tokens across *strategies*, in first-seen order."""
    seen: "OrderedDict[str, None]" = OrderedDict()
    for strategy in strategies:
        if isinstance(strategy, TokenStrategy):
            names = strategy.tokens.keys()
        else:
            names = (tw.token for tw in strategy.token_weights)
        for name in names:
            seen.setdefault(normalize_token(name), None)
    return list(seen)


def sync_coefficients(
    coefficients: Sequence[TokenCoefficient],
    strategies: Iterable[AnyStrategy],
    default: float = DEFAULT_COEFFICIENT,
) -> List[TokenCoefficient]:
    """
    One coefficient per detected token, keeping any existing value.

    Coefficients for tokens no strategy holds are dropped.  With no tokens
    detected the input is returned unchanged.
    """
    detected = detect_tokens(strategies)
    if not detected:
        return list(coefficients)

    existing = {}
    for c in coefficients:
        existing.setdefault(normalize_token(c.token), c.coefficient)

    return [TokenCoefficient(token=token, coefficient=existing.get(token, default)) for token in detected]


def ensure_all_tokens(
    strategies: Sequence[DepositStrategy],
    coefficients: Sequence[TokenCoefficient],
) -> List[DepositStrategy]:
    """
    Give every strategy an entry for every coefficient token.

    Missing tokens are appended with zero weight and zero deposit.  Returns
    new strategy objects; strategies that already hold every token are
    passed through as-is.
    """
    wanted = list(OrderedDict((normalize_token(c.token), c.token) for c in coefficients).items())
    out: List[DepositStrategy] = []

    for strategy in strategies:
        held = {normalize_token(tw.token) for tw in strategy.token_weights}
        missing = [
            TokenWeightEntry(token=original, weight=0.0, deposit_amount="0")
            for token, original in wanted
            if token not in held
        ]
        if not missing:
            out.append(strategy)
            continue
        out.append(DepositStrategy(
            id=strategy.id,
            token_weights=strategy.token_weights + tuple(missing),
            validator_balance_weight=strategy.validator_balance_weight,
        ))

    return out
