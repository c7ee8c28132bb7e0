from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from strategy_weights.adapters import (
    attach_delegated_balances,
    to_deposit_strategy,
    to_token_strategy,
)
from strategy_weights.config import NATIVE_TOKEN
from strategy_weights.enums import CalculationType
from strategy_weights.models import (
    DelegatedBalance,
    DepositStrategy,
    TokenAmount,
    TokenConfig,
    TokenStrategy,
    WeightCalculationOptions,
)
from strategy_weights.risk_engine import RiskEngine


# Default snapshot root, resolved relative to this file so it works regardless
# of which directory the user launches from.
_DEFAULT_BASE = Path(__file__).parent.parent / "snapshots"


class StrategySource(Protocol):
    """Anything that can hand the engines a strategy snapshot for a BApp."""

    def fetch_strategies(self, bapp_id: str) -> List[DepositStrategy]:
        ...

    def fetch_delegated_balances(self, bapp_id: str) -> List[DelegatedBalance]:
        ...


@dataclass(frozen=True)
class Snapshot:
    """Everything one calculation call needs, already in both strategy views."""
    bapp_id: str
    deposit_strategies: Tuple[DepositStrategy, ...] = ()
    token_strategies: Tuple[TokenStrategy, ...] = ()
    options: WeightCalculationOptions = field(
        default_factory=lambda: WeightCalculationOptions(coefficients=())
    )
    calculation_type: CalculationType = CalculationType.ARITHMETIC
    token_configs: Tuple[TokenConfig, ...] = ()
    delegated_balances: Tuple[DelegatedBalance, ...] = ()


class SnapshotLoader:
    """
    Loads and caches strategy snapshots from JSON files on disk.

    File layout::

        snapshots/
            <bapp_id>.json

    Each file holds a single object::

        {
          "strategies":          [{"id": 1, "tokenWeights": [...], "tokens": {...},
                                   "validatorBalanceWeight": 0.5}, ...],
          "coefficients":        [{"token": "0x...", "coefficient": 1}],
          "validatorCoefficient": 0,
          "calculationType":     "arithmetic",
          "tokenConfigs":        [{"token": "0x...", "sharedRiskLevel": 500,
                                   "totalObligatedBalance": "1000"}],
          "delegatedBalances":   [{"strategyId": "1", "delegation": "32000000000000000000"}]
        }

    A strategy may carry either view or both; a missing view is derived with
    :mod:`strategy_weights.adapters`.  Missing ``tokenConfigs`` are derived
    from the deposits.  ``delegatedBalances`` (a list, or an object with a
    ``bAppTotalDelegatedBalances`` list) overrides each matching strategy's
    ``validatorBalanceWeight``, converted from smallest unit.
    """

    def __init__(self, base_path: str | Path = _DEFAULT_BASE):
        self._base = Path(base_path)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def load(self, bapp_id: str) -> Snapshot:
        """
        Return the parsed :class:`Snapshot` for *bapp_id*.

        Parsed snapshots are cached per (path, modification time), so an
        edited file is picked up on the next call.

        Raises
        ------
        FileNotFoundError
            If ``<base>/<bapp_id>.json`` does not exist.
        ValueError
            If the file is not valid JSON or lacks a ``strategies`` list.
        """
        path = self._path(bapp_id)
        if not path.exists():
            raise FileNotFoundError(
                f"No snapshot found for BApp '{bapp_id}'. Expected file: {path}"
            )
        return _load_cached(str(path), path.stat().st_mtime_ns, bapp_id)

    def fetch_strategies(self, bapp_id: str) -> List[DepositStrategy]:
        return list(self.load(bapp_id).deposit_strategies)

    def fetch_delegated_balances(self, bapp_id: str) -> List[DelegatedBalance]:
        return list(self.load(bapp_id).delegated_balances)

    def list_available(self) -> list[str]:
        """Return a sorted list of BApp ids with a snapshot on disk."""
        if not self._base.exists():
            return []
        return sorted(p.stem for p in self._base.glob("*.json"))

    def _path(self, bapp_id: str) -> Path:
        # File names may keep a checksummed address's mixed case
        wanted = bapp_id.strip().lower()
        if self._base.exists():
            for path in sorted(self._base.glob("*.json")):
                if path.stem.lower() == wanted:
                    return path
        return self._base / f"{wanted}.json"


# ------------------------------------------------------------------
# Module-level cached parser (keyed on plain strings + mtime so it is
# hashable and instance-agnostic).
# ------------------------------------------------------------------

@lru_cache(maxsize=32)
def _load_cached(path: str, mtime_ns: int, bapp_id: str) -> Snapshot:
    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Snapshot for BApp '{bapp_id}' is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict) or not isinstance(raw.get("strategies"), list):
        raise ValueError(f"Snapshot for BApp '{bapp_id}' must contain a 'strategies' list.")

    return parse_snapshot(bapp_id, raw)


def parse_snapshot(bapp_id: str, raw: dict) -> Snapshot:
    """Build a :class:`Snapshot` from its JSON object form."""
    deposit_strategies = []
    token_strategies = []

    for item in raw["strategies"]:
        has_deposits = bool(item.get("tokenWeights"))
        has_tokens = bool(item.get("tokens"))

        if has_deposits:
            deposit = DepositStrategy.from_dict(item)
        else:
            deposit = to_deposit_strategy(TokenStrategy.from_dict(item))

        if has_tokens or not has_deposits:
            tokens = TokenStrategy.from_dict(item)
        else:
            tokens = to_token_strategy(deposit)

        deposit_strategies.append(deposit)
        token_strategies.append(tokens)

    delegated = _delegated_records(raw.get("delegatedBalances"))
    if delegated:
        deposit_strategies = attach_delegated_balances(deposit_strategies, delegated)
        token_strategies = attach_delegated_balances(token_strategies, delegated)

    if raw.get("tokenConfigs") is not None:
        token_configs = [TokenConfig.from_dict(c) for c in raw["tokenConfigs"]]
    else:
        token_configs = RiskEngine.default_token_configs(deposit_strategies)

    return Snapshot(
        bapp_id=bapp_id,
        deposit_strategies=tuple(deposit_strategies),
        token_strategies=tuple(token_strategies),
        options=WeightCalculationOptions.from_dict(
            {"coefficients": raw.get("coefficients", []),
             "validatorCoefficient": raw.get("validatorCoefficient", 0)}
        ),
        calculation_type=CalculationType.parse(raw.get("calculationType", "arithmetic")),
        token_configs=tuple(token_configs),
        delegated_balances=tuple(delegated),
    )


def _delegated_records(section) -> List[DelegatedBalance]:
    if isinstance(section, dict):
        section = section.get("bAppTotalDelegatedBalances")
    return [DelegatedBalance.from_dict(record) for record in section or ()]


def generate_random_strategy(rng: Optional[random.Random] = None) -> TokenStrategy:
    """
    A throwaway strategy holding 0.1 to 2.1 of the native token, for seeding
    simulations.  Pass a seeded ``random.Random`` for reproducible output.
    """
    rng = rng or random.Random()
    strategy_id = rng.randrange(1, 1_000_000_000)
    return TokenStrategy(
        id=strategy_id,
        tokens={
            NATIVE_TOKEN: TokenAmount(
                amount=f"{rng.random() * 2 + 0.1:.2f}",
                obligated_percentage=rng.random() * 100,
            )
        },
    )
