"""
tests/test_weight_engine.py
---------------------------
Unit tests for WeightEngine.

Test coverage:
    Empty / missing-option edge cases
    Calculation type resolution
    Arithmetic mean correctness
    Harmonic mean zero-amount handling
    Geometric mean zero-product rule and log-space stability
    Normalisation, monotonicity and idempotence across all mean types
"""

import copy
import math
import unittest

from strategy_weights.enums import CalculationType
from strategy_weights.models import (
    TokenAmount,
    TokenCoefficient,
    TokenStrategy,
    WeightCalculationOptions,
)
from strategy_weights.weight_engine import WeightEngine

TOKEN_A = "0xAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAaAa"
TOKEN_B = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _strategy(sid, amounts: dict, validator: float = 0.0) -> TokenStrategy:
    return TokenStrategy(
        id=sid,
        tokens={token: TokenAmount(amount=str(a)) for token, a in amounts.items()},
        validator_balance_weight=validator,
    )


def _options(coefficients: dict, validator: float = 0.0) -> WeightCalculationOptions:
    return WeightCalculationOptions(
        coefficients=tuple(TokenCoefficient(t, c) for t, c in coefficients.items()),
        validator_coefficient=validator,
    )


def _mixed_fixture():
    strategies = [
        _strategy(1, {TOKEN_A: "10.5", TOKEN_B: "3"}, validator=32),
        _strategy(2, {TOKEN_A: "0.75", TOKEN_B: "40"}, validator=64),
        _strategy(3, {TOKEN_A: "120", TOKEN_B: "0.01"}, validator=1),
    ]
    return strategies, _options({TOKEN_A: 2, TOKEN_B: 1}, validator=0.5)


# ===========================================================================
# 1. Edge Cases
# ===========================================================================

class TestEdgeCases(unittest.TestCase):

    def test_empty_strategies_returns_empty(self):
        self.assertEqual(WeightEngine.calculate([], _options({TOKEN_A: 1})), {})

    def test_empty_strategies_every_type(self):
        for kind in CalculationType:
            self.assertEqual(WeightEngine.calculate([], _options({TOKEN_A: 1}), kind), {})

    def test_missing_options_returns_empty(self):
        self.assertEqual(WeightEngine.calculate([_strategy(1, {TOKEN_A: 1})], None), {})

    def test_missing_coefficients_returns_empty(self):
        options = WeightCalculationOptions(coefficients=None, validator_coefficient=1)
        self.assertEqual(WeightEngine.calculate([_strategy(1, {TOKEN_A: 1})], options), {})

    def test_unknown_type_raises(self):
        with self.assertRaises(ValueError):
            WeightEngine.calculate([_strategy(1, {TOKEN_A: 1})], _options({TOKEN_A: 1}), "median")

    def test_string_type_accepted(self):
        strategies = [_strategy(1, {TOKEN_A: 4}), _strategy(2, {TOKEN_A: 1})]
        by_enum = WeightEngine.calculate(strategies, _options({TOKEN_A: 1}), CalculationType.GEOMETRIC)
        by_name = WeightEngine.calculate(strategies, _options({TOKEN_A: 1}), " Geometric ")
        self.assertEqual(by_enum, by_name)

    def test_keys_are_stringified_ids(self):
        result = WeightEngine.calculate(
            [_strategy(5, {TOKEN_A: 1}), _strategy("6", {TOKEN_A: 1})],
            _options({TOKEN_A: 1}),
        )
        self.assertEqual(set(result), {"5", "6"})

    def test_does_not_mutate_input(self):
        strategies, options = _mixed_fixture()
        snapshot = copy.deepcopy((strategies, options))
        for kind in CalculationType:
            WeightEngine.calculate(strategies, options, kind)
        self.assertEqual((strategies, options), snapshot)

    def test_never_returns_nan_or_inf(self):
        strategies = [
            _strategy(1, {TOKEN_A: "0"}),
            _strategy(2, {TOKEN_A: "not-a-number"}),
            _strategy(3, {}),
        ]
        for kind in CalculationType:
            result = WeightEngine.calculate(strategies, _options({TOKEN_A: 1}, validator=1), kind)
            for value in result.values():
                self.assertTrue(math.isfinite(value), f"{kind}: {result}")


# ===========================================================================
# 2. Arithmetic Mean
# ===========================================================================

class TestArithmetic(unittest.TestCase):

    def _calc(self, strategies, options):
        return WeightEngine.calculate(strategies, options, CalculationType.ARITHMETIC)

    def test_two_strategies_one_token(self):
        result = self._calc(
            [_strategy("S1", {TOKEN_A: "10"}), _strategy("S2", {TOKEN_A: "30"})],
            _options({TOKEN_A: 1}),
        )
        self.assertAlmostEqual(result["S1"], 0.25)
        self.assertAlmostEqual(result["S2"], 0.75)

    def test_token_lookup_is_case_insensitive(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A.upper(): "10"}), _strategy(2, {TOKEN_A.lower(): "30"})],
            _options({TOKEN_A: 1}),
        )
        self.assertAlmostEqual(result["1"], 0.25)

    def test_token_without_coefficient_ignored(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "10", TOKEN_B: "1000"}), _strategy(2, {TOKEN_A: "30"})],
            _options({TOKEN_A: 1}),
        )
        self.assertAlmostEqual(result["1"], 0.25)

    def test_zero_coefficient_token_ignored(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "10", TOKEN_B: "1000"}), _strategy(2, {TOKEN_A: "30"})],
            _options({TOKEN_A: 1, TOKEN_B: 0}),
        )
        self.assertAlmostEqual(result["1"], 0.25)
        self.assertAlmostEqual(result["2"], 0.75)

    def test_validator_balance_term(self):
        # S1: 10 + 10 = 20, S2: 30 + 0 = 30
        result = self._calc(
            [_strategy(1, {TOKEN_A: "10"}, validator=10), _strategy(2, {TOKEN_A: "30"})],
            _options({TOKEN_A: 1}, validator=1),
        )
        self.assertAlmostEqual(result["1"], 0.4)
        self.assertAlmostEqual(result["2"], 0.6)

    def test_all_zero_amounts_give_zero_weights(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "0"}), _strategy(2, {})],
            _options({TOKEN_A: 1}),
        )
        self.assertEqual(result, {"1": 0.0, "2": 0.0})

    def test_zero_coefficient_mass_gives_zero_weights(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "10"}), _strategy(2, {TOKEN_A: "30"})],
            _options({TOKEN_A: 0}),
        )
        self.assertEqual(result, {"1": 0.0, "2": 0.0})

    def test_malformed_amount_counts_as_zero(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "abc"}), _strategy(2, {TOKEN_A: "5"})],
            _options({TOKEN_A: 1}),
        )
        self.assertEqual(result["1"], 0.0)
        self.assertAlmostEqual(result["2"], 1.0)

    def test_single_strategy_gets_everything(self):
        result = self._calc([_strategy(1, {TOKEN_A: "3"})], _options({TOKEN_A: 2}))
        self.assertAlmostEqual(result["1"], 1.0)

    def test_huge_products_keep_the_largest_strategy_on_top(self):
        # 1e110 · 1e200 is past float range if multiplied directly
        result = self._calc(
            [_strategy(1, {TOKEN_A: "1e200"}), _strategy(2, {TOKEN_A: "1"})],
            _options({TOKEN_A: 1e110}),
        )
        self.assertAlmostEqual(result["1"], 1.0)
        self.assertGreater(result["1"], result["2"])
        self.assertAlmostEqual(sum(result.values()), 1.0)

    def test_huge_validator_term_does_not_zero_the_strategy(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "1"}, validator=1e300), _strategy(2, {TOKEN_A: "1"})],
            _options({TOKEN_A: 1}, validator=1e300),
        )
        self.assertAlmostEqual(result["1"], 1.0)


# ===========================================================================
# 3. Harmonic Mean
# ===========================================================================

class TestHarmonic(unittest.TestCase):

    def _calc(self, strategies, options):
        return WeightEngine.calculate(strategies, options, CalculationType.HARMONIC)

    def test_zero_amount_strategy_gets_zero(self):
        result = self._calc(
            [_strategy("S1", {TOKEN_A: "0"}), _strategy("S2", {TOKEN_A: "10"})],
            _options({TOKEN_A: 1}),
        )
        self.assertEqual(result["S1"], 0.0)
        self.assertAlmostEqual(result["S2"], 1.0)

    def test_two_tokens(self):
        # S1: C=2, ratio 1/1 + 1/1 = 2 → 1;  S2: ratio 1/2 + 1/2 = 1 → 2
        result = self._calc(
            [_strategy(1, {TOKEN_A: 1, TOKEN_B: 1}), _strategy(2, {TOKEN_A: 2, TOKEN_B: 2})],
            _options({TOKEN_A: 1, TOKEN_B: 1}),
        )
        self.assertAlmostEqual(result["1"], 1 / 3)
        self.assertAlmostEqual(result["2"], 2 / 3)

    def test_validator_ratio_only_when_balance_positive(self):
        # S1: 1/2 + 1/2 = 1 → 2;  S2: 1/1 + (no validator term) = 1 → 2
        result = self._calc(
            [_strategy(1, {TOKEN_A: 2}, validator=2), _strategy(2, {TOKEN_A: 1})],
            _options({TOKEN_A: 1}, validator=1),
        )
        self.assertAlmostEqual(result["1"], 0.5)
        self.assertAlmostEqual(result["2"], 0.5)

    def test_all_zero_gives_zero_weights(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: 0}), _strategy(2, {TOKEN_A: 0})],
            _options({TOKEN_A: 1}),
        )
        self.assertEqual(result, {"1": 0.0, "2": 0.0})


# ===========================================================================
# 4. Geometric Mean
# ===========================================================================

class TestGeometric(unittest.TestCase):

    def _calc(self, strategies, options):
        return WeightEngine.calculate(strategies, options, CalculationType.GEOMETRIC)

    def test_missing_token_gives_exact_zero(self):
        result = self._calc(
            [_strategy(1, {TOKEN_B: "100"}), _strategy(2, {TOKEN_A: "1"})],
            _options({TOKEN_A: 5}),
        )
        self.assertEqual(result["1"], 0.0)
        self.assertAlmostEqual(result["2"], 1.0)

    def test_zero_amount_gives_exact_zero(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "0", TOKEN_B: "9"}), _strategy(2, {TOKEN_A: "1", TOKEN_B: "1"})],
            _options({TOKEN_A: 1, TOKEN_B: 1}),
        )
        self.assertEqual(result["1"], 0.0)

    def test_product_ratio(self):
        # 4^1 : 1^1 → 0.8 : 0.2
        result = self._calc(
            [_strategy(1, {TOKEN_A: "4"}), _strategy(2, {TOKEN_A: "1"})],
            _options({TOKEN_A: 1}),
        )
        self.assertAlmostEqual(result["1"], 0.8)
        self.assertAlmostEqual(result["2"], 0.2)

    def test_coefficient_is_exponent(self):
        # 2^2 : 1^2 → 0.8 : 0.2
        result = self._calc(
            [_strategy(1, {TOKEN_A: "2"}), _strategy(2, {TOKEN_A: "1"})],
            _options({TOKEN_A: 2}),
        )
        self.assertAlmostEqual(result["1"], 0.8)

    def test_zero_coefficient_is_neutral(self):
        with_zero = self._calc(
            [_strategy(1, {TOKEN_A: "4"}), _strategy(2, {TOKEN_A: "1", TOKEN_B: "7"})],
            _options({TOKEN_A: 1, TOKEN_B: 0}),
        )
        self.assertAlmostEqual(with_zero["1"], 0.8)
        self.assertAlmostEqual(with_zero["2"], 0.2)

    def test_validator_zero_balance_gives_zero(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "4"}, validator=0), _strategy(2, {TOKEN_A: "1"}, validator=3)],
            _options({TOKEN_A: 1}, validator=1),
        )
        self.assertEqual(result["1"], 0.0)
        self.assertAlmostEqual(result["2"], 1.0)

    def test_validator_ignored_when_coefficient_zero(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "4"}, validator=0), _strategy(2, {TOKEN_A: "1"}, validator=3)],
            _options({TOKEN_A: 1}, validator=0),
        )
        self.assertAlmostEqual(result["1"], 0.8)

    def test_no_finite_strategy_gives_all_zero(self):
        result = self._calc(
            [_strategy(1, {}), _strategy(2, {TOKEN_A: "0"})],
            _options({TOKEN_A: 1}),
        )
        self.assertEqual(result, {"1": 0.0, "2": 0.0})

    def test_huge_amounts_do_not_overflow(self):
        # 1e300^5 overflows a float; in log space the ratio is still 10^5
        result = self._calc(
            [_strategy(1, {TOKEN_A: "1e300"}), _strategy(2, {TOKEN_A: "1e299"})],
            _options({TOKEN_A: 5}),
        )
        self.assertAlmostEqual(result["1"], 1 / (1 + 1e-5), places=9)
        self.assertAlmostEqual(result["2"], 1e-5 / (1 + 1e-5), places=9)

    def test_tiny_amounts_do_not_underflow(self):
        result = self._calc(
            [_strategy(1, {TOKEN_A: "1e-300"}), _strategy(2, {TOKEN_A: "1e-300"})],
            _options({TOKEN_A: 5}),
        )
        self.assertAlmostEqual(result["1"], 0.5)
        self.assertAlmostEqual(result["2"], 0.5)


# ===========================================================================
# 5. Properties Across Mean Types
# ===========================================================================

class TestProperties(unittest.TestCase):

    def test_weights_sum_to_one(self):
        strategies, options = _mixed_fixture()
        for kind in CalculationType:
            result = WeightEngine.calculate(strategies, options, kind)
            self.assertAlmostEqual(sum(result.values()), 1.0, delta=1e-9, msg=kind.value)

    def test_idempotent(self):
        strategies, options = _mixed_fixture()
        for kind in CalculationType:
            first = WeightEngine.calculate(strategies, options, kind)
            second = WeightEngine.calculate(strategies, options, kind)
            self.assertEqual(first, second)

    def test_monotonic_in_own_amount(self):
        options = _options({TOKEN_A: 1, TOKEN_B: 2}, validator=1)
        others = [_strategy(2, {TOKEN_A: 5, TOKEN_B: 5}, validator=4)]
        for kind in (CalculationType.ARITHMETIC, CalculationType.GEOMETRIC):
            previous = -1.0
            for amount in (1, 2, 5, 10, 100):
                strategies = [_strategy(1, {TOKEN_A: amount, TOKEN_B: 3}, validator=2)] + others
                weight = WeightEngine.calculate(strategies, options, kind)["1"]
                self.assertGreaterEqual(weight, previous, kind.value)
                previous = weight

    def test_zero_coefficient_never_matters(self):
        base = [_strategy(1, {TOKEN_A: 3}), _strategy(2, {TOKEN_A: 7})]
        noisy = [_strategy(1, {TOKEN_A: 3, TOKEN_B: 1e9}), _strategy(2, {TOKEN_A: 7})]
        for kind in CalculationType:
            self.assertEqual(
                WeightEngine.calculate(base, _options({TOKEN_A: 1, TOKEN_B: 0}), kind),
                WeightEngine.calculate(noisy, _options({TOKEN_A: 1, TOKEN_B: 0}), kind),
            )


if __name__ == "__main__":
    unittest.main()
