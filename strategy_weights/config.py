"""
strategy_weights/config.py
--------------------------
Shared numeric configuration constants.

Both engines and the data-boundary adapters read from here so that the
basis-point scale, the risk floor and the unit conversions stay aligned on a
single source of truth.
"""

# ---------------------------------------------------------------------------
# Basis points
# ---------------------------------------------------------------------------
# Token weights and shared risk levels arrive as integers in [0, 10000].
# Dividing by this scale yields the decimal risk contribution / decay rate β.

BASIS_POINTS: int = 10_000

# ---------------------------------------------------------------------------
# Risk-Normalized Obligation Engine
# ---------------------------------------------------------------------------
# Accumulated risk is floored before entering exp(-β · risk).  A strategy
# that declares no risk for a token is treated as carrying exactly 1.

RISK_FLOOR: float = 1.0

# Shared risk level used when token configs are derived from the strategies
# themselves instead of being supplied.  500 bp = 5%.

DEFAULT_SHARED_RISK_LEVEL: int = 500

# ---------------------------------------------------------------------------
# Weighted-Mean Engine
# ---------------------------------------------------------------------------
# Coefficient given to a newly detected token.

DEFAULT_COEFFICIENT: float = 1.0

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------
# Deposit / obligated balances are integers in the token's smallest unit.
# Display amounts in the tokens view are scaled by 10**ETHER_DECIMALS.

ETHER_DECIMALS: int = 18

# Placeholder address used for the chain's native token.

NATIVE_TOKEN: str = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

# ---------------------------------------------------------------------------
# Normalisation contract
# ---------------------------------------------------------------------------

NORMALIZATION_TOLERANCE: float = 1e-9
