from enum import Enum


class CalculationType(Enum):
    """Mean used by the Weighted-Mean Engine to reduce a strategy to one score."""
    ARITHMETIC = "arithmetic"
    GEOMETRIC = "geometric"
    HARMONIC = "harmonic"

    @classmethod
    def parse(cls, value) -> "CalculationType":
        """Accept a member or its name in any case, surrounding spaces ignored."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown calculation type: {value!r}. "
                "Choose from 'arithmetic', 'geometric', 'harmonic'."
            ) from None
