"""Inflation indexation helpers shared by the reference-data loaders."""

import math


def round_to_dollar(value: float) -> float:
    """Round half up to the nearest dollar, as CRA publishes indexed amounts."""
    return float(math.floor(value + 0.5))


def round_to_cents(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def indexation_factor(rate: float, years: int) -> float:
    return (1 + rate) ** years


def project_threshold(value: float, factor: float) -> float:
    """Index a dollar threshold; a zero threshold stays at zero."""
    if value == 0:
        return 0.0
    return round_to_dollar(value * factor)


def round_tfsa_limit(value: float) -> float:
    """TFSA limits are indexed then rounded down to the nearest $500."""
    return float(math.floor(value / 500) * 500)


def inflate_amount(base_amount: float, years: int, inflation_rate: float) -> float:
    """Apply compound inflation to a spending amount (no rounding)."""
    return base_amount * (1 + inflation_rate) ** years
