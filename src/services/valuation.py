"""
Trade-in valuation of used devices, in FCFA.

The storefront estimate multiplies a per-device-type base value by four
condition multipliers and rounds to the nearest 1000. The back-office grade
estimate applies a single multiplier to a catalogued device's base value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal

from utils.pure import round_half_up

Cosmetic = Literal["excellent", "good", "fair", "poor"]
Functional = Literal["fullyFunctional", "minorIssues", "majorIssues", "notWorking"]
Accessories = Literal["all", "most", "some", "none"]
Age = Literal["lessThanOneYear", "oneToTwoYears", "twoToThreeYears", "moreThanThreeYears"]
Grade = Literal["excellent", "good", "fair", "poor", "broken"]

DEFAULT_BASE_VALUE = 30000
ROUNDING_STEP = 1000

BASE_VALUES: Dict[str, int] = {
    "Smartphones": 50000,
    "Ordinateurs Portables": 100000,
    "Tablettes": 40000,
    "Ordinateurs de Bureau": 80000,
    "Accessoires": 10000,
    "Autres Appareils": 30000,
}

COSMETIC_MULTIPLIERS: Dict[str, float] = {
    "excellent": 1.0,
    "good": 0.8,
    "fair": 0.6,
    "poor": 0.4,
}

FUNCTIONAL_MULTIPLIERS: Dict[str, float] = {
    "fullyFunctional": 1.0,
    "minorIssues": 0.7,
    "majorIssues": 0.4,
    "notWorking": 0.1,
}

ACCESSORIES_MULTIPLIERS: Dict[str, float] = {
    "all": 1.0,
    "most": 0.9,
    "some": 0.8,
    "none": 0.7,
}

AGE_MULTIPLIERS: Dict[str, float] = {
    "lessThanOneYear": 1.0,
    "oneToTwoYears": 0.8,
    "twoToThreeYears": 0.6,
    "moreThanThreeYears": 0.4,
}

GRADE_MULTIPLIERS: Dict[str, float] = {
    "excellent": 0.85,
    "good": 0.7,
    "fair": 0.5,
    "poor": 0.3,
    "broken": 0.15,
}
FALLBACK_GRADE_MULTIPLIER = GRADE_MULTIPLIERS["broken"]


@dataclass(frozen=True)
class DeviceCondition:
    """Self-reported condition of a device, as picked in the evaluation form."""

    cosmetic: Cosmetic = "excellent"
    functional: Functional = "fullyFunctional"
    accessories: Accessories = "all"
    age: Age = "lessThanOneYear"


_TABLES = (
    ("cosmetic", COSMETIC_MULTIPLIERS),
    ("functional", FUNCTIONAL_MULTIPLIERS),
    ("accessories", ACCESSORIES_MULTIPLIERS),
    ("age", AGE_MULTIPLIERS),
)


def base_value(device_type: str) -> int:
    return BASE_VALUES.get(device_type, DEFAULT_BASE_VALUE)


def estimate_trade_in_value(device_type: str, condition: DeviceCondition) -> int:
    """
    Estimated trade-in credit for a device.

    Unknown device types use DEFAULT_BASE_VALUE. Raises ValueError when a
    condition field holds a value outside its table.
    """
    value = float(base_value(device_type))
    for field_name, table in _TABLES:
        level = getattr(condition, field_name)
        try:
            value *= table[level]
        except KeyError:
            raise ValueError(f"Unknown {field_name} condition: {level!r}") from None
    return round_half_up(value, ROUNDING_STEP)


def estimate_from_grade(device_base_value: float, grade: str) -> int:
    """Back-office estimate: catalogued base value times the grade multiplier."""
    return round_half_up(
        device_base_value * GRADE_MULTIPLIERS.get(grade, FALLBACK_GRADE_MULTIPLIER)
    )
