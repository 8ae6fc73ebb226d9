import itertools
import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from services.valuation import (  # noqa: E402
    ACCESSORIES_MULTIPLIERS,
    AGE_MULTIPLIERS,
    BASE_VALUES,
    COSMETIC_MULTIPLIERS,
    FUNCTIONAL_MULTIPLIERS,
    DeviceCondition,
    base_value,
    estimate_from_grade,
    estimate_trade_in_value,
)
from utils.pure import round_half_up  # noqa: E402


class ValuationTestCase(unittest.TestCase):
    def test_pristine_smartphone_keeps_base_value(self):
        condition = DeviceCondition("excellent", "fullyFunctional", "all", "lessThanOneYear")
        self.assertEqual(estimate_trade_in_value("Smartphones", condition), 50000)

    def test_worst_smartphone_rounds_up_to_1000(self):
        # 50000 * 0.4 * 0.1 * 0.7 * 0.4 = 560
        condition = DeviceCondition("poor", "notWorking", "none", "moreThanThreeYears")
        self.assertEqual(estimate_trade_in_value("Smartphones", condition), 1000)

    def test_mid_range_laptop(self):
        # 100000 * 0.8 * 0.7 * 0.9 * 0.8 = 40320
        condition = DeviceCondition("good", "minorIssues", "most", "oneToTwoYears")
        self.assertEqual(estimate_trade_in_value("Ordinateurs Portables", condition), 40000)

    def test_every_combination_is_a_non_negative_multiple_of_1000(self):
        for device_type in list(BASE_VALUES) + ["Drone"]:
            for combo in itertools.product(
                COSMETIC_MULTIPLIERS,
                FUNCTIONAL_MULTIPLIERS,
                ACCESSORIES_MULTIPLIERS,
                AGE_MULTIPLIERS,
            ):
                value = estimate_trade_in_value(device_type, DeviceCondition(*combo))
                self.assertGreaterEqual(value, 0)
                self.assertEqual(value % 1000, 0, (device_type, combo))

    def test_unknown_device_type_uses_default_base(self):
        self.assertEqual(base_value("Drone"), 30000)
        self.assertEqual(estimate_trade_in_value("Drone", DeviceCondition()), 30000)

    def test_unknown_condition_is_rejected(self):
        with self.assertRaises(ValueError):
            estimate_trade_in_value("Smartphones", DeviceCondition(cosmetic="shiny"))
        with self.assertRaises(ValueError):
            estimate_trade_in_value("Tablettes", DeviceCondition(age="ancient"))

    def test_grade_estimate(self):
        self.assertEqual(estimate_from_grade(200000, "excellent"), 170000)
        self.assertEqual(estimate_from_grade(200000, "fair"), 100000)
        # unknown grades are valued like broken devices
        self.assertEqual(estimate_from_grade(200000, "unknown"), 30000)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(500, 1000), 1000)
        self.assertEqual(round_half_up(499, 1000), 0)
        self.assertEqual(round_half_up(2.5), 3)


if __name__ == "__main__":
    unittest.main()
