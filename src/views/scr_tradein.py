from textual import on
from textual.app import ComposeResult
from textual.containers import Grid, Vertical
from textual.widgets import Label, Markdown, Select

from services.valuation import (
    ACCESSORIES_MULTIPLIERS,
    AGE_MULTIPLIERS,
    BASE_VALUES,
    COSMETIC_MULTIPLIERS,
    FUNCTIONAL_MULTIPLIERS,
    DeviceCondition,
    base_value,
    estimate_trade_in_value,
)
from utils.pure import format_price
from views.base_screen import BaseScreen

CHOICE_LABELS = {
    "excellent": "Excellent, like new",
    "good": "Good, light wear",
    "fair": "Fair, visible scratches",
    "poor": "Poor, dents or cracks",
    "fullyFunctional": "Everything works",
    "minorIssues": "Minor issues",
    "majorIssues": "Major issues",
    "notWorking": "Does not work",
    "all": "All original accessories",
    "most": "Most accessories",
    "some": "Some accessories",
    "none": "No accessories",
    "lessThanOneYear": "Less than a year",
    "oneToTwoYears": "1 to 2 years",
    "twoToThreeYears": "2 to 3 years",
    "moreThanThreeYears": "More than 3 years",
}

CONDITION_FIELDS = (
    ("cosmetic", "Cosmetic condition", COSMETIC_MULTIPLIERS),
    ("functional", "Functional condition", FUNCTIONAL_MULTIPLIERS),
    ("accessories", "Accessories included", ACCESSORIES_MULTIPLIERS),
    ("age", "Device age", AGE_MULTIPLIERS),
)


class TradeInScreen(BaseScreen):
    """
    Trade-in evaluator: pick a device type and its condition, get an estimate.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        defaults = DeviceCondition()
        with Vertical(id="div-tradein"):
            with Grid(id="grid-tradein"):
                yield Label("Device type")
                yield Select(
                    [(t, t) for t in BASE_VALUES],
                    value="Smartphones",
                    allow_blank=False,
                    id="select-device-type",
                )
                for name, caption, table in CONDITION_FIELDS:
                    yield Label(caption)
                    yield Select(
                        [(CHOICE_LABELS[k], k) for k in table],
                        value=getattr(defaults, name),
                        allow_blank=False,
                        id=f"select-{name}",
                    )
            yield Markdown("", id="md-estimate")

    def on_mount(self) -> None:
        self.update_estimate()

    @on(Select.Changed)
    def update_estimate(self) -> None:
        device_type = str(self.query_one("#select-device-type", Select).value)
        condition = DeviceCondition(
            **{
                name: str(self.query_one(f"#select-{name}", Select).value)
                for name, _, _ in CONDITION_FIELDS
            }
        )
        try:
            estimate = estimate_trade_in_value(device_type, condition)
        except ValueError as e:
            self.notify(str(e), severity="error")
            return

        self.query_one("#md-estimate", Markdown).update(
            f"### Estimated value: {format_price(estimate)}\n\n"
            f"Reference value for {device_type}: {format_price(base_value(device_type))}. "
            "The final offer is confirmed after inspection in store."
        )
