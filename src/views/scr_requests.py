from datetime import datetime
from typing import Dict, Iterable, Tuple

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Select, TabbedContent, TabPane

from services.trackers import consultation_requests, repair_appointments, rfq_requests
from utils.errors import StorefrontError
from utils.messages import RequestSubmittedMessage
from views.base_screen import BaseScreen

# (field, caption, placeholder); fields ending in "?" are optional
RFQ_FIELDS = (
    ("company_name", "Company", "Acme SARL"),
    ("contact_person", "Contact person", "Jean Dupont"),
    ("email", "Email", "achats@acme.cm"),
    ("phone", "Phone", "6XXXXXXXX"),
    ("business_type", "Business type", "Retail, school, NGO..."),
    ("employee_count", "Employees", "10-50"),
    ("product_category", "Products wanted", "Laptops"),
    ("quantity", "Quantity", "25"),
    ("timeframe", "Timeframe", "Within a month"),
    ("budget?", "Budget (optional)", "5 000 000 FCFA"),
    ("specifications", "Specifications", "16 GB RAM, 512 GB SSD"),
)
REPAIR_FIELDS = (
    ("name", "Name", "Jean Dupont"),
    ("email", "Email", "user@example.com"),
    ("phone", "Phone", "6XXXXXXXX"),
    ("device_type", "Device type", "Smartphone"),
    ("device_brand", "Brand", "Samsung"),
    ("device_model", "Model", "Galaxy S21"),
    ("issue_description", "Issue", "Cracked screen"),
    ("date", "Date", "YYYY-MM-DD"),
    ("time", "Time", "HH:MM"),
)
CONSULTATION_FIELDS = (
    ("customer_name", "Name", "Jean Dupont"),
    ("customer_email", "Email", "user@example.com"),
    ("customer_phone", "Phone", "6XXXXXXXX"),
    ("budget", "Budget (FCFA)", "300000"),
    ("needs", "Needs", "A laptop for graphic design"),
)
CONTACT_METHODS = [("Email", "email"), ("Phone", "phone"), ("WhatsApp", "whatsapp")]


def _form(prefix: str, fields: Iterable[Tuple[str, str, str]]) -> ComposeResult:
    for name, caption, placeholder in fields:
        yield Label(caption)
        yield Input(placeholder=placeholder, id=f"input-{prefix}-{name.rstrip('?')}")


class RequestsScreen(BaseScreen):
    """
    Business quotes, repair bookings and consultations, plus the list of the
    current user's requests.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-requests"):
            with TabPane("My requests", id="tab-mine"):
                yield DataTable(id="table-requests")
                with Horizontal(id="hort-request-btns"):
                    yield Button("Refresh", id="btn-refresh")
                    yield Button("Advance quote", id="btn-advance")
                    yield Button("Cancel repair", id="btn-cancel", variant="error")
            with TabPane("Business quote", id="tab-rfq"):
                with VerticalScroll():
                    yield from _form("rfq", RFQ_FIELDS)
                    yield Button("Request a quote", id="btn-rfq", variant="primary")
            with TabPane("Repair", id="tab-repair"):
                with VerticalScroll():
                    yield from _form("rep", REPAIR_FIELDS)
                    yield Button("Book appointment", id="btn-rep", variant="primary")
            with TabPane("Consultation", id="tab-cons"):
                with VerticalScroll():
                    yield from _form("cons", CONSULTATION_FIELDS)
                    yield Label("Preferred contact")
                    yield Select(
                        CONTACT_METHODS, value="whatsapp", allow_blank=False, id="select-contact"
                    )
                    yield Button("Request a consultation", id="btn-cons", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_column("Reference", key="id")
        table.add_columns("Type", "Subject", "Status", "Created")
        self.refresh_requests()

    def _values(self, prefix: str, fields: Iterable[Tuple[str, str, str]]) -> Dict[str, str]:
        """Collect a form; raises ValueError naming the first empty required field."""
        data = {}
        for name, caption, _ in fields:
            key = name.rstrip("?")
            value = self.query_one(f"#input-{prefix}-{key}", Input).value.strip()
            if not value and not name.endswith("?"):
                raise ValueError(f"{caption} is required.")
            data[key] = value or None
        return data

    def _reset(self, prefix: str) -> None:
        for field in self.query(Input):
            if field.id and field.id.startswith(f"input-{prefix}-"):
                field.value = ""

    def _submitted(self, reference: str, prefix: str) -> None:
        self._reset(prefix)
        self.notify(f"Request received. Your reference is {reference}.")
        self.post_message(RequestSubmittedMessage(reference))
        self.query_one(TabbedContent).active = "tab-mine"

    @on(Button.Pressed, "#btn-rfq")
    def handle_rfq(self) -> None:
        try:
            data = self._values("rfq", RFQ_FIELDS)
            record = rfq_requests.submit(**data, user_id=self.app.state.user_id)
        except ValueError as e:
            self.notify(str(e), severity="error")
            return
        self._submitted(record.id, "rfq")

    @on(Button.Pressed, "#btn-rep")
    def handle_repair(self) -> None:
        try:
            data = self._values("rep", REPAIR_FIELDS)
            when = datetime.strptime(f"{data.pop('date')} {data.pop('time')}", "%Y-%m-%d %H:%M")
            if when <= datetime.now():
                raise ValueError("Please pick a date in the future.")
            record = repair_appointments.submit(
                **data, appointment_datetime=when, user_id=self.app.state.user_id
            )
        except (StorefrontError, ValueError) as e:
            self.notify(str(e), severity="error")
            return
        self._submitted(record.id, "rep")

    @on(Button.Pressed, "#btn-cons")
    def handle_consultation(self) -> None:
        try:
            data = self._values("cons", CONSULTATION_FIELDS)
            budget = data["budget"].replace(" ", "")
            if not budget.isdigit():
                raise ValueError("Budget must be an amount in FCFA.")
            data["budget"] = int(budget)
            record = consultation_requests.submit(
                **data,
                preferred_contact_method=str(self.query_one("#select-contact", Select).value),
                user_id=self.app.state.user_id,
            )
        except ValueError as e:
            self.notify(str(e), severity="error")
            return
        self._submitted(record.id, "cons")

    @on(Button.Pressed, "#btn-advance")
    def handle_advance(self) -> None:
        reference = self._selected_reference()
        if not reference or not reference.startswith("RFQ-"):
            self.notify("Select a quote request first.", severity="warning")
            return
        record = rfq_requests.advance(reference)
        self.notify(f"{reference} is now {record.status}.")
        self.post_message(RequestSubmittedMessage(reference))

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        reference = self._selected_reference()
        if not reference or not reference.startswith("REP-"):
            self.notify("Select a repair appointment first.", severity="warning")
            return
        if repair_appointments.cancel(reference):
            self.notify(f"Appointment {reference} cancelled.")
        self.post_message(RequestSubmittedMessage(reference))

    def _selected_reference(self):
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    @on(RequestSubmittedMessage)
    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    def refresh_requests(self) -> None:
        user_id = self.app.state.user_id
        rows = []
        for r in rfq_requests.get_by_user(user_id):
            rows.append((r.id, "Quote", f"{r.quantity} x {r.product_category}", r.status, r.created_at))
        for r in repair_appointments.get_by_user(user_id):
            subject = f"{r.device_brand} {r.device_model}, {r.appointment_datetime:%Y-%m-%d %H:%M}"
            rows.append((r.id, "Repair", subject, r.status, r.created_at))
        for r in consultation_requests.get_by_user(user_id):
            rows.append((r.id, "Consultation", r.needs, r.status, r.created_at))
        rows.sort(key=lambda row: row[-1], reverse=True)

        table = self.query_one(DataTable)
        table.clear()
        for ref, kind, subject, status, created in rows:
            table.add_row(ref, kind, subject, status, f"{created:%Y-%m-%d %H:%M}", key=ref)
