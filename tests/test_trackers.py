import random
import re
import unittest
from datetime import datetime

from db_case import ROOT  # noqa: F401  (puts src/ on sys.path)

from services.trackers import (
    ConsultationTracker,
    RepairTracker,
    RFQTracker,
    next_rfq_status,
)
from utils.errors import SlotUnavailableError
from utils.pure import generate_reference

NOW = datetime(2025, 3, 14, 9, 30)


def rfq_data(**overrides):
    data = dict(
        company_name="Acme SARL",
        contact_person="Jean Dupont",
        email="achats@acme.cm",
        phone="691234567",
        business_type="Retail",
        employee_count="10-50",
        product_category="Laptops",
        quantity="25",
        timeframe="1 month",
        specifications="16 GB RAM",
    )
    data.update(overrides)
    return data


def repair_data(when, **overrides):
    data = dict(
        name="Marie Kouam",
        email="marie.k@example.com",
        phone="677889900",
        device_type="Smartphone",
        device_brand="Samsung",
        device_model="Galaxy S21",
        issue_description="Cracked screen",
        appointment_datetime=when,
    )
    data.update(overrides)
    return data


class StatusTestCase(unittest.TestCase):
    def test_next_status_chain(self):
        chain = ["pending"]
        while chain[-1] != "completed":
            chain.append(next_rfq_status(chain[-1]))
        self.assertEqual(
            chain, ["pending", "processing", "quoted", "accepted", "completed"]
        )

    def test_terminal_statuses_stay(self):
        self.assertEqual(next_rfq_status("completed"), "completed")
        self.assertEqual(next_rfq_status(next_rfq_status("completed")), "completed")
        self.assertEqual(next_rfq_status("rejected"), "rejected")

    def test_reference_format(self):
        ref = generate_reference("RFQ", NOW, random.Random(1))
        self.assertRegex(ref, r"^RFQ-\d{6}-\d{4}$")
        self.assertEqual(ref.split("-")[1], str(int(NOW.timestamp() * 1000))[-6:])


class TrackerTestCase(unittest.TestCase):
    def setUp(self):
        self.rfqs = RFQTracker(clock=lambda: NOW, rng=random.Random(7))
        self.repairs = RepairTracker(clock=lambda: NOW, rng=random.Random(7))
        self.consultations = ConsultationTracker(clock=lambda: NOW)

    def test_submit_fills_reference_status_and_date(self):
        rfq = self.rfqs.submit(**rfq_data(), user_id="user-1")
        self.assertTrue(re.match(r"^RFQ-\d{6}-\d{4}$", rfq.id))
        self.assertEqual(rfq.status, "pending")
        self.assertEqual(rfq.created_at, NOW)
        self.assertIsNone(rfq.budget)
        self.assertEqual(self.rfqs.get_by_id(rfq.id), rfq)

        cons = self.consultations.submit(
            customer_name="Paul",
            customer_email="paul@example.com",
            customer_phone="699000000",
            budget=300000,
            needs="Gaming laptop",
            preferred_contact_method="whatsapp",
        )
        self.assertTrue(cons.id.startswith("CONS-"))
        self.assertEqual(cons.status, "pending")

    def test_lists_by_user(self):
        self.rfqs.submit(**rfq_data(), user_id="user-1")
        self.rfqs.submit(**rfq_data(company_name="Other"), user_id="user-2")
        self.rfqs.submit(**rfq_data(company_name="Guest Co"))
        self.assertEqual(len(self.rfqs.list_all()), 3)
        self.assertEqual(
            [r.company_name for r in self.rfqs.get_by_user("user-2")], ["Other"]
        )
        self.assertEqual(len(self.rfqs.get_by_user(None)), 1)

        self.rfqs.clear()
        self.assertEqual(self.rfqs.list_all(), [])

    def test_update_status_and_advance(self):
        rfq = self.rfqs.submit(**rfq_data())
        self.assertEqual(self.rfqs.update_status(rfq.id, "quoted").status, "quoted")
        self.assertEqual(self.rfqs.advance(rfq.id).status, "accepted")
        self.assertEqual(self.rfqs.advance(rfq.id).status, "completed")
        self.assertEqual(self.rfqs.advance(rfq.id).status, "completed")

        self.assertIsNone(self.rfqs.update_status("RFQ-000000-0000", "quoted"))
        self.assertIsNone(self.rfqs.advance("RFQ-000000-0000"))
        with self.assertRaises(ValueError):
            self.rfqs.update_status(rfq.id, "shipped")

    def test_repair_slot_booking_and_cancel(self):
        when = datetime(2025, 3, 20, 10, 0)
        self.assertTrue(self.repairs.is_slot_available(when))

        booking = self.repairs.submit(**repair_data(when))
        self.assertEqual(booking.status, "scheduled")
        self.assertTrue(booking.id.startswith("REP-"))
        self.assertFalse(self.repairs.is_slot_available(when))

        with self.assertRaises(SlotUnavailableError):
            self.repairs.submit(**repair_data(when, name="Someone Else"))

        self.assertTrue(self.repairs.cancel(booking.id))
        self.assertEqual(self.repairs.get_by_id(booking.id).status, "cancelled")
        self.assertTrue(self.repairs.is_slot_available(when))
        self.assertFalse(self.repairs.cancel("REP-000000-0000"))


if __name__ == "__main__":
    unittest.main()
