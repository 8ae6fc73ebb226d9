"""
In-memory trackers for B2B quote requests, repair appointments and
consultation requests.

Records live in a list for the lifetime of the process; there is no
persistence and references are not checked for collisions.
"""

from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Literal, Optional, Tuple, Type, TypeVar

from utils.errors import SlotUnavailableError
from utils.logger import get_logger
from utils.pure import generate_reference

_logger = get_logger(__name__)

RFQStatus = Literal["pending", "processing", "quoted", "accepted", "rejected", "completed"]
RepairStatus = Literal["scheduled", "confirmed", "completed", "cancelled"]
ConsultationStatus = Literal["pending", "contacted", "completed", "cancelled"]
ContactMethod = Literal["email", "phone", "whatsapp"]

RFQ_STATUSES: Tuple[str, ...] = (
    "pending",
    "processing",
    "quoted",
    "accepted",
    "rejected",
    "completed",
)
REPAIR_STATUSES: Tuple[str, ...] = ("scheduled", "confirmed", "completed", "cancelled")
CONSULTATION_STATUSES: Tuple[str, ...] = ("pending", "contacted", "completed", "cancelled")

_NEXT_RFQ_STATUS: Dict[str, str] = {
    "pending": "processing",
    "processing": "quoted",
    "quoted": "accepted",
    "accepted": "completed",
}


def next_rfq_status(status: str) -> str:
    """Following RFQ status; rejected and completed stay where they are."""
    return _NEXT_RFQ_STATUS.get(status, status)


@dataclass(frozen=True)
class RFQRequest:
    id: str
    company_name: str
    contact_person: str
    email: str
    phone: str
    business_type: str
    employee_count: str
    product_category: str
    quantity: str
    timeframe: str
    specifications: str
    status: RFQStatus
    created_at: datetime
    budget: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class RepairAppointment:
    id: str
    name: str
    email: str
    phone: str
    device_type: str
    device_brand: str
    device_model: str
    issue_description: str
    appointment_datetime: datetime
    status: RepairStatus
    created_at: datetime
    user_id: Optional[str] = None


@dataclass(frozen=True)
class ConsultationRequest:
    id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    budget: int
    needs: str
    preferred_contact_method: ContactMethod
    status: ConsultationStatus
    created_at: datetime
    user_id: Optional[str] = None


R = TypeVar("R")


class RequestTracker(Generic[R]):
    """
    Append-only list of request records with a status column.

    submit() fills id, status and created_at; update_status() assigns any
    status of the tracker's enum without checking the transition.
    """

    record_type: Type[R]
    prefix: str = ""
    statuses: Tuple[str, ...] = ()
    initial_status: str = ""

    def __init__(
        self,
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._records: List[R] = []
        self._clock = clock
        self._rng = rng or random.Random()

    def generate_reference(self) -> str:
        return generate_reference(self.prefix, self._clock(), self._rng)

    def submit(self, **data: Any) -> R:
        record = self.record_type(
            **data,
            id=self.generate_reference(),
            status=self.initial_status,
            created_at=self._clock(),
        )
        self._records.append(record)
        _logger.info(f"New {self.prefix} request {record.id}")
        return record

    def list_all(self) -> List[R]:
        return list(self._records)

    def get_by_user(self, user_id: str) -> List[R]:
        return [r for r in self._records if r.user_id == user_id]

    def get_by_id(self, record_id: str) -> Optional[R]:
        return next((r for r in self._records if r.id == record_id), None)

    def update_status(self, record_id: str, status: str) -> Optional[R]:
        """Set the status of a record; None if the id is unknown."""
        if status not in self.statuses:
            raise ValueError(f"Unknown {self.prefix} status: {status!r}")
        for idx, record in enumerate(self._records):
            if record.id == record_id:
                self._records[idx] = dataclasses.replace(record, status=status)
                _logger.info(f"{record_id} status updated to {status}")
                return self._records[idx]
        return None

    def clear(self) -> None:
        self._records.clear()


class RFQTracker(RequestTracker[RFQRequest]):
    record_type = RFQRequest
    prefix = "RFQ"
    statuses = RFQ_STATUSES
    initial_status = "pending"

    def advance(self, record_id: str) -> Optional[RFQRequest]:
        """Move an RFQ one step along the pending -> completed chain."""
        record = self.get_by_id(record_id)
        if record is None:
            return None
        return self.update_status(record_id, next_rfq_status(record.status))


class RepairTracker(RequestTracker[RepairAppointment]):
    record_type = RepairAppointment
    prefix = "REP"
    statuses = REPAIR_STATUSES
    initial_status = "scheduled"

    def is_slot_available(self, when: datetime) -> bool:
        return not any(
            a.appointment_datetime == when and a.status != "cancelled"
            for a in self._records
        )

    def submit(self, **data: Any) -> RepairAppointment:
        if not self.is_slot_available(data["appointment_datetime"]):
            raise SlotUnavailableError(
                "This time slot is no longer available. Please choose another one."
            )
        return super().submit(**data)

    def cancel(self, record_id: str) -> bool:
        return self.update_status(record_id, "cancelled") is not None


class ConsultationTracker(RequestTracker[ConsultationRequest]):
    record_type = ConsultationRequest
    prefix = "CONS"
    statuses = CONSULTATION_STATUSES
    initial_status = "pending"


# process-wide trackers used by the UI
rfq_requests = RFQTracker()
repair_appointments = RepairTracker()
consultation_requests = ConsultationTracker()
