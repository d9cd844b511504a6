# Display classification of grievance lifecycle values
#
# Pure functions: no I/O, and nothing here raises on a missing or unknown
# field. Unknown values fall back to a neutral label or class.

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .config import DEPARTMENT_NAMES, SLA_SUCCESS_RATE, SLA_WARNING_RATE, WORKLOAD_HIGH_ABOVE, WORKLOAD_MEDIUM_ABOVE
from .models import Grievance, GrievanceStatus, Priority, VerificationStatus

STATUS_LABELS = {
    GrievanceStatus.PENDING.value: "Pending",
    GrievanceStatus.IN_PROGRESS.value: "In Progress",
    GrievanceStatus.RESOLVED.value: "Resolved",
    GrievanceStatus.COMPLETED.value: "Completed",
}

STATUS_CLASSES = {
    GrievanceStatus.PENDING.value: "status-pending",
    GrievanceStatus.IN_PROGRESS.value: "status-in-progress",
    GrievanceStatus.RESOLVED.value: "status-resolved",
    GrievanceStatus.COMPLETED.value: "status-resolved",
}

RATING_LABELS = {
    1: "Very Dissatisfied",
    2: "Dissatisfied",
    3: "Neutral",
    4: "Satisfied",
    5: "Very Satisfied",
}

NOT_AVAILABLE = "N/A"


class Classification(BaseModel):
    """Everything a list row or detail view needs to render one grievance."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    location: str
    category: str
    citizen: str
    officer: Optional[str] = None
    status_label: str
    status_class: str
    verification_label: str
    verification_class: str
    priority: str
    priority_class: str
    created: str


def status_label(status: Optional[str]) -> str:
    if not status:
        return NOT_AVAILABLE
    return STATUS_LABELS.get(status, status)

def status_class(status: Optional[str]) -> str:
    return STATUS_CLASSES.get(status or "", "status-pending")

def verification_badge(verification_status: Optional[str]) -> tuple:
    """Return ``(label, css_class)`` for a verification status."""
    if verification_status == VerificationStatus.REJECTED.value:
        return "Rejected", "badge-rejected"
    if verification_status == VerificationStatus.APPROVED.value:
        return "Verified", "badge-verified"
    return "Pending Verification", "badge-pending"

def priority_bucket(priority: Optional[str]) -> str:
    value = (priority or "").strip().upper()
    if value in Priority.__members__:
        return value
    return Priority.MEDIUM.value

def priority_class(priority: Optional[str]) -> str:
    return f"priority-{priority_bucket(priority).lower()}"

def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return NOT_AVAILABLE
    return value.strftime("%d %b %Y")

def format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return NOT_AVAILABLE
    return value.strftime("%d %b %Y %H:%M")

def rating_label(rating: Optional[int]) -> str:
    return RATING_LABELS.get(rating or 0, "")

def department_display(department: Optional[str]) -> str:
    if not department:
        return DEPARTMENT_NAMES["General"]
    return DEPARTMENT_NAMES.get(department, department)

def workload_class(assigned: int) -> str:
    if assigned > WORKLOAD_HIGH_ABOVE:
        return "high"
    if assigned > WORKLOAD_MEDIUM_ABOVE:
        return "medium"
    return "low"

def sla_class(compliance_rate: float) -> str:
    if compliance_rate >= SLA_SUCCESS_RATE:
        return "success"
    if compliance_rate >= SLA_WARNING_RATE:
        return "warning"
    return "danger"

def classify(g: Grievance) -> Classification:
    verification_label, verification_css = verification_badge(g.verification_status)
    citizen = g.user.name if g.user and g.user.name else NOT_AVAILABLE
    officer = g.assigned_to.name if g.assigned_to else None
    return Classification(
        id=g.id,
        title=g.title or "Untitled Report",
        description=g.description or "No description",
        location=g.location or NOT_AVAILABLE,
        category=g.category or NOT_AVAILABLE,
        citizen=citizen,
        officer=officer,
        status_label=status_label(g.status),
        status_class=status_class(g.status),
        verification_label=verification_label,
        verification_class=verification_css,
        priority=priority_bucket(g.priority),
        priority_class=priority_class(g.priority),
        created=format_date(g.created_at),
    )
