# Canonical record shapes for backend payloads
#
# Every payload from the backend passes through one of these models exactly
# once. Field-name fallbacks the backend is inconsistent about (name/fullName,
# imagePath/imageUrl, phone/phoneNumber) are resolved here and nowhere else.

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_DEPARTMENT

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class GrievanceStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    COMPLETED = "COMPLETED"

class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

class UserRole(str, Enum):
    CITIZEN = "CITIZEN"
    OFFICER = "OFFICER"
    ADMIN = "ADMIN"

class Department(str, Enum):
    WATER = "Water"
    ROAD = "Road"
    ELECTRICITY = "Electricity"
    SANITATION = "Sanitation"
    STREET_LIGHT = "Street Light"
    GENERAL = "General"
    OTHER = "Other"

class HeatTier(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

RESOLVED_STATUSES = frozenset({GrievanceStatus.RESOLVED.value, GrievanceStatus.COMPLETED.value})

_BLANK_STRINGS = {"", "null", "undefined", "NULL"}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() in _BLANK_STRINGS:
        return None
    return value

def _upper(value: Any) -> Optional[str]:
    if isinstance(value, Enum):
        value = value.value
    return str(value).upper() if value else None

def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        value = _blank_to_none(data.get(key))
        if value is not None:
            return value
    return None

def _coerce_datetime(value: Any) -> Any:
    # Jackson may serialize LocalDateTime as [y, m, d, H, M, S, nanos]
    if isinstance(value, (list, tuple)) and 3 <= len(value) <= 7:
        parts = [int(p) for p in value[:6]]
        return datetime(*parts)
    return _blank_to_none(value)

def _naive_local(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class ApiModel(BaseModel):
    """Accepts the backend's camelCase keys and the Python field names alike."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------
class PersonRef(ApiModel):
    """A citizen or officer embedded in a grievance (``user`` / ``assignedTo``)."""

    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def pick_name(cls, values):
        if isinstance(values, dict):
            values = dict(values)
            values["name"] = _first(values, "name", "fullName")
            values.pop("fullName", None)
        return values


class User(ApiModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str = UserRole.CITIZEN.value
    department: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, values):
        if not isinstance(values, dict):
            return values
        values = dict(values)
        values["name"] = _first(values, "name", "fullName")
        values["phone"] = _first(values, "phone", "phoneNumber")
        role = _first(values, "role")
        values["role"] = _upper(role) or UserRole.CITIZEN.value
        department = _first(values, "department")
        if department is None and values["role"] == UserRole.OFFICER.value:
            department = DEFAULT_DEPARTMENT
        values["department"] = department
        if values.get("isActive") is None and values.get("is_active") is None:
            values.pop("isActive", None)
            values.pop("is_active", None)
        for key in ("createdAt", "created_at"):
            if key in values:
                values[key] = _coerce_datetime(values[key])
        return values

    @field_validator("created_at")
    @classmethod
    def to_local(cls, v):
        return _naive_local(v)

    @property
    def is_officer(self) -> bool:
        return self.role == UserRole.OFFICER.value

    @property
    def is_citizen(self) -> bool:
        return self.role == UserRole.CITIZEN.value

    @property
    def display_name(self) -> str:
        return self.name or "N/A"


# ---------------------------------------------------------------------------
# Grievance
# ---------------------------------------------------------------------------
class Grievance(ApiModel):
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None
    verification_status: Optional[str] = None
    verification_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    priority: Optional[str] = None
    assigned_to: Optional[PersonRef] = None
    image_path: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    department: Optional[str] = None
    officer_remarks: Optional[str] = None
    reopen_reason: Optional[str] = None
    feedback_submitted: bool = False
    user: Optional[PersonRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, values):
        if not isinstance(values, dict):
            return values
        values = dict(values)
        values["imagePath"] = _first(values, "imagePath", "image_path", "imageUrl")
        values.pop("image_path", None)
        values.pop("imageUrl", None)
        status = _first(values, "status")
        values["status"] = _upper(status)
        verification = _first(values, "verificationStatus", "verification_status")
        values.pop("verification_status", None)
        values["verificationStatus"] = _upper(verification)
        if values.get("user") is None and values.get("citizenName"):
            values["user"] = {"id": values.get("citizenId"), "name": values["citizenName"]}
        values.pop("citizenName", None)
        if values.get("feedbackSubmitted") is None:
            values.pop("feedbackSubmitted", None)
        for key in ("createdAt", "updatedAt", "resolvedAt", "created_at", "updated_at", "resolved_at"):
            if key in values:
                values[key] = _coerce_datetime(values[key])
        return values

    @field_validator("created_at", "updated_at", "resolved_at")
    @classmethod
    def to_local(cls, v):
        return _naive_local(v)

    @property
    def is_approved(self) -> bool:
        return self.verification_status == VerificationStatus.APPROVED.value

    @property
    def is_rejected(self) -> bool:
        return self.verification_status == VerificationStatus.REJECTED.value

    @property
    def is_resolved(self) -> bool:
        return self.status in RESOLVED_STATUSES

    @property
    def assigned_officer_id(self) -> Optional[int]:
        return self.assigned_to.id if self.assigned_to else None


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------
class Feedback(ApiModel):
    id: Optional[int] = None
    grievance_id: Optional[int] = None
    user_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    is_reopened: bool = False
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_refs(cls, values):
        if not isinstance(values, dict):
            return values
        values = dict(values)
        # The backend returns the full entity with nested grievance / user
        for ref, key in (("grievance", "grievanceId"), ("user", "userId")):
            nested = values.pop(ref, None)
            if values.get(key) is None and isinstance(nested, dict):
                values[key] = nested.get("id")
        if values.get("isReopened") is None:
            values.pop("isReopened", None)
        if "createdAt" in values:
            values["createdAt"] = _coerce_datetime(values["createdAt"])
        return values

    @field_validator("created_at")
    @classmethod
    def to_local(cls, v):
        return _naive_local(v)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
class VerifyRequest(ApiModel):
    approved: bool
    reason: str

class StatusUpdateRequest(ApiModel):
    status: str
    notes: str
    updated_by: Optional[int] = None

class FeedbackRequest(ApiModel):
    grievance_id: int
    user_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

class ProfileUpdate(ApiModel):
    name: str
    email: str
    phone: Optional[str] = None

class RegisterRequest(ApiModel):
    name: str
    email: str
    phone: str
    password: str
    role: UserRole = UserRole.CITIZEN

class LoginResult(ApiModel):
    token: str
    user: User
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Analytics payload (GET /analytics/dashboard)
# ---------------------------------------------------------------------------
class CategoryDistribution(ApiModel):
    category: Optional[str] = None
    count: int = 0
    percentage: float = 0.0

class ZoneDistribution(ApiModel):
    zone: Optional[str] = None
    count: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class SlaPerformance(ApiModel):
    category: Optional[str] = None
    sla_target_days: int = 0
    total_complaints: int = 0
    within_sla: int = Field(0, alias="withinSLA")
    breached_sla: int = Field(0, alias="breachedSLA")
    average_resolution_days: float = 0.0
    compliance_rate: float = 0.0

class RedZone(ApiModel):
    location: Optional[str] = None
    complaint_count: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    most_common_category: Optional[str] = None
    risk_level: Optional[str] = None

class DashboardStats(ApiModel):
    total_complaints: int = 0
    resolved_complaints: int = 0
    in_progress_complaints: int = 0
    pending_complaints: int = 0
    resolution_rate: float = 0.0
    average_resolution_time: float = 0.0
    category_distribution: List[CategoryDistribution] = Field(default_factory=list)
    zone_distribution: List[ZoneDistribution] = Field(default_factory=list)
    sla_performance: List[SlaPerformance] = Field(default_factory=list)
    red_zones: List[RedZone] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def nulls_to_defaults(cls, values):
        # The backend sends null for empty sections and zero counts
        if isinstance(values, dict):
            values = {k: v for k, v in values.items() if v is not None}
        return values
