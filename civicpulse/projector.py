# Derived views over grievance snapshots
#
# Every function takes immutable inputs and returns fresh lists / models, so
# callers can recompute any view from the latest store snapshot at will.

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

from .classifier import department_display
from .config import DUPLICATE_WINDOW_HOURS, HEAT_HIGH_THRESHOLD, HEAT_MEDIUM_THRESHOLD
from .models import (
    RESOLVED_STATUSES, Grievance, GrievanceStatus, HeatTier, Priority, User,
    VerificationStatus, ZoneDistribution,
)

# Synthetic status filters that select on verification instead of lifecycle
_VERIFICATION_FILTERS = {
    "verified": VerificationStatus.APPROVED.value,
    "rejected": VerificationStatus.REJECTED.value,
}
_URGENT_PRIORITIES = {Priority.URGENT.value, Priority.HIGH.value}


# ---------------------------------------------------------------------------
# Result Models
# ---------------------------------------------------------------------------
class FilterCriteria(BaseModel):
    search: str = ""
    status: str = "all"
    category: str = "all"
    priority: str = "all"

class StatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    resolved: int = 0
    urgent: int = 0

class TodaysActivity(BaseModel):
    new: int = 0
    verified: int = 0
    resolved: int = 0

class WorkloadEntry(BaseModel):
    officer_id: int
    name: str
    email: Optional[str] = None
    department: str
    assigned: int = 0
    resolved: int = 0
    in_progress: int = 0
    pending: int = 0
    completion_rate: float = 0.0
    rating: float = 0.0

    @property
    def completion_percent(self) -> int:
        return round(self.completion_rate * 100)

class HeatEntry(BaseModel):
    name: str
    count: int
    tier: HeatTier
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class CitizenRow(BaseModel):
    user: User
    report_count: int = 0

class ZoneSummary(BaseModel):
    category: Optional[str] = None
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    resolved: int = 0
    resolution_rate: int = 0
    contribution: int = 0


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------
def _unconstrained(value: Optional[str]) -> bool:
    return not value or value.strip().lower() == "all"

def normalize_status_filter(value: str) -> str:
    """``in-progress`` -> ``IN_PROGRESS``; synthetic filters stay lower-case."""
    value = value.strip()
    if value.lower() in _VERIFICATION_FILTERS:
        return value.lower()
    return value.upper().replace("-", "_")

def matches_search(g: Grievance, text: Optional[str]) -> bool:
    if not text:
        return True
    needle = text.lower()
    haystack = (str(g.id), g.location, g.category, g.description)
    return any(field is not None and needle in field.lower() for field in haystack)

def filter_grievances(grievances: Iterable[Grievance], criteria: FilterCriteria) -> List[Grievance]:
    status = None if _unconstrained(criteria.status) else normalize_status_filter(criteria.status)
    category = None if _unconstrained(criteria.category) else criteria.category
    priority = None if _unconstrained(criteria.priority) else criteria.priority.upper()

    result = []
    for g in grievances:
        if not matches_search(g, criteria.search):
            continue
        if status in _VERIFICATION_FILTERS:
            if g.verification_status != _VERIFICATION_FILTERS[status]:
                continue
        elif status is not None and g.status != status:
            continue
        if category is not None and g.category != category:
            continue
        if priority is not None and (g.priority or "").upper() != priority:
            continue
        result.append(g)
    return result

def pending_verification(grievances: Iterable[Grievance]) -> List[Grievance]:
    return [
        g for g in grievances
        if g.status == GrievanceStatus.PENDING.value
        and g.verification_status != VerificationStatus.APPROVED.value
    ]

def in_category(grievances: Iterable[Grievance], category: Optional[str]) -> List[Grievance]:
    """Case-insensitive substring match on category; ``None`` keeps everything."""
    if not category:
        return list(grievances)
    needle = category.lower()
    return [g for g in grievances if g.category and needle in g.category.lower()]


# ---------------------------------------------------------------------------
# Counts
# ---------------------------------------------------------------------------
def status_counts(grievances: Iterable[Grievance], admin: bool = False) -> StatusCounts:
    """Headline counters. The admin variant counts anything unverified as pending."""
    counts = StatusCounts()
    for g in grievances:
        counts.total += 1
        if g.status == GrievanceStatus.PENDING.value or (
                admin and g.verification_status != VerificationStatus.APPROVED.value):
            counts.pending += 1
        if g.status == GrievanceStatus.IN_PROGRESS.value:
            counts.in_progress += 1
        if g.status in RESOLVED_STATUSES:
            counts.resolved += 1
        if g.priority in _URGENT_PRIORITIES:
            counts.urgent += 1
    return counts

def todays_activity(grievances: Iterable[Grievance], today: Optional[date] = None) -> TodaysActivity:
    today = today or date.today()
    todays = [g for g in grievances if g.created_at and g.created_at.date() == today]
    return TodaysActivity(
        new=len(todays),
        verified=sum(1 for g in todays if g.verification_status == VerificationStatus.APPROVED.value),
        resolved=sum(1 for g in todays if g.status == GrievanceStatus.RESOLVED.value),
    )

def priority_issues(grievances: Iterable[Grievance], limit: int = 5) -> List[Grievance]:
    return [
        g for g in grievances
        if g.priority in _URGENT_PRIORITIES and g.status not in RESOLVED_STATUSES
    ][:limit]

def recent(grievances: Iterable[Grievance], limit: int = 5) -> List[Grievance]:
    # Missing timestamps sort last
    ordered = sorted(grievances, key=lambda g: g.created_at or datetime.min, reverse=True)
    return ordered[:limit]

def citizens_with_report_counts(users: Iterable[User], grievances: Iterable[Grievance]) -> List[CitizenRow]:
    per_citizen = Counter(g.user.id for g in grievances if g.user and g.user.id is not None)
    return [CitizenRow(user=u, report_count=per_citizen.get(u.id, 0)) for u in users if u.is_citizen]

def is_duplicate(grievances: Iterable[Grievance], title: str, location: str,
                 now: Optional[datetime] = None) -> bool:
    """True when a report with the same title and location was filed recently."""
    now = now or datetime.now()
    cutoff = now - timedelta(hours=DUPLICATE_WINDOW_HOURS)
    title, location = title.strip().lower(), location.strip().lower()
    for g in grievances:
        if not g.created_at or g.created_at <= cutoff:
            continue
        if (g.title or "").strip().lower() == title and (g.location or "").strip().lower() == location:
            return True
    return False


# ---------------------------------------------------------------------------
# Officer Workload
# ---------------------------------------------------------------------------
def officer_workload(grievances: Sequence[Grievance], officers: Iterable[User]) -> List[WorkloadEntry]:
    """One entry per officer, in the order the officers were given."""
    by_officer: Dict[int, List[Grievance]] = {}
    for g in grievances:
        if g.assigned_officer_id is not None:
            by_officer.setdefault(g.assigned_officer_id, []).append(g)

    entries = []
    for officer in officers:
        mine = by_officer.get(officer.id, [])
        assigned = len(mine)
        resolved = sum(1 for g in mine if g.status in RESOLVED_STATUSES)
        rate = resolved / assigned if assigned else 0.0
        entries.append(WorkloadEntry(
            officer_id=officer.id,
            name=officer.display_name,
            email=officer.email,
            department=department_display(officer.department),
            assigned=assigned,
            resolved=resolved,
            in_progress=sum(1 for g in mine if g.status == GrievanceStatus.IN_PROGRESS.value),
            pending=sum(1 for g in mine if g.status == GrievanceStatus.PENDING.value),
            completion_rate=rate,
            rating=rate * 5,
        ))
    return entries

def workload_by_department(grievances: Sequence[Grievance], officers: Iterable[User]) -> Dict[str, List[WorkloadEntry]]:
    """Workload grouped by display department; busiest officer first within a department."""
    ordered = sorted(officer_workload(grievances, officers), key=lambda e: e.assigned, reverse=True)
    groups: Dict[str, List[WorkloadEntry]] = {}
    for entry in ordered:
        groups.setdefault(entry.department, []).append(entry)
    return {name: groups[name] for name in sorted(groups)}

def zone_summary(all_grievances: Iterable[Grievance], mine: Iterable[Grievance],
                 category: Optional[str] = None) -> ZoneSummary:
    """Zone-wide totals for a category and the officer's share of its resolutions."""
    zone = in_category(all_grievances, category)
    my_resolved = sum(1 for g in in_category(mine, category) if g.status in RESOLVED_STATUSES)
    summary = ZoneSummary(category=category, total=len(zone))
    for g in zone:
        if g.status == GrievanceStatus.PENDING.value:
            summary.pending += 1
        elif g.status == GrievanceStatus.IN_PROGRESS.value:
            summary.in_progress += 1
        elif g.status in RESOLVED_STATUSES:
            summary.resolved += 1
    if summary.total:
        summary.resolution_rate = round(summary.resolved / summary.total * 100)
    if summary.resolved:
        summary.contribution = round(my_resolved / summary.resolved * 100)
    return summary


# ---------------------------------------------------------------------------
# Heat
# ---------------------------------------------------------------------------
def heat_tier(count: int) -> HeatTier:
    if count >= HEAT_HIGH_THRESHOLD:
        return HeatTier.HIGH
    if count >= HEAT_MEDIUM_THRESHOLD:
        return HeatTier.MEDIUM
    return HeatTier.LOW

def _heat(counter: Counter) -> List[HeatEntry]:
    # Counter.most_common keeps first-seen order among equal counts
    return [HeatEntry(name=name, count=count, tier=heat_tier(count)) for name, count in counter.most_common()]

def zone_heat(grievances: Iterable[Grievance]) -> List[HeatEntry]:
    return _heat(Counter(g.location for g in grievances if g.location))

def category_heat(grievances: Iterable[Grievance]) -> List[HeatEntry]:
    return _heat(Counter(g.category for g in grievances if g.category))

def rank_zones(zones: Iterable[ZoneDistribution], limit: Optional[int] = None) -> List[HeatEntry]:
    """Backend zone distribution, busiest first, with heat tiers attached."""
    ranked = sorted(zones, key=lambda z: z.count, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [
        HeatEntry(name=z.zone or "Unknown", count=z.count, tier=heat_tier(z.count),
                  latitude=z.latitude, longitude=z.longitude)
        for z in ranked
    ]
