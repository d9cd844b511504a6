# Role dashboards
#
# Each dashboard owns its stores and a gateway, loads once, and recomputes
# every view from the latest snapshot. Nothing here renders; the CLI does.

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .classifier import Classification, classify, sla_class, status_label
from .client import ApiClient
from .config import TOP_ZONES_CHART, TOP_ZONES_TABLE
from .errors import NotFound, RedirectRequired, ValidationFailed
from .gateway import Confirm, MutationGateway, decline
from .models import (
    DashboardStats, Feedback, Grievance, GrievanceStatus, RegisterRequest, SlaPerformance,
    User, UserRole,
)
from .projector import (
    CitizenRow, FilterCriteria, HeatEntry, StatusCounts, TodaysActivity, WorkloadEntry,
    ZoneSummary, citizens_with_report_counts, filter_grievances, in_category, officer_workload,
    pending_verification, priority_issues, rank_zones, recent, status_counts, todays_activity,
    workload_by_department, zone_summary,
)
from .session import Session, SessionStore
from .store import DirectoryStore, GrievanceStore

logger = logging.getLogger(__name__)

HOME_FOR_ROLE = {
    UserRole.CITIZEN.value: "citizen",
    UserRole.OFFICER.value: "officer",
    UserRole.ADMIN.value: "admin",
}


# ---------------------------------------------------------------------------
# Sign-in / Registration
# ---------------------------------------------------------------------------
async def login(client: ApiClient, sessions: SessionStore, email: str, password: str,
                role: Optional[str] = None) -> Session:
    """Log in, check the selected role against the account's, persist the session."""
    email = (email or "").strip()
    if not email or not password:
        raise ValidationFailed("Please enter email and password.")
    result = await client.login(email, password)
    if role and result.user.role != role.upper():
        raise ValidationFailed(
            f"You selected {role.upper()} but you are registered as {result.user.role}. "
            "Please select correct role.")
    session = Session(token=result.token, user=result.user)
    sessions.save(session)
    client.token = session.token
    logger.info("Logged in as user %s (%s)", result.user.id, result.user.role)
    return session

async def register(client: ApiClient, name: str, email: str, phone: str, password: str,
                   confirm_password: str, role: str = UserRole.CITIZEN.value) -> str:
    if password != confirm_password:
        raise ValidationFailed("Passwords do not match!")
    if len(password) < 6:
        raise ValidationFailed("Password must be at least 6 characters!")
    phone = (phone or "").strip()
    if len(phone) != 10 or not phone.isdigit():
        raise ValidationFailed("Please enter valid 10-digit phone number!")
    try:
        user_role = UserRole(role.upper())
    except ValueError:
        raise ValidationFailed(f"Unknown role: {role}")

    message = await client.register(RegisterRequest(
        name=name.strip(), email=email.strip(), phone=phone, password=password, role=user_role))
    if "successful" not in message.lower():
        raise ValidationFailed(message or "Registration failed")
    return message


# ---------------------------------------------------------------------------
# Citizen
# ---------------------------------------------------------------------------
class CitizenDashboard:
    def __init__(self, client: ApiClient, session: Session, confirm: Confirm = decline):
        self.client = client
        self.user = session.user
        self.reports = GrievanceStore(client, "citizen", owner_id=self.user.id)
        self.gateway = MutationGateway(client, [self.reports], confirm=confirm)

    async def load(self) -> None:
        await self.reports.reload()

    def stats(self) -> StatusCounts:
        return status_counts(self.reports.snapshot())

    def recent_reports(self, limit: int = 5) -> List[Classification]:
        return [classify(g) for g in recent(self.reports.snapshot(), limit)]

    def my_reports(self, status: str = "all", category: str = "all") -> List[Classification]:
        criteria = FilterCriteria(status=status, category=category)
        return [classify(g) for g in filter_grievances(self.reports.snapshot(), criteria)]

    async def track(self, grievance_id: int) -> Grievance:
        try:
            return await self.client.get_grievance(grievance_id)
        except NotFound:
            raise ValidationFailed(f"Report #{grievance_id} not found.")

    async def submit(self, title: str, category: str, location: str, image: Optional[Path],
                     description: str = "", latitude: Optional[float] = None,
                     longitude: Optional[float] = None) -> Grievance:
        return await self.gateway.submit_grievance(
            self.user.id, title, category, location, image, description=description,
            latitude=latitude, longitude=longitude)

    async def update_profile(self, sessions: SessionStore, name: str, email: str,
                             phone: Optional[str] = None) -> User:
        updated = await self.gateway.update_profile(self.user.id, name, email, phone)
        session = sessions.load()
        if session is not None:
            sessions.save(Session(token=session.token, user=updated))
        self.user = updated
        return updated


# ---------------------------------------------------------------------------
# Officer
# ---------------------------------------------------------------------------
class OfficerDashboard:
    """``category`` narrows the headline and zone statistics to one department's work."""

    def __init__(self, client: ApiClient, session: Session, confirm: Confirm = decline,
                 category: Optional[str] = None):
        self.client = client
        self.officer = session.user
        self.category = category
        self.assigned = GrievanceStore(client, "assigned", owner_id=self.officer.id)
        self.everything = GrievanceStore(client, "all")
        self.gateway = MutationGateway(client, [self.assigned, self.everything], confirm=confirm)

    async def load(self) -> None:
        await self.assigned.reload()
        await self.everything.reload()

    def stats(self) -> StatusCounts:
        return status_counts(in_category(self.assigned.snapshot(), self.category))

    def zone(self) -> ZoneSummary:
        return zone_summary(self.everything.snapshot(), self.assigned.snapshot(), self.category)

    def priority_issues(self) -> List[Classification]:
        return [classify(g) for g in priority_issues(self.assigned.snapshot())]

    def recent_assignments(self) -> List[Classification]:
        return [classify(g) for g in recent(self.assigned.snapshot())]

    def assigned_reports(self, status: str = "all", priority: str = "all") -> List[Classification]:
        criteria = FilterCriteria(status=status, priority=priority)
        return [classify(g) for g in filter_grievances(self.assigned.snapshot(), criteria)]

    def all_reports(self, search: str = "", status: str = "all", category: str = "all") -> List[Classification]:
        criteria = FilterCriteria(search=search, status=status, category=category)
        return [classify(g) for g in filter_grievances(self.everything.snapshot(), criteria)]

    async def update_status(self, grievance_id: int, new_status: str, notes: Optional[str] = None) -> Grievance:
        # Quick updates carry an auto-generated note
        if notes is None:
            notes = f"Status updated to {status_label(new_status.upper().replace('-', '_'))} by officer"
        return await self.gateway.update_status(grievance_id, new_status, notes, updated_by=self.officer.id)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
class AdminDashboard:
    def __init__(self, client: ApiClient, session: Session, confirm: Confirm = decline):
        self.client = client
        self.admin = session.user
        self.grievances = GrievanceStore(client, "all")
        self.directory = DirectoryStore(client)
        self.gateway = MutationGateway(client, [self.grievances], directory=self.directory, confirm=confirm)

    async def load(self) -> None:
        await self.grievances.reload()
        await self.directory.reload()

    def overview(self, today: Optional[date] = None) -> Tuple[StatusCounts, TodaysActivity, int, int]:
        """(system counts, today's activity, user count, officer count)."""
        snapshot = self.grievances.snapshot()
        return (status_counts(snapshot, admin=True), todays_activity(snapshot, today),
                len(self.directory.users()), len(self.directory.officers()))

    def reports(self, search: str = "", status: str = "all", category: str = "all") -> List[Classification]:
        criteria = FilterCriteria(search=search, status=status, category=category)
        return [classify(g) for g in filter_grievances(self.grievances.snapshot(), criteria)]

    def pending(self, search: str = "", category: str = "all") -> List[Classification]:
        criteria = FilterCriteria(search=search, category=category)
        queue = pending_verification(self.grievances.snapshot())
        return [classify(g) for g in filter_grievances(queue, criteria)]

    async def verify(self, grievance_id: int, approved: bool, reason: Optional[str] = None) -> Grievance:
        return await self.gateway.verify(grievance_id, approved, reason)

    async def assign(self, grievance_id: int, officer_id: int) -> Grievance:
        officer = self.directory.get(officer_id)
        if officer is None or not officer.is_officer:
            raise ValidationFailed(f"Officer #{officer_id} not found.")
        return await self.gateway.assign(grievance_id, officer_id)

    async def delete(self, grievance_id: int) -> None:
        await self.gateway.delete_grievance(grievance_id)

    def citizens(self) -> List[CitizenRow]:
        return citizens_with_report_counts(self.directory.users(), self.grievances.snapshot())

    def officers(self) -> List[User]:
        return list(self.directory.officers())

    def workload(self) -> Dict[str, List[WorkloadEntry]]:
        return workload_by_department(self.grievances.snapshot(), self.directory.officers())

    def officer_detail(self, officer_id: int) -> Tuple[User, WorkloadEntry, List[Classification]]:
        officer = self.directory.get(officer_id)
        if officer is None or not officer.is_officer:
            raise ValidationFailed(f"Officer #{officer_id} not found.")
        entry = officer_workload(self.grievances.snapshot(), [officer])[0]
        assigned = [classify(g) for g in self.grievances.snapshot() if g.assigned_officer_id == officer_id]
        return officer, entry, assigned

    def export(self, path: Path, now: Optional[datetime] = None) -> Path:
        """Write the current snapshots as one JSON document."""
        payload = {
            "grievances": [g.model_dump(mode="json", by_alias=True) for g in self.grievances.snapshot()],
            "users": [u.model_dump(mode="json", by_alias=True) for u in self.directory.users()],
            "officers": [u.model_dump(mode="json", by_alias=True) for u in self.directory.officers()],
            "exportedAt": (now or datetime.now()).isoformat(),
        }
        path = Path(path)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info("Exported %d grievances to %s", len(payload["grievances"]), path)
        return path


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
class AnalyticsDashboard:
    def __init__(self, client: ApiClient):
        self.client = client
        self.data = DashboardStats()

    async def load(self) -> DashboardStats:
        self.data = await self.client.analytics_dashboard()
        return self.data

    def categories(self):
        return sorted(self.data.category_distribution, key=lambda c: c.count, reverse=True)

    def zone_chart(self) -> List[HeatEntry]:
        return rank_zones(self.data.zone_distribution, TOP_ZONES_CHART)

    def zone_table(self) -> List[HeatEntry]:
        return rank_zones(self.data.zone_distribution, TOP_ZONES_TABLE)

    def sla(self) -> List[Tuple[SlaPerformance, str]]:
        return [(row, sla_class(row.compliance_rate)) for row in self.data.sla_performance]

    def red_zones(self):
        return sorted(self.data.red_zones, key=lambda z: z.complaint_count, reverse=True)


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------
class FeedbackPage:
    """Feedback and reopen flow for one of the citizen's resolved grievances."""

    def __init__(self, client: ApiClient, session: Session, grievance_id: int, confirm: Confirm = decline):
        self.client = client
        self.user = session.user
        self.grievance_id = grievance_id
        self.grievance: Optional[Grievance] = None
        self.existing: Optional[Feedback] = None
        self.gateway = MutationGateway(client, confirm=confirm)

    async def load(self) -> Optional[Feedback]:
        self.grievance = await self.client.get_grievance(self.grievance_id)
        if self.grievance.status != GrievanceStatus.RESOLVED.value:
            raise RedirectRequired("citizen", "Feedback can only be submitted for resolved complaints.")
        self.existing = await self.client.feedback_for(self.grievance_id)
        return self.existing

    async def submit(self, rating: Optional[int], comment: Optional[str] = None) -> Feedback:
        self.existing = await self.gateway.submit_feedback(self.grievance_id, self.user.id, rating, comment)
        self.grievance = await self.client.get_grievance(self.grievance_id)
        return self.existing

    async def reopen(self, reason: Optional[str], rating: Optional[int] = None) -> Dict:
        result = await self.gateway.reopen(self.grievance_id, self.user.id, reason, rating)
        self.grievance = await self.client.get_grievance(self.grievance_id)
        return result
