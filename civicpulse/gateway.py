# State-changing requests against the backend
#
# Every mutation validates locally first (no request on failure), asks for
# confirmation where the dashboards do, holds an in-flight key for its
# duration, and reloads the attached stores only after the server accepted it.

import logging
import re
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .classifier import status_label
from .client import ApiClient
from .config import ALLOWED_IMAGE_TYPES, DEFAULT_APPROVAL_REASON, HIGH_RATING_REOPEN_WARNING, MAX_IMAGE_BYTES
from .errors import ActionCancelled, ActionInProgress, RedirectRequired, ValidationFailed
from .models import Feedback, FeedbackRequest, Grievance, GrievanceStatus, ProfileUpdate, StatusUpdateRequest, User, VerifyRequest
from .projector import is_duplicate
from .store import DirectoryStore, GrievanceStore

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def decline(message: str) -> bool:
    """Default confirmation hook: refuse everything that asks."""
    return False


class MutationGateway:
    def __init__(self, client: ApiClient, stores: Sequence[GrievanceStore] = (),
                 directory: Optional[DirectoryStore] = None, confirm: Confirm = decline):
        self.client = client
        self.stores = list(stores)
        self.directory = directory
        self.confirm = confirm
        self._in_flight = set()

    # -----------------------------------------------------------------------
    # Plumbing
    # -----------------------------------------------------------------------
    @contextmanager
    def _guard(self, operation: str, target):
        key = (operation, target)
        if key in self._in_flight:
            raise ActionInProgress(f"{operation.capitalize()} for #{target} is already in progress")
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)

    def in_flight(self, operation: str, target) -> bool:
        return (operation, target) in self._in_flight

    def _ask(self, message: str) -> None:
        if not self.confirm(message):
            raise ActionCancelled("Cancelled.")

    def _find(self, grievance_id: int) -> Optional[Grievance]:
        for store in self.stores:
            g = store.get(grievance_id)
            if g is not None:
                return g
        return None

    async def _refresh(self) -> None:
        for store in self.stores:
            await store.reload()

    # -----------------------------------------------------------------------
    # Admin
    # -----------------------------------------------------------------------
    async def verify(self, grievance_id: int, approved: bool, reason: Optional[str] = None) -> Grievance:
        reason = (reason or "").strip()
        if approved:
            reason = reason or DEFAULT_APPROVAL_REASON
            self._ask(f"Are you sure you want to APPROVE Report #{grievance_id}?")
        else:
            if not reason:
                raise ValidationFailed("Please provide a reason for rejection.")
            self._ask(f"Are you sure you want to REJECT Report #{grievance_id}? This action cannot be undone.")

        with self._guard("verify", grievance_id):
            updated = await self.client.verify_grievance(grievance_id, VerifyRequest(approved=approved, reason=reason))
            logger.info("Grievance %s %s", grievance_id, "approved" if approved else "rejected")
            await self._refresh()
        return updated

    async def assign(self, grievance_id: int, officer_id: Optional[int]) -> Grievance:
        if officer_id is None:
            raise ValidationFailed("Please select an officer.")
        grievance = self._find(grievance_id)
        if grievance is None:
            raise ValidationFailed(f"Report #{grievance_id} not found.")
        if not grievance.is_approved:
            raise ValidationFailed("Cannot assign unverified grievance. Please verify it first.")

        with self._guard("assign", grievance_id):
            updated = await self.client.assign_grievance(grievance_id, officer_id)
            logger.info("Grievance %s assigned to officer %s", grievance_id, officer_id)
            await self._refresh()
        return updated

    async def delete_grievance(self, grievance_id: int) -> None:
        self._ask(f"Are you sure you want to delete Report #{grievance_id}?")
        with self._guard("delete", grievance_id):
            await self.client.delete_grievance(grievance_id)
            logger.info("Grievance %s deleted", grievance_id)
            await self._refresh()

    # -----------------------------------------------------------------------
    # Officer
    # -----------------------------------------------------------------------
    async def update_status(self, grievance_id: int, new_status: str, notes: str,
                            updated_by: Optional[int] = None) -> Grievance:
        status = (new_status or "").strip().upper().replace("-", "_")
        if status not in GrievanceStatus.__members__:
            raise ValidationFailed(f"Unknown status: {new_status}")
        notes = (notes or "").strip()
        if not notes:
            raise ValidationFailed("Please add notes describing the update.")
        self._ask(f"Are you sure you want to update status to {status_label(status)}?")

        with self._guard("status", grievance_id):
            updated = await self.client.update_status(
                grievance_id, StatusUpdateRequest(status=status, notes=notes, updated_by=updated_by))
            logger.info("Grievance %s status -> %s", grievance_id, status)
            await self._refresh()
        return updated

    # -----------------------------------------------------------------------
    # Citizen
    # -----------------------------------------------------------------------
    async def submit_feedback(self, grievance_id: int, user_id: int, rating: Optional[int],
                              comment: Optional[str] = None) -> Feedback:
        if not rating or not 1 <= rating <= 5:
            raise ValidationFailed("Please select a rating between 1 and 5.")

        with self._guard("feedback", grievance_id):
            grievance = await self.client.get_grievance(grievance_id)
            if grievance.status != GrievanceStatus.RESOLVED.value:
                raise RedirectRequired(
                    "citizen", "Feedback can only be submitted for resolved complaints.")
            if await self.client.feedback_for(grievance_id) is not None:
                raise ValidationFailed("Feedback has already been submitted for this complaint.")
            feedback = await self.client.submit_feedback(FeedbackRequest(
                grievance_id=grievance_id, user_id=user_id, rating=rating,
                comment=(comment or "").strip() or None))
            logger.info("Feedback (%d stars) submitted for grievance %s", rating, grievance_id)
            await self._refresh()
        return feedback

    async def reopen(self, grievance_id: int, user_id: int, reason: Optional[str],
                     rating: Optional[int] = None) -> Dict:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationFailed("Please provide a reason to reopen the complaint.")
        if rating is not None and rating >= HIGH_RATING_REOPEN_WARNING:
            self._ask("You selected a high rating. Are you sure you want to reopen this complaint?")

        with self._guard("reopen", grievance_id):
            result = await self.client.reopen(grievance_id, user_id, reason)
            logger.info("Grievance %s reopened by user %s", grievance_id, user_id)
            await self._refresh()
        return result

    async def submit_grievance(self, citizen_id: int, title: str, category: str, location: str,
                               image: Optional[Path], description: str = "",
                               latitude: Optional[float] = None, longitude: Optional[float] = None,
                               now: Optional[datetime] = None) -> Grievance:
        title, location = (title or "").strip(), (location or "").strip()
        if not title or not category or not location:
            raise ValidationFailed("Please fill all required fields (title, category, location).")
        upload = _read_image(image)

        existing: List[Grievance] = [g for store in self.stores for g in store.snapshot()]
        if is_duplicate(existing, title, location, now=now):
            self._ask("A similar complaint was submitted recently. Do you still want to submit?")

        fields = {
            "title": title,
            "category": category,
            "location": location,
            "description": (description or "").strip(),
            "citizenId": citizen_id,
            "status": GrievanceStatus.PENDING.value,
        }
        if latitude is not None and longitude is not None:
            fields["latitude"] = latitude
            fields["longitude"] = longitude

        with self._guard("submit", citizen_id):
            created = await self.client.create_grievance(fields, upload)
            logger.info("Grievance %s submitted by citizen %s", created.id, citizen_id)
            await self._refresh()
        return created

    async def update_profile(self, user_id: int, name: str, email: str, phone: Optional[str] = None) -> User:
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email:
            raise ValidationFailed("Name and email are required.")
        if not _EMAIL_RE.match(email):
            raise ValidationFailed("Please enter a valid email address.")
        with self._guard("profile", user_id):
            updated = await self.client.update_user(
                user_id, ProfileUpdate(name=name, email=email, phone=(phone or "").strip() or None))
            logger.info("Profile updated for user %s", user_id)
            if self.directory is not None:
                await self.directory.reload()
        return updated


def _read_image(path: Optional[Path]):
    if path is None:
        raise ValidationFailed("Please upload a photo of the issue.")
    path = Path(path)
    content_type = ALLOWED_IMAGE_TYPES.get(path.suffix.lower())
    if content_type is None:
        raise ValidationFailed("Only JPG/PNG images are allowed.")
    if not path.is_file():
        raise ValidationFailed(f"Image not found: {path}")
    if path.stat().st_size > MAX_IMAGE_BYTES:
        raise ValidationFailed("Image must be under 5MB.")
    return path.name, path.read_bytes(), content_type
