# In-memory snapshots of backend collections
#
# A store only changes by replacing its whole tuple after a successful fetch,
# so readers always see one consistent snapshot.

import logging
from typing import Optional, Tuple

from .client import ApiClient
from .models import Grievance, User

logger = logging.getLogger(__name__)


class GrievanceStore:
    """Grievances visible to one view.

    ``scope`` picks the endpoint: ``all`` (admin / officer overview),
    ``citizen`` (the owner's own reports) or ``assigned`` (an officer's queue).
    """

    SCOPES = ("all", "citizen", "assigned")

    def __init__(self, client: ApiClient, scope: str = "all", owner_id: Optional[int] = None):
        if scope not in self.SCOPES:
            raise ValueError(f"Unknown grievance scope: {scope}")
        if scope != "all" and owner_id is None:
            raise ValueError(f"Scope '{scope}' needs an owner id")
        self.client = client
        self.scope = scope
        self.owner_id = owner_id
        self._items: Tuple[Grievance, ...] = ()
        self.loaded = False

    async def reload(self) -> Tuple[Grievance, ...]:
        if self.scope == "citizen":
            items = await self.client.citizen_grievances(self.owner_id)
        elif self.scope == "assigned":
            items = await self.client.assigned_grievances(self.owner_id)
        else:
            items = await self.client.list_grievances()
        self._items = tuple(items)
        self.loaded = True
        logger.debug("Loaded %d grievances (%s)", len(self._items), self.scope)
        return self._items

    def snapshot(self) -> Tuple[Grievance, ...]:
        return self._items

    def get(self, grievance_id: int) -> Optional[Grievance]:
        for g in self._items:
            if g.id == grievance_id:
                return g
        return None


class DirectoryStore:
    """All user accounts; officers and citizens are role-filtered views of it."""

    def __init__(self, client: ApiClient):
        self.client = client
        self._users: Tuple[User, ...] = ()

    async def reload(self) -> Tuple[User, ...]:
        self._users = tuple(await self.client.list_users())
        logger.debug("Loaded %d users", len(self._users))
        return self._users

    def users(self) -> Tuple[User, ...]:
        return self._users

    def officers(self) -> Tuple[User, ...]:
        return tuple(u for u in self._users if u.is_officer)

    def citizens(self) -> Tuple[User, ...]:
        return tuple(u for u in self._users if u.is_citizen)

    def get(self, user_id: int) -> Optional[User]:
        for u in self._users:
            if u.id == user_id:
                return u
        return None
