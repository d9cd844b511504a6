# Async REST client for the grievance backend
#
# Thin wrapper over httpx.AsyncClient: one method per endpoint, every payload
# parsed into a model from models.py, every failure translated into an
# exception from errors.py.

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import API_URL, REQUEST_TIMEOUT
from .errors import ApiError, NetworkError, NotFound, RequestTimedOut, SessionExpired
from .models import (
    DashboardStats, Feedback, FeedbackRequest, Grievance, LoginResult, ProfileUpdate,
    RegisterRequest, StatusUpdateRequest, User, VerifyRequest,
)

logger = logging.getLogger(__name__)

ImageUpload = Tuple[str, bytes, str]  # (filename, content, content_type)

UNEXPECTED_RESPONSE = "Unexpected response from server"


def _error_detail(resp: httpx.Response) -> Optional[str]:
    """Best-effort message from an error body (JSON object, JSON string or text)."""
    try:
        body = resp.json()
    except ValueError:
        text = resp.text.strip()
        return text[:500] or None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
        return None
    if isinstance(body, str):
        return body or None
    return None


def _parse(model: Type[BaseModel], data: Any, status_code: int = 200, many: bool = False) -> Any:
    """Validate a success body; a body of the wrong shape becomes an ApiError."""
    try:
        if many:
            return TypeAdapter(List[model]).validate_python(data if data is not None else [])
        return model.model_validate(data if data is not None else {})
    except ValidationError as e:
        logger.warning("Unexpected %s payload: %s", model.__name__, e)
        raise ApiError(status_code, UNEXPECTED_RESPONSE) from e


class ApiClient:
    """Async context manager; the underlying connection pool is closed on exit.

    ``on_unauthorized`` is called before ``SessionExpired`` is raised so the
    caller can clear its stored session.
    """

    def __init__(self, base_url: str = API_URL, token: Optional[str] = None,
                 timeout: float = REQUEST_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None,
                 on_unauthorized: Optional[Callable[[], None]] = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.on_unauthorized = on_unauthorized
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport,
            headers={"Accept": "application/json"})

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(self, method: str, path: str, model: Optional[Type[BaseModel]] = None,
                       many: bool = False, **kwargs) -> Any:
        logger.debug("%s %s", method, path)
        try:
            resp = await self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out: %s", method, path, e)
            raise RequestTimedOut(f"Request timed out after {self.timeout:g}s") from e
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(f"Cannot reach server at {self.base_url}") from e

        if resp.status_code == 401:
            logger.warning("%s %s rejected: session expired", method, path)
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise SessionExpired()
        if resp.status_code == 404:
            raise NotFound(_error_detail(resp))
        if resp.status_code >= 400:
            detail = _error_detail(resp)
            logger.warning("%s %s failed %d: %s", method, path, resp.status_code, detail)
            raise ApiError(resp.status_code, detail)

        body = None
        if resp.content:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
        if model is None:
            return body
        return _parse(model, body, resp.status_code, many)

    def image_url(self, image_path: Optional[str]) -> Optional[str]:
        if not image_path:
            return None
        return f"{self.base_url}/grievances/image/{image_path}"

    # -----------------------------------------------------------------------
    # Auth
    # -----------------------------------------------------------------------
    async def login(self, email: str, password: str) -> LoginResult:
        return await self._request("POST", "/auth/login", model=LoginResult,
                                   json={"email": email, "password": password})

    async def register(self, request: RegisterRequest) -> str:
        data = await self._request("POST", "/auth/register", json=request.model_dump(mode="json"))
        if isinstance(data, dict):
            return data.get("message") or ""
        return data or ""

    # -----------------------------------------------------------------------
    # Grievances
    # -----------------------------------------------------------------------
    async def list_grievances(self) -> List[Grievance]:
        return await self._request("GET", "/grievances", model=Grievance, many=True)

    async def get_grievance(self, grievance_id: int) -> Grievance:
        return await self._request("GET", f"/grievances/{grievance_id}", model=Grievance)

    async def citizen_grievances(self, user_id: int) -> List[Grievance]:
        return await self._request("GET", f"/grievances/citizen/{user_id}", model=Grievance, many=True)

    async def assigned_grievances(self, officer_id: int) -> List[Grievance]:
        return await self._request("GET", f"/grievances/assigned/{officer_id}", model=Grievance, many=True)

    async def create_grievance(self, fields: Dict[str, Any], image: Optional[ImageUpload] = None) -> Grievance:
        form = {k: str(v) for k, v in fields.items() if v is not None}
        files = {"image": image} if image is not None else None
        return await self._request("POST", "/grievances", model=Grievance, data=form, files=files)

    async def verify_grievance(self, grievance_id: int, request: VerifyRequest) -> Grievance:
        return await self._request("PATCH", f"/grievances/{grievance_id}/verify", model=Grievance,
                                   json=request.model_dump(by_alias=True))

    async def assign_grievance(self, grievance_id: int, officer_id: int) -> Grievance:
        return await self._request("PATCH", f"/grievances/{grievance_id}/assign", model=Grievance,
                                   params={"officerId": officer_id})

    async def update_status(self, grievance_id: int, request: StatusUpdateRequest) -> Grievance:
        return await self._request("PUT", f"/grievances/{grievance_id}/status", model=Grievance,
                                   json=request.model_dump(by_alias=True))

    async def delete_grievance(self, grievance_id: int) -> None:
        await self._request("DELETE", f"/grievances/{grievance_id}")

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------
    async def list_users(self) -> List[User]:
        return await self._request("GET", "/users", model=User, many=True)

    async def update_user(self, user_id: int, update: ProfileUpdate) -> User:
        return await self._request("PUT", f"/users/{user_id}", model=User,
                                   json=update.model_dump(by_alias=True))

    # -----------------------------------------------------------------------
    # Feedback
    # -----------------------------------------------------------------------
    async def submit_feedback(self, request: FeedbackRequest) -> Feedback:
        return await self._request("POST", "/feedback", model=Feedback,
                                   json=request.model_dump(by_alias=True))

    async def feedback_for(self, grievance_id: int) -> Optional[Feedback]:
        """Existing feedback for a grievance, or ``None`` when none was submitted yet."""
        try:
            data = await self._request("GET", f"/feedback/grievance/{grievance_id}")
        except NotFound:
            return None
        if not data:
            return None
        return _parse(Feedback, data)

    async def reopen(self, grievance_id: int, user_id: int, reason: str) -> Dict[str, Any]:
        data = await self._request("POST", f"/feedback/reopen/{grievance_id}",
                                   params={"userId": user_id, "reason": reason})
        return data if isinstance(data, dict) else {"message": data}

    # -----------------------------------------------------------------------
    # Analytics
    # -----------------------------------------------------------------------
    async def analytics_dashboard(self) -> DashboardStats:
        return await self._request("GET", "/analytics/dashboard", model=DashboardStats)
