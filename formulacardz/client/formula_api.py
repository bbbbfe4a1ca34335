"""
Formula Cardz REST API client.

Thin async wrapper over the remote catalog/ownership service. Every transport
failure, non-2xx status, or malformed payload is raised as a NetworkError
whose message is the server's response text, so callers can display it
verbatim. Nothing here retries.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import pydantic

from formulacardz.client.schemas import (
    AddCardToCollectionRequest,
    ApiModel,
    AuthRequest,
    AuthResponse,
    CardCollectionResponse,
    CardDropResponse,
    CardResponse,
    Dropdown,
    ForgotPasswordRequest,
    NewUserRequest,
    RemoveCardFromCollectionRequest,
    UpdateCardInCollectionRequest,
    UpdatedUserResponse,
    UpdateUserRequest,
)
from formulacardz.models.failure import NetworkError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=ApiModel)

TokenProvider = Callable[[], str | None]


class FormulaCardzClient:
    """
    Async client for the Formula Cardz service.

    The bearer token is read from `token_provider` on every request, so the
    client never holds a stale token after login or logout.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider or (lambda: None)
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "FormulaCardzClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # --- transport ---

    def _auth_headers(self) -> dict[str, str]:
        token = self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        endpoint: str,
        body: ApiModel | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (None when empty).

        Raises:
            NetworkError: On transport failure, non-2xx status or invalid JSON
        """
        try:
            response = await self._http.request(
                method,
                endpoint,
                json=body.to_body() if body is not None else None,
                params=params,
                headers=self._auth_headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, endpoint)
            raise NetworkError("The request timed out.", detail=type(e).__name__) from e
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            raise NetworkError(str(e) or "Network request failed.", detail=type(e).__name__) from e

        if response.is_error:
            text = response.text
            logger.warning("%s %s returned HTTP %d", method, endpoint, response.status_code)
            raise NetworkError(
                text or f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(
                "The server sent an unreadable response.",
                status_code=response.status_code,
                detail=f"{method} {endpoint}",
            ) from e

    @staticmethod
    def _parse(model: type[M], payload: Any) -> M:
        try:
            return model.model_validate(payload)
        except pydantic.ValidationError as e:
            raise NetworkError(
                "The server sent an unexpected response.",
                detail=f"{model.__name__}: {e.error_count()} invalid field(s)",
            ) from e

    @classmethod
    def _parse_list(cls, model: type[M], payload: Any) -> list[M]:
        if not isinstance(payload, list):
            raise NetworkError(
                "The server sent an unexpected response.",
                detail=f"expected a list of {model.__name__}",
            )
        return [cls._parse(model, item) for item in payload]

    # --- authentication ---

    async def login(self, credentials: AuthRequest) -> AuthResponse:
        payload = await self._request("POST", "/v1/auth/login", credentials)
        return self._parse(AuthResponse, payload)

    async def register(self, user: NewUserRequest) -> AuthResponse:
        payload = await self._request("POST", "/v1/auth/register", user)
        return self._parse(AuthResponse, payload)

    async def forgot_password(self, request: ForgotPasswordRequest) -> None:
        await self._request("POST", "/v1/auth/forgot-password", request)

    async def update_user(self, user_id: str, update: UpdateUserRequest) -> UpdatedUserResponse:
        payload = await self._request("PUT", f"/v1/user/{user_id}", update)
        return self._parse(UpdatedUserResponse, payload)

    # --- collection management ---

    async def get_collection(self, user_id: str) -> list[CardCollectionResponse]:
        payload = await self._request("GET", f"/v1/ownership/{user_id}")
        return self._parse_list(CardCollectionResponse, payload or [])

    async def add_card_to_collection(self, request: AddCardToCollectionRequest) -> None:
        await self._request("POST", "/v1/ownership", request)

    async def update_card_in_collection(self, request: UpdateCardInCollectionRequest) -> None:
        await self._request("PUT", "/v1/ownership", request)

    async def remove_card_from_collection(self, request: RemoveCardFromCollectionRequest) -> None:
        await self._request("DELETE", "/v1/ownership", request)

    # --- catalog ---

    async def get_cards_by_set(self, set_name: str) -> list[CardResponse]:
        payload = await self._request("GET", "/v1/cards", params={"setName": set_name})
        return self._parse_list(CardResponse, payload or [])

    async def get_card_sets(self) -> list[Dropdown]:
        payload = await self._request("GET", "/v1/dropdown/sets")
        return self._parse_list(Dropdown, payload or [])

    async def get_one_of_one_cards(self, set_name: str | None = None) -> list[CardResponse]:
        params = {"setName": set_name} if set_name else None
        payload = await self._request("GET", "/v1/oneofones", params=params)
        return self._parse_list(CardResponse, payload or [])

    async def get_upcoming_drops(self) -> list[CardDropResponse]:
        payload = await self._request("GET", "/v1/drops")
        return self._parse_list(CardDropResponse, payload or [])
