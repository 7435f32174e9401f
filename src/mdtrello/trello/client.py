"""Async Trello REST client."""

from typing import Any

import httpx
import structlog
from pydantic import BaseModel

log = structlog.get_logger()

TRELLO_API_URL = "https://api.trello.com/1"


class RemoteList(BaseModel):
    """A list on a Trello board."""

    id: str
    name: str


class TrelloAPIError(Exception):
    """Non-2xx response from the Trello API."""

    def __init__(self, status_code: int, reason: str, body: str):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"Trello API {status_code} {reason}: {body}")


class TrelloClient:
    """Minimal Trello client for boards, lists and cards.

    The API key and token are sent as query parameters on every request.
    Use as an async context manager so the connection pool is closed.
    """

    def __init__(
        self,
        api_key: str,
        token: str,
        base_url: str = TRELLO_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            params={"key": api_key, "token": token},
            transport=transport,
        )

    async def __aenter__(self) -> "TrelloClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        response = await self._client.request(method, path, params=params, json=body)

        if not response.is_success:
            log.debug(
                "trello_request_failed",
                method=method,
                path=path,
                status=response.status_code,
            )
            raise TrelloAPIError(
                response.status_code, response.reason_phrase, response.text
            )

        return response.json()

    async def get_open_lists(self, board_id: str) -> list[RemoteList]:
        """Fetch the open lists on a board.

        Args:
            board_id: Trello board ID.

        Returns:
            Lists in board order.
        """
        data = await self._request(
            "GET", f"/boards/{board_id}/lists", params={"filter": "open"}
        )
        return [RemoteList.model_validate(item) for item in data]

    async def create_list(
        self, name: str, board_id: str, pos: str = "top"
    ) -> RemoteList:
        """Create a list on a board.

        Args:
            name: List name.
            board_id: Trello board ID.
            pos: Position on the board ("top", "bottom" or a number).

        Returns:
            The created list.
        """
        data = await self._request(
            "POST", "/lists", body={"name": name, "idBoard": board_id, "pos": pos}
        )
        log.info("list_created", name=name, list_id=data["id"])
        return RemoteList.model_validate(data)

    async def create_card(self, list_id: str, name: str, desc: str) -> dict[str, Any]:
        """Create a card on a list."""
        return await self._request(
            "POST", "/cards", body={"idList": list_id, "name": name, "desc": desc}
        )
