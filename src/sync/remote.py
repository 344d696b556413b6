"""Remote row store contract and a PostgREST (Supabase) implementation over httpx."""

from typing import Any, Callable, Optional, Protocol

import httpx
import structlog

logger = structlog.get_logger().bind(source="remote_store")

# PostgREST code for "JSON object requested, multiple (or no) rows returned"
NOT_FOUND_CODE = "PGRST116"

# Filter value: plain value means equality; (op, value) for eq/neq/gt/gte/lt/lte
Filters = dict[str, Any]


class RemoteError(Exception):
    """Structured failure from the remote store."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class RemoteNotFoundError(RemoteError):
    """A single-row select matched nothing."""


class RemoteStore(Protocol):
    """Row store scoped per authenticated identity by row-level access control."""

    async def select(self, table: str, filters: Filters, columns: str = "*") -> list[dict]: ...

    async def select_one(self, table: str, filters: Filters, columns: str = "*") -> dict: ...

    async def insert(self, table: str, row: dict) -> None: ...

    async def update(self, table: str, values: dict, filters: Filters) -> None: ...

    async def delete(self, table: str, filters: Filters) -> None: ...

    async def upsert(self, table: str, row: dict, on_conflict: str) -> None: ...


_OPERATORS = {"eq", "neq", "gt", "gte", "lt", "lte"}


def encode_filters(filters: Filters) -> dict[str, str]:
    """Translate filters into PostgREST query params (``col=op.value``)."""
    params = {}
    for column, value in filters.items():
        if isinstance(value, tuple):
            op, operand = value
            if op not in _OPERATORS:
                raise ValueError(f"Unsupported filter operator: {op}")
        else:
            op, operand = "eq", value
        if isinstance(operand, bool):
            operand = str(operand).lower()
        params[column] = f"{op}.{operand}"
    return params


class PostgrestRemoteStore:
    """Talks to ``{url}/rest/v1`` with the anon key plus the user's access token."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.anon_key = anon_key
        self.token_provider = token_provider
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    def _headers(self, extra: Optional[dict] = None) -> dict:
        token = (self.token_provider() if self.token_provider else None) or self.anon_key
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict] = None,
        json: Any = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}/{table}"
        try:
            response = await self.client.request(
                method, url, params=params, json=json, headers=self._headers(headers)
            )
        except httpx.TimeoutException as e:
            raise RemoteError(f"Timed out talking to remote store: {e}", code="timeout")
        except httpx.RequestError as e:
            raise RemoteError(f"Network error talking to remote store: {e}", code="network")

        if response.status_code >= 400:
            raise self._error_from(response)
        return response

    @staticmethod
    def _error_from(response: httpx.Response) -> RemoteError:
        code = None
        message = f"HTTP {response.status_code}"
        try:
            body = response.json()
            code = body.get("code")
            message = body.get("message") or message
        except ValueError:
            if response.text:
                message = response.text[:200]
        if code == NOT_FOUND_CODE:
            return RemoteNotFoundError(message, code=code, status=response.status_code)
        return RemoteError(message, code=code, status=response.status_code)

    async def select(self, table: str, filters: Filters, columns: str = "*") -> list[dict]:
        params = {"select": columns, **encode_filters(filters)}
        response = await self._request("GET", table, params=params)
        return response.json() or []

    async def select_one(self, table: str, filters: Filters, columns: str = "*") -> dict:
        params = {"select": columns, **encode_filters(filters)}
        response = await self._request(
            "GET", table, params=params, headers={"Accept": "application/vnd.pgrst.object+json"}
        )
        return response.json()

    async def insert(self, table: str, row: dict) -> None:
        await self._request("POST", table, json=row, headers={"Prefer": "return=minimal"})

    async def update(self, table: str, values: dict, filters: Filters) -> None:
        if not filters:
            raise ValueError("update requires at least one filter")
        await self._request(
            "PATCH",
            table,
            params=encode_filters(filters),
            json=values,
            headers={"Prefer": "return=minimal"},
        )

    async def delete(self, table: str, filters: Filters) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        await self._request("DELETE", table, params=encode_filters(filters))

    async def upsert(self, table: str, row: dict, on_conflict: str) -> None:
        await self._request(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
