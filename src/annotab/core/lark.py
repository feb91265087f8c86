"""Record store backed by the Lark / Feishu Bitable records API."""

import asyncio
import time
from typing import Any

import httpx
import structlog

from annotab.config import Config
from annotab.core.filter import build_filter_formula
from annotab.core.store import FilterCondition, Record, RecordStore
from annotab.errors import NotFoundError, UpstreamError

logger = structlog.get_logger(__name__)

RECORD_NOT_FOUND_CODE = 1254043  # RecordIdNotFound
TOKEN_REFRESH_MARGIN = 60.0  # seconds before expiry at which the cached token is replaced


class LarkRecordStore(RecordStore):
    """Bitable tables of one base, authenticated with a tenant access token."""

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.lark_api_base.rstrip("/"),
                timeout=self._config.request_timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_tenant_token(self) -> str:
        """Return a valid tenant access token, fetching a new one when needed."""
        async with self._token_lock:
            if self._token is not None and time.monotonic() < self._token_expires_at:
                return self._token

            try:
                response = await self.client.post(
                    "/auth/v3/tenant_access_token/internal",
                    json={"app_id": self._config.lark_app_id, "app_secret": self._config.lark_app_secret},
                )
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("lark_auth_failed", error=str(e))
                raise UpstreamError(f"Auth Failed: {e}") from e

            if data.get("code") != 0 or not data.get("tenant_access_token"):
                logger.warning("lark_auth_failed", code=data.get("code"), msg=data.get("msg"))
                raise UpstreamError(f"Auth Failed: {data.get('msg') or f'HTTP {response.status_code}'}")

            expire = float(data.get("expire") or 0)
            self._token = str(data["tenant_access_token"])
            self._token_expires_at = time.monotonic() + max(expire - TOKEN_REFRESH_MARGIN, 0.0)
            logger.debug("lark_token_refreshed", expire=expire)
            return self._token

    async def search(self, table: str, conditions: list[FilterCondition] | None = None) -> list[Record]:
        params: dict[str, Any] = {"page_size": self._config.search_page_size}
        formula = build_filter_formula(conditions)
        if formula is not None:
            params["filter"] = formula

        records: list[Record] = []
        for _ in range(max(self._config.search_max_pages, 1)):
            data = await self._request("GET", self._records_path(table), "Search Records", params=params)
            records.extend(_to_record(item) for item in data.get("items") or [])
            page_token = data.get("page_token")
            if not data.get("has_more") or not page_token:
                return records
            params["page_token"] = page_token

        logger.warning("search_truncated", table=table, fetched=len(records), filter=formula)
        return records

    async def create(self, table: str, fields: dict[str, Any]) -> Record:
        data = await self._request("POST", self._records_path(table), "Create Record", json={"fields": fields})
        return _to_record(data["record"])

    async def update(self, table: str, record_id: str, fields: dict[str, Any]) -> Record:
        path = f"{self._records_path(table)}/{record_id}"
        data = await self._request("PUT", path, "Update Record", json={"fields": fields})
        return _to_record(data["record"])

    async def delete(self, table: str, record_id: str) -> None:
        await self._request("DELETE", f"{self._records_path(table)}/{record_id}", "Delete Record")

    def _records_path(self, table: str) -> str:
        return f"/bitable/v1/apps/{self._config.lark_base_token}/tables/{table}/records"

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Perform an authenticated call and unwrap the ``data`` envelope."""
        token = await self.get_tenant_token()
        try:
            response = await self.client.request(
                method, path, params=params, json=json, headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.HTTPError as e:
            logger.warning("lark_request_failed", operation=operation, error=str(e))
            raise UpstreamError(f"{operation} Failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        code = body.get("code")
        if response.is_success and code == 0:
            return body.get("data") or {}

        msg = body.get("msg") or f"HTTP {response.status_code}"
        logger.warning("lark_request_failed", operation=operation, status=response.status_code, code=code, msg=msg)
        if code == RECORD_NOT_FOUND_CODE:
            raise NotFoundError(f"{operation} Failed: record not found")
        raise UpstreamError(f"{operation} Failed: {msg}")


def _to_record(item: dict[str, Any]) -> Record:
    return Record(record_id=item.get("record_id") or item.get("id") or "", fields=item.get("fields") or {})
