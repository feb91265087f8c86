"""Tests for LarkRecordStore against a mocked Bitable API."""

import json

import httpx
import pytest

from annotab.core.lark import RECORD_NOT_FOUND_CODE, LarkRecordStore
from annotab.core.store import equals
from annotab.errors import NotFoundError, UpstreamError

pytestmark = pytest.mark.asyncio

RECORDS_PATH = "/open-apis/bitable/v1/apps/bascnTest/tables/tbl_comments/records"


class FakeBitable:
    """Mock transport handler recording requests and replying from a queue."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_calls = 0
        self.responses: list[httpx.Response] = []
        self.auth_payload: dict = {"code": 0, "tenant_access_token": "t-123", "expire": 7200}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/auth/v3/tenant_access_token/internal"):
            self.token_calls += 1
            return httpx.Response(200, json=self.auth_payload)
        self.requests.append(request)
        return self.responses.pop(0)

    def reply(self, data: dict | None = None, code: int = 0, msg: str = "success", status: int = 200) -> None:
        self.responses.append(httpx.Response(status, json={"code": code, "msg": msg, "data": data or {}}))


@pytest.fixture
def bitable():
    return FakeBitable()


@pytest.fixture
def lark_store(config, bitable):
    return LarkRecordStore(config, transport=httpx.MockTransport(bitable))


async def test_search_sends_filter_and_bearer_token(lark_store, bitable):
    bitable.reply({"items": [{"record_id": "rec1", "fields": {"id": "c1", "type": "THREAD"}}], "has_more": False})

    records = await lark_store.search("tbl_comments", equals(projectId="P", pageUrl="https://x/doc"))

    assert [(r.record_id, r.text("id")) for r in records] == [("rec1", "c1")]
    request = bitable.requests[0]
    assert request.method == "GET"
    assert request.url.path == RECORDS_PATH
    assert request.headers["Authorization"] == "Bearer t-123"
    assert request.url.params["page_size"] == "500"
    assert request.url.params["filter"] == 'AND(CurrentValue.[projectId]="P", CurrentValue.[pageUrl]="https://x/doc")'


async def test_search_without_conditions_sends_no_filter(lark_store, bitable):
    bitable.reply({"items": None, "has_more": False})

    assert await lark_store.search("tbl_comments") == []
    assert "filter" not in bitable.requests[0].url.params


async def test_search_fetches_single_page_by_default(lark_store, bitable):
    bitable.reply({"items": [{"record_id": "rec1", "fields": {}}], "has_more": True, "page_token": "next"})

    records = await lark_store.search("tbl_comments")

    assert len(records) == 1
    assert len(bitable.requests) == 1


async def test_search_follows_page_tokens_up_to_limit(config, bitable):
    config.search_max_pages = 2
    store = LarkRecordStore(config, transport=httpx.MockTransport(bitable))
    bitable.reply({"items": [{"record_id": "rec1", "fields": {}}], "has_more": True, "page_token": "p2"})
    bitable.reply({"items": [{"record_id": "rec2", "fields": {}}], "has_more": True, "page_token": "p3"})

    records = await store.search("tbl_comments")

    assert [r.record_id for r in records] == ["rec1", "rec2"]
    assert "page_token" not in bitable.requests[0].url.params
    assert bitable.requests[1].url.params["page_token"] == "p2"


async def test_token_is_cached_between_calls(lark_store, bitable):
    bitable.reply({"items": []})
    bitable.reply({"items": []})

    await lark_store.search("tbl_comments")
    await lark_store.search("tbl_comments")

    assert bitable.token_calls == 1


async def test_expired_token_is_refreshed(lark_store, bitable):
    bitable.auth_payload = {"code": 0, "tenant_access_token": "t-short", "expire": 30}
    bitable.reply({"items": []})
    bitable.reply({"items": []})

    await lark_store.search("tbl_comments")
    await lark_store.search("tbl_comments")

    assert bitable.token_calls == 2


async def test_auth_failure_raises_upstream_error(lark_store, bitable):
    bitable.auth_payload = {"code": 10003, "msg": "invalid param"}

    with pytest.raises(UpstreamError, match="Auth Failed: invalid param"):
        await lark_store.search("tbl_comments")
    assert bitable.requests == []


async def test_create_posts_fields(lark_store, bitable):
    bitable.reply({"record": {"record_id": "rec9", "fields": {"id": "c1"}}})

    record = await lark_store.create("tbl_comments", {"id": "c1", "timestamp": 1})

    assert record.record_id == "rec9"
    request = bitable.requests[0]
    assert request.method == "POST"
    assert json.loads(request.content) == {"fields": {"id": "c1", "timestamp": 1}}


async def test_update_puts_fields_to_record(lark_store, bitable):
    bitable.reply({"record": {"record_id": "rec9", "fields": {"status": "Resolved"}}})

    await lark_store.update("tbl_comments", "rec9", {"status": "Resolved"})

    request = bitable.requests[0]
    assert request.method == "PUT"
    assert request.url.path == f"{RECORDS_PATH}/rec9"
    assert json.loads(request.content) == {"fields": {"status": "Resolved"}}


async def test_delete_record(lark_store, bitable):
    bitable.reply({"deleted": True, "record_id": "rec9"})

    await lark_store.delete("tbl_comments", "rec9")

    assert bitable.requests[0].method == "DELETE"
    assert bitable.requests[0].url.path == f"{RECORDS_PATH}/rec9"


async def test_stale_record_id_raises_not_found(lark_store, bitable):
    bitable.reply(code=RECORD_NOT_FOUND_CODE, msg="RecordIdNotFound", status=400)

    with pytest.raises(NotFoundError):
        await lark_store.delete("tbl_comments", "rec-stale")


async def test_non_zero_code_raises_upstream_error(lark_store, bitable):
    bitable.reply(code=1254045, msg="FieldNameNotFound", status=400)

    with pytest.raises(UpstreamError, match="Search Records Failed: FieldNameNotFound"):
        await lark_store.search("tbl_comments", equals(id="c1"))


async def test_non_json_response_raises_upstream_error(lark_store, bitable):
    bitable.responses.append(httpx.Response(503, text="Service Unavailable"))

    with pytest.raises(UpstreamError, match="Create Record Failed: HTTP 503"):
        await lark_store.create("tbl_comments", {})


async def test_transport_error_raises_upstream_error(config):
    def broken(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store = LarkRecordStore(config, transport=httpx.MockTransport(broken))

    with pytest.raises(UpstreamError, match="Auth Failed"):
        await store.search("tbl_comments")


async def test_aclose_closes_client(lark_store, bitable):
    bitable.reply({"items": []})
    await lark_store.search("tbl_comments")
    client = lark_store.client

    await lark_store.aclose()

    assert client.is_closed
