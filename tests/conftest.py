"""Shared pytest fixtures and helpers for offline tests.

FakeNotion stands in for the loadPageChunk endpoint behind an
httpx.MockTransport, so RecordClient runs its real request/retry code.
"""

import json
import logging

import httpx
import pytest

from notion_blocks import NotionSession, RecordClient

logger = logging.getLogger(__name__)

BASE_URL = "https://notion.test/api/v3"

PAGE_ID = "1429989f-e8ac-4eff-bc3e-7404be81a66e"
CHILD_IDS = [
    "aaaaaaaa-0000-4000-8000-000000000001",
    "aaaaaaaa-0000-4000-8000-000000000002",
    "aaaaaaaa-0000-4000-8000-000000000003",
]


def make_block(block_id: str, block_type: str, title=None, parent_id=None, content=None, **extra) -> dict:
    """Build a block record the way loadPageChunk returns it."""
    value = {"id": block_id, "type": block_type, **extra}
    if title is not None:
        value["properties"] = {"title": [[title]]}
    if parent_id is not None:
        value["parent_id"] = parent_id
    if content is not None:
        value["content"] = content
    return {"role": "reader", "value": value}


def make_snapshot(*blocks: dict, collections: dict | None = None) -> dict:
    """Build a recordMap from block records."""
    record_map = {"block": {b["value"]["id"]: b for b in blocks}}
    if collections:
        record_map["collection"] = collections
    return record_map


class FakeNotion:
    """Scripted loadPageChunk endpoint.

    Each block ID maps to a list of recordMaps served in order; the last
    one repeats once the list is used up. Unknown IDs get an empty recordMap.
    """

    def __init__(self):
        self.responses: dict[str, list] = {}
        self.requests: list[httpx.Request] = []
        self.headers: dict[str, str] = {}

    def serve(self, block_id: str, *record_maps) -> None:
        self.responses[block_id] = list(record_maps)

    def calls_for(self, block_id: str) -> int:
        return sum(1 for r in self.requests if json.loads(r.content)["pageId"] == block_id)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page_id = json.loads(request.content)["pageId"]
        queue = self.responses.get(page_id) or [{}]
        record_map = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(record_map, httpx.Response):
            return record_map
        return httpx.Response(200, json={"recordMap": record_map}, headers=self.headers)


@pytest.fixture
def fake_notion():
    return FakeNotion()


@pytest.fixture
def session():
    return NotionSession(token_v2="test-token", active_user_header="user-123")


@pytest.fixture
def client(fake_notion, session):
    """RecordClient wired to FakeNotion, without rate limiting."""
    http = httpx.Client(transport=httpx.MockTransport(fake_notion.handler))
    with RecordClient(session, base_url=BASE_URL, http=http, min_request_interval=0) as record_client:
        yield record_client
