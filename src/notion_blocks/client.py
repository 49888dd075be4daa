"""Notion Blocks Client - Rate-limited wrapper around the Notion v3 record API."""

import logging
import threading
import time
from typing import Any

import httpx

from notion_blocks.models import NotionSession, Pagination, RecordSnapshot
from notion_blocks.utils import get_base_url, get_notion_session, normalize_id

logger = logging.getLogger(__name__)

# Rate limiting: max 3 requests/second
MIN_REQUEST_INTERVAL = 0.35

# Attempt ceilings for transient-empty snapshots: page and tree lookups use
# PAGE_MAX_ATTEMPTS, single-block lookups BLOCK_MAX_ATTEMPTS.
PAGE_MAX_ATTEMPTS = 10
BLOCK_MAX_ATTEMPTS = 20

# Upper bound for the optional backoff between attempts
MAX_RETRY_DELAY = 8.0

# Retryable errors: 429 (rate limit), 502/503/504 (server errors)
RETRYABLE_STATUSES = {429, 502, 503, 504}

USER_ID_HEADER = "x-notion-user-id"


class RecordClient:
    """Client for the loadPageChunk endpoint with bounded retry.

    Notion sometimes answers a valid request with an empty or partial
    recordMap. fetch_snapshot() retries those responses up to a fixed number
    of attempts and then gives up with an empty snapshot instead of raising.

    Attributes:
        session: Credentials sent with every request.
        http: The underlying httpx.Client.
        request_count: Total number of API requests made.
    """

    def __init__(
        self,
        session: NotionSession,
        base_url: str | None = None,
        http: httpx.Client | None = None,
        min_request_interval: float = MIN_REQUEST_INTERVAL,
        retry_delay: float = 0.0,
        timeout: float = 30.0,
    ):
        """Initialize the client.

        Args:
            session: Credentials for the notion.so session.
            base_url: v3 API base URL. Defaults to NOTION_API_BASE_URL or
                https://www.notion.so/api/v3.
            http: Optional preconfigured httpx.Client (used as-is).
            min_request_interval: Minimum seconds between two requests.
            retry_delay: Base delay in seconds between retry attempts,
                doubled per attempt up to MAX_RETRY_DELAY. 0 retries at once.
            timeout: Request timeout in seconds when creating the httpx.Client.
        """
        self.session = session
        self.base_url = (base_url or get_base_url()).rstrip("/")
        self.http = http or httpx.Client(timeout=timeout)
        self.min_request_interval = min_request_interval
        self.retry_delay = retry_delay
        self.request_count: int = 0
        self._last_request_time: float = 0
        self._rate_lock = threading.Lock()

    def __enter__(self) -> "RecordClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self.http.close()

    def _wait_for_rate_limit(self) -> None:
        """Wait if needed to respect rate limit."""
        with self._rate_lock:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.min_request_interval:
                time.sleep(self.min_request_interval - elapsed)
            self._last_request_time = time.monotonic()
            self.request_count += 1

    def _cookies(self) -> dict[str, str]:
        cookies = {"token_v2": self.session.token_v2}
        if self.session.active_user_header:
            cookies["x-active-user-header"] = self.session.active_user_header
        return cookies

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session.active_user_header:
            headers["x-notion-active-user-header"] = self.session.active_user_header
        return headers

    def _post(self, endpoint: str, body: dict[str, Any]) -> httpx.Response:
        """Send one POST request and raise on HTTP error statuses."""
        self._wait_for_rate_limit()
        url = f"{self.base_url}/{endpoint}"
        logger.debug(f"POST {url} {body}")
        # Cookies are set per request so a shared httpx.Client never holds them
        request = self.http.build_request(
            "POST",
            url,
            json=body,
            headers=self._headers(),
            cookies=self._cookies(),
        )
        response = self.http.send(request)
        response.raise_for_status()
        return response

    def load_page_chunk(
        self,
        block_id: str,
        pagination: Pagination | None = None,
    ) -> RecordSnapshot:
        """Fetch the recordMap for a block with a single request.

        Args:
            block_id: Canonical block ID.
            pagination: Paging options, defaults to the first chunk of 100.

        Returns:
            The decoded recordMap, or {} if the response has none.

        Raises:
            httpx.HTTPError: On transport errors or HTTP error statuses.
            ValueError: If the body is not valid UTF-8 JSON.
        """
        body = (pagination or Pagination()).to_body(block_id)
        response = self._post("loadPageChunk", body)
        payload = response.json()
        if not isinstance(payload, dict):
            return {}
        record_map = payload.get("recordMap")
        return record_map if isinstance(record_map, dict) else {}

    def _is_transient_error(self, e: Exception) -> bool:
        if isinstance(e, httpx.HTTPStatusError):
            return e.response.status_code in RETRYABLE_STATUSES
        # ValueError covers JSONDecodeError and UnicodeDecodeError from response.json()
        return isinstance(e, (httpx.TransportError, ValueError))

    def _is_complete(self, block_id: str, snapshot: RecordSnapshot, require_blocks: bool) -> bool:
        """Check whether a snapshot is usable or should be retried."""
        if not snapshot:
            return False
        if not require_blocks:
            return True
        blocks = snapshot.get("block")
        # A partial recordMap may hold other blocks but not the requested one
        return isinstance(blocks, dict) and block_id in blocks

    def _backoff(
        self,
        attempt: int,
        cancel: threading.Event | None,
        deadline: float | None,
    ) -> None:
        if self.retry_delay <= 0:
            return
        wait_time = min(self.retry_delay * 2 ** attempt, MAX_RETRY_DELAY)
        if deadline is not None:
            wait_time = min(wait_time, max(0.0, deadline - time.monotonic()))
        if cancel is not None:
            cancel.wait(wait_time)
        else:
            time.sleep(wait_time)

    def fetch_snapshot(
        self,
        block_id: str,
        pagination: Pagination | None = None,
        *,
        max_attempts: int = PAGE_MAX_ATTEMPTS,
        require_blocks: bool = True,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
    ) -> RecordSnapshot:
        """Fetch a block's snapshot, retrying transient empty responses.

        A response is transient-empty when its recordMap is empty or, with
        require_blocks, when its "block" map lacks block_id. Transport
        errors, retryable HTTP statuses and undecodable bodies count as
        transient-empty too. The same request body is sent on every attempt.

        Args:
            block_id: Canonical block ID.
            pagination: Paging options, defaults to the first chunk of 100.
            max_attempts: Number of attempts before giving up.
            require_blocks: Also treat a recordMap without block_id as empty.
            deadline: Optional time.monotonic() value after which no further
                attempt is made. Backoff sleeps never run past it.
            cancel: Optional event; once set, no further attempt is made.

        Returns:
            The recordMap, or {} when every attempt came back empty or the
            loop was cancelled.

        Raises:
            httpx.HTTPStatusError: On non-retryable HTTP errors (e.g. 401).
        """
        pagination = pagination or Pagination()
        for attempt in range(max_attempts):
            if cancel is not None and cancel.is_set():
                logger.info(f"Fetch of {block_id} cancelled after {attempt} attempts")
                return {}
            if deadline is not None and time.monotonic() >= deadline:
                logger.warning(f"Deadline reached fetching {block_id} after {attempt} attempts")
                return {}

            try:
                snapshot = self.load_page_chunk(block_id, pagination)
            except (httpx.HTTPError, ValueError) as e:
                if not self._is_transient_error(e):
                    raise
                logger.warning(
                    f"Request for {block_id} failed: {e} (attempt {attempt + 1}/{max_attempts})"
                )
                snapshot = {}

            if self._is_complete(block_id, snapshot, require_blocks):
                return snapshot

            logger.debug(f"Empty snapshot for {block_id} (attempt {attempt + 1}/{max_attempts})")
            if attempt < max_attempts - 1:
                self._backoff(attempt, cancel, deadline)

        logger.error(f"No record data for {block_id} after {max_attempts} attempts")
        return {}

    def get_user_id(self, url_or_id: str, pagination: Pagination | None = None) -> str | None:
        """Get the ID of the user the session belongs to.

        Notion reports it in the x-notion-user-id header of any record
        response; the block only has to be readable by the session.

        Args:
            url_or_id: URL or ID of any readable block.
            pagination: Paging options, defaults to the first chunk of 100.

        Returns:
            The user ID, or None if the header is missing.

        Raises:
            InvalidIdentifier: If url_or_id is not a URL or block ID.
        """
        body = (pagination or Pagination()).to_body(normalize_id(url_or_id))
        response = self._post("loadPageChunk", body)
        return response.headers.get(USER_ID_HEADER)


def get_notion_client(session: NotionSession | None = None, **kwargs: Any) -> RecordClient:
    """Factory function to create a configured RecordClient.

    Reads NOTION_TOKEN_V2 (and NOTION_ACTIVE_USER_HEADER) from the
    environment when no session is given.

    Args:
        session: Optional explicit credentials.
        **kwargs: Passed through to RecordClient.

    Returns:
        A configured RecordClient instance.

    Raises:
        ValueError: If no session is given and NOTION_TOKEN_V2 is not set.
    """
    if session is None:
        session = get_notion_session()
    return RecordClient(session, **kwargs)
