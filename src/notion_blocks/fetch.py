"""Block resolution for Notion pages.

Provides functions to resolve a URL or ID into a typed block, and to walk a
block's children. Every lookup fetches a fresh snapshot; nothing is cached.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from notion_blocks.client import BLOCK_MAX_ATTEMPTS, PAGE_MAX_ATTEMPTS
from notion_blocks.exceptions import NotAPage, Unavailable
from notion_blocks.extract import (
    extract_children_ids,
    extract_collection_id,
    extract_collection_title,
    extract_parent_id,
    extract_properties_and_format,
    extract_title,
    extract_type,
    extract_view_ids,
)
from notion_blocks.models import (
    Block,
    CollectionViewBlock,
    PageBlock,
    RecordSnapshot,
)
from notion_blocks.utils import normalize_id

if TYPE_CHECKING:
    from notion_blocks.client import RecordClient

logger = logging.getLogger(__name__)

COLLECTION_VIEW_TYPES = {"collection_view", "collection_view_page"}

# Default number of concurrent child fetches in children()
DEFAULT_MAX_WORKERS = 4


def build_block(block_id: str, snapshot: RecordSnapshot) -> Block:
    """Build a typed block from a snapshot.

    Pages become PageBlock, collection views become CollectionViewBlock,
    anything else a plain Block.
    """
    block_type = extract_type(block_id, snapshot)
    fields: dict[str, Any] = {
        "id": block_id,
        "title": extract_title(block_id, snapshot),
        "type": block_type,
        "parent_id": extract_parent_id(block_id, snapshot),
        "children_ids": extract_children_ids(block_id, snapshot),
    }

    if block_type == "page":
        return PageBlock(**fields)

    if block_type in COLLECTION_VIEW_TYPES:
        collection_id = extract_collection_id(block_id, snapshot)
        return CollectionViewBlock(
            **fields,
            collection_id=collection_id,
            view_ids=extract_view_ids(block_id, snapshot),
            collection_title=extract_collection_title(collection_id, snapshot),
        )

    return Block(**fields)


def get_page(
    client: "RecordClient",
    url_or_id: str,
    *,
    deadline: float | None = None,
    cancel: threading.Event | None = None,
) -> PageBlock:
    """Resolve a Notion page.

    Args:
        client: RecordClient instance.
        url_or_id: Page URL or block ID.
        deadline: Optional time.monotonic() value that ends retrying.
        cancel: Optional event that ends retrying once set.

    Returns:
        The page as a PageBlock.

    Raises:
        InvalidIdentifier: If url_or_id is not a URL or block ID.
        NotAPage: If the block exists but is not a page.
        Unavailable: If no snapshot came back within PAGE_MAX_ATTEMPTS, or
            retrying was cancelled or ran past the deadline.
    """
    block_id = normalize_id(url_or_id)
    logger.debug(f"Fetching page {block_id}")

    snapshot = client.fetch_snapshot(
        block_id,
        max_attempts=PAGE_MAX_ATTEMPTS,
        deadline=deadline,
        cancel=cancel,
    )
    block_type = extract_type(block_id, snapshot)
    if block_type is None:
        raise Unavailable(block_id, PAGE_MAX_ATTEMPTS)
    if block_type != "page":
        raise NotAPage(block_id, block_type)

    return PageBlock(
        id=block_id,
        title=extract_title(block_id, snapshot),
        parent_id=extract_parent_id(block_id, snapshot),
        children_ids=extract_children_ids(block_id, snapshot),
    )


def get_block(
    client: "RecordClient",
    url_or_id: str,
    max_attempts: int = BLOCK_MAX_ATTEMPTS,
    *,
    deadline: float | None = None,
    cancel: threading.Event | None = None,
) -> Block | None:
    """Resolve any block by URL or ID.

    Args:
        client: RecordClient instance.
        url_or_id: Block URL or ID.
        max_attempts: Retry ceiling for empty snapshots.
        deadline: Optional time.monotonic() value that ends retrying.
        cancel: Optional event that ends retrying once set.

    Returns:
        PageBlock, CollectionViewBlock or Block depending on the block type,
        or None if the block stayed unavailable.
    """
    block_id = normalize_id(url_or_id)
    snapshot = client.fetch_snapshot(
        block_id,
        max_attempts=max_attempts,
        deadline=deadline,
        cancel=cancel,
    )
    if not snapshot:
        logger.warning(f"Block {block_id} unavailable after {max_attempts} attempts")
        return None
    return build_block(block_id, snapshot)


def children_ids(
    client: "RecordClient",
    url_or_id: str,
    *,
    deadline: float | None = None,
    cancel: threading.Event | None = None,
) -> list[str]:
    """Get the ordered child IDs of a block.

    Returns:
        Child IDs, or [] if the block has none or stayed unavailable.
    """
    block_id = normalize_id(url_or_id)
    snapshot = client.fetch_snapshot(
        block_id,
        max_attempts=PAGE_MAX_ATTEMPTS,
        require_blocks=False,
        deadline=deadline,
        cancel=cancel,
    )
    ids = extract_children_ids(block_id, snapshot)
    logger.debug(f"Block {block_id} has {len(ids)} children")
    return ids


def children(
    client: "RecordClient",
    url_or_id: str,
    max_workers: int = DEFAULT_MAX_WORKERS,
    *,
    deadline: float | None = None,
    cancel: threading.Event | None = None,
) -> list[Block]:
    """Resolve the children of a block into typed blocks.

    Child snapshots are fetched concurrently (at most max_workers at a
    time). The result keeps the order of the block's content list; children
    that stay unavailable are left out. deadline and cancel apply to the
    parent lookup and to every child fetch.

    Args:
        client: RecordClient instance.
        url_or_id: Parent block URL or ID.
        max_workers: Maximum number of concurrent child fetches.
        deadline: Optional time.monotonic() value that ends retrying.
        cancel: Optional event that ends retrying once set.

    Returns:
        List of child blocks in content order.
    """
    block_id = normalize_id(url_or_id)
    ids = children_ids(client, block_id, deadline=deadline, cancel=cancel)
    if not ids:
        return []

    def _resolve(child_id: str) -> Block | None:
        return get_block(
            client,
            child_id,
            max_attempts=PAGE_MAX_ATTEMPTS,
            deadline=deadline,
            cancel=cancel,
        )

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(ids)))) as pool:
        # map() yields in input order regardless of completion order
        resolved = list(pool.map(_resolve, ids))

    result = []
    for child_id, block in zip(ids, resolved):
        if block is None:
            logger.warning(f"Skipping unavailable child block {child_id}")
            continue
        result.append(block)

    logger.info(f"Resolved {len(result)}/{len(ids)} children of {block_id}")
    return result


def get_last_child_id(
    client: "RecordClient",
    url_or_id: str,
    *,
    deadline: float | None = None,
    cancel: threading.Event | None = None,
) -> str | None:
    """Get the ID of a block's last child, or None if it has no children."""
    ids = children_ids(client, url_or_id, deadline=deadline, cancel=cancel)
    return ids[-1] if ids else None


def get_block_props_and_format(
    client: "RecordClient",
    url_or_id: str,
    fallback_title: str = "",
    *,
    deadline: float | None = None,
    cancel: threading.Event | None = None,
) -> dict[str, Any]:
    """Get the raw properties and format maps of a block.

    Args:
        client: RecordClient instance.
        url_or_id: Block URL or ID.
        fallback_title: Title to report when the block stays unavailable.
        deadline: Optional time.monotonic() value that ends retrying.
        cancel: Optional event that ends retrying once set.

    Returns:
        {"properties": ..., "format": ...}. When unavailable:
        {"properties": {"title": [[fallback_title]]}, "format": {}}.
    """
    block_id = normalize_id(url_or_id)
    snapshot = client.fetch_snapshot(
        block_id,
        max_attempts=PAGE_MAX_ATTEMPTS,
        require_blocks=False,
        deadline=deadline,
        cancel=cancel,
    )
    if not snapshot:
        return {"properties": {"title": [[fallback_title]]}, "format": {}}
    return extract_properties_and_format(block_id, snapshot)
