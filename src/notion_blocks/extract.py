"""Field extraction from Notion record snapshots.

Snapshots are loosely shaped: any level (category, block ID, "value", field)
may be missing or null. Every extractor here degrades to None or [] in that
case instead of raising.
"""

import logging
from typing import Any

from notion_blocks.models import (
    OtherTitle,
    RecordSnapshot,
    SourceTitle,
    TextTitle,
    TitleField,
)

logger = logging.getLogger(__name__)

# Block types whose title is never reported, whatever their properties hold
SUPPRESSED_TITLE_TYPES = frozenset({"divider"})


def _record_value(snapshot: RecordSnapshot | None, category: str, record_id: str) -> dict[str, Any]:
    """Return snapshot[category][record_id]["value"], or {} if any level is missing."""
    if not snapshot or not isinstance(snapshot, dict):
        return {}
    records = snapshot.get(category)
    if not isinstance(records, dict):
        return {}
    record = records.get(record_id)
    if not isinstance(record, dict):
        return {}
    value = record.get("value")
    return value if isinstance(value, dict) else {}


def _block_value(block_id: str, snapshot: RecordSnapshot | None) -> dict[str, Any]:
    return _record_value(snapshot, "block", block_id)


def _list_field(value: dict[str, Any], key: str) -> list:
    items = value.get(key)
    return list(items) if isinstance(items, list) else []


def flatten_title(value: Any) -> list[str]:
    """Flatten a Notion title value into its text fragments.

    Title values are lists of segments, each segment being [text] or
    [text, annotations]. Annotations (bold, links, mentions, ...) are
    dropped; only the text of each segment is kept.

    Args:
        value: Raw property value, e.g. [["Hello "], ["world", [["b"]]]].

    Returns:
        Text fragments in order, e.g. ["Hello ", "world"].
    """
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        return []

    fragments: list[str] = []
    for segment in value:
        if isinstance(segment, str):
            fragments.append(segment)
        elif isinstance(segment, list) and segment:
            head = segment[0]
            if isinstance(head, str):
                fragments.append(head)
            else:
                fragments.extend(flatten_title(segment))
    return fragments


def resolve_title_field(block_id: str, snapshot: RecordSnapshot | None) -> TitleField | None:
    """Resolve where and how a block stores its title.

    Notion keys the title inconsistently: text blocks use "title", media
    blocks use "source", others use whatever comes first in properties.

    Returns:
        TextTitle, SourceTitle or OtherTitle, or None when the block has no
        properties or its type is in SUPPRESSED_TITLE_TYPES.
    """
    value = _block_value(block_id, snapshot)
    properties = value.get("properties")
    if not properties or not isinstance(properties, dict):
        return None
    if value.get("type") in SUPPRESSED_TITLE_TYPES:
        return None

    key = next(iter(properties))
    fragments = tuple(flatten_title(properties[key]))
    if key == TextTitle.key:
        return TextTitle(fragments)
    if key == SourceTitle.key:
        return SourceTitle(fragments)
    return OtherTitle(key, fragments)


def extract_title(block_id: str, snapshot: RecordSnapshot | None) -> str | None:
    """Extract a block's title as plain text.

    Fragments are joined with a single space.

    Returns:
        Title text, or None if the block is untitled (see resolve_title_field).
    """
    title_field = resolve_title_field(block_id, snapshot)
    if title_field is None:
        return None
    return title_field.text


def extract_type(block_id: str, snapshot: RecordSnapshot | None) -> str | None:
    """Extract a block's type ("page", "text", ...)."""
    return _block_value(block_id, snapshot).get("type")


def extract_parent_id(block_id: str, snapshot: RecordSnapshot | None) -> str | None:
    """Extract the ID of a block's parent."""
    return _block_value(block_id, snapshot).get("parent_id") or None


def extract_children_ids(block_id: str, snapshot: RecordSnapshot | None) -> list[str]:
    """Extract the ordered child IDs of a block ([] if none)."""
    return _list_field(_block_value(block_id, snapshot), "content")


def extract_collection_id(block_id: str, snapshot: RecordSnapshot | None) -> str | None:
    """Extract the collection ID of a collection view block."""
    return _block_value(block_id, snapshot).get("collection_id") or None


def extract_view_ids(block_id: str, snapshot: RecordSnapshot | None) -> list[str]:
    """Extract the view IDs of a collection view block ([] if none)."""
    return _list_field(_block_value(block_id, snapshot), "view_ids")


def extract_collection_title(collection_id: str | None, snapshot: RecordSnapshot | None) -> str | None:
    """Extract a collection's name as plain text.

    Args:
        collection_id: Collection ID (from extract_collection_id).
        snapshot: Record snapshot that includes the "collection" category.

    Returns:
        Collection name, or None if the collection or its name is missing.
    """
    if not collection_id:
        return None
    name = _record_value(snapshot, "collection", collection_id).get("name")
    if not name:
        return None
    return " ".join(flatten_title(name))


def extract_properties_and_format(block_id: str, snapshot: RecordSnapshot | None) -> dict[str, Any]:
    """Extract the raw properties and format maps of a block.

    Returns:
        {"properties": ..., "format": ...} with None for missing maps.
    """
    value = _block_value(block_id, snapshot)
    return {
        "properties": value.get("properties"),
        "format": value.get("format"),
    }
