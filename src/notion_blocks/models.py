"""Data model for Notion block records.

Blocks reference their children by ID only; resolving a child always
requires a fresh fetch (see notion_blocks.fetch).
"""

from dataclasses import dataclass, field
from typing import Any

# Parsed recordMap: category ("block", "collection", ...) -> id -> {"value": {...}}
RecordSnapshot = dict[str, Any]


@dataclass(frozen=True)
class NotionSession:
    """Session credentials sent with every request.

    Attributes:
        token_v2: The token_v2 cookie of a logged-in notion.so session.
        active_user_header: Optional ID of the active user, sent as the
            x-active-user-header cookie and x-notion-active-user-header header.
    """

    token_v2: str
    active_user_header: str | None = None


@dataclass(frozen=True)
class Pagination:
    """Paging options for a loadPageChunk request."""

    chunk_number: int = 0
    limit: int = 100
    vertical_columns: bool = False

    def to_body(self, block_id: str) -> dict[str, Any]:
        return {
            "pageId": block_id,
            "chunkNumber": self.chunk_number,
            "limit": self.limit,
            "verticalColumns": self.vertical_columns,
        }


# -----------------------------------------------------------------------------
# Title storage shapes
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TextTitle:
    """Title stored under properties["title"] (text-based blocks)."""

    fragments: tuple[str, ...]

    key = "title"

    @property
    def text(self) -> str:
        return " ".join(self.fragments)


@dataclass(frozen=True)
class SourceTitle:
    """Title stored under properties["source"] (image, video, file blocks)."""

    fragments: tuple[str, ...]

    key = "source"

    @property
    def text(self) -> str:
        return " ".join(self.fragments)


@dataclass(frozen=True)
class OtherTitle:
    """Title stored under any other first property key."""

    key: str
    fragments: tuple[str, ...]

    @property
    def text(self) -> str:
        return " ".join(self.fragments)


TitleField = TextTitle | SourceTitle | OtherTitle


# -----------------------------------------------------------------------------
# Blocks
# -----------------------------------------------------------------------------


@dataclass
class Block:
    """A node in a Notion workspace.

    Attributes:
        id: Canonical block UUID.
        title: Plain title text, or None when the block has no properties
            or its type suppresses titles.
        type: Notion block type ("page", "text", "divider", ...).
        parent_id: ID of the parent block, or None.
        children_ids: Ordered IDs of child blocks.
    """

    id: str
    title: str | None = None
    type: str | None = None
    parent_id: str | None = None
    children_ids: list[str] = field(default_factory=list)


@dataclass
class PageBlock(Block):
    """A block of type "page"."""

    type: str | None = "page"


@dataclass
class CollectionViewBlock(Block):
    """A block that embeds a collection (inline or full-page database)."""

    collection_id: str | None = None
    view_ids: list[str] = field(default_factory=list)
    collection_title: str | None = None
