"""Notion Blocks - Read-only client for the Notion v3 block API.

Module structure:
- client: Rate-limited record client with bounded retry
- fetch: Page, block and children resolution
- extract: Field extraction from record snapshots
- models: Session, pagination and block types
- exceptions: Error types
- utils: Configuration and block ID normalization
"""

# Client
from notion_blocks.client import (
    get_notion_client,
    RecordClient,
    PAGE_MAX_ATTEMPTS,
    BLOCK_MAX_ATTEMPTS,
)

# Fetch operations
from notion_blocks.fetch import (
    get_page,
    get_block,
    children,
    children_ids,
    get_last_child_id,
    get_block_props_and_format,
)

# Extract operations
from notion_blocks.extract import (
    extract_title,
    extract_type,
    extract_parent_id,
    extract_children_ids,
    extract_collection_id,
    extract_view_ids,
    extract_collection_title,
    resolve_title_field,
    SUPPRESSED_TITLE_TYPES,
)

# Models
from notion_blocks.models import (
    Block,
    PageBlock,
    CollectionViewBlock,
    NotionSession,
    Pagination,
    TextTitle,
    SourceTitle,
    OtherTitle,
)

# Exceptions
from notion_blocks.exceptions import (
    NotionBlocksError,
    InvalidIdentifier,
    NotAPage,
    Unavailable,
)

# Utils
from notion_blocks.utils import get_notion_session, normalize_id, check_id_length

__all__ = [
    # Client
    "get_notion_client",
    "RecordClient",
    "PAGE_MAX_ATTEMPTS",
    "BLOCK_MAX_ATTEMPTS",
    # Fetch
    "get_page",
    "get_block",
    "children",
    "children_ids",
    "get_last_child_id",
    "get_block_props_and_format",
    # Extract
    "extract_title",
    "extract_type",
    "extract_parent_id",
    "extract_children_ids",
    "extract_collection_id",
    "extract_view_ids",
    "extract_collection_title",
    "resolve_title_field",
    "SUPPRESSED_TITLE_TYPES",
    # Models
    "Block",
    "PageBlock",
    "CollectionViewBlock",
    "NotionSession",
    "Pagination",
    "TextTitle",
    "SourceTitle",
    "OtherTitle",
    # Exceptions
    "NotionBlocksError",
    "InvalidIdentifier",
    "NotAPage",
    "Unavailable",
    # Utils
    "get_notion_session",
    "normalize_id",
    "check_id_length",
]
