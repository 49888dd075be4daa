"""Notion Blocks Utilities - Configuration and block ID helpers."""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv

from notion_blocks.exceptions import InvalidIdentifier
from notion_blocks.models import NotionSession

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.notion.so/api/v3"

# Offsets where dashes go when formatting a 32-char ID as a UUID
UUID_DASH_OFFSETS = (8, 13, 18, 23)

# Auto-load .env from project root
_env_loaded = False


def _ensure_env_loaded() -> None:
    """Load .env file if not already loaded."""
    global _env_loaded
    if _env_loaded:
        return

    # Find project root (look for .env going up from this file)
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        env_file = parent / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            logger.debug(f"Loaded environment from {env_file}")
            break

    _env_loaded = True


def get_notion_session() -> NotionSession:
    """Build session credentials from the environment.

    Automatically loads .env file from project root if present.

    Returns:
        NotionSession with NOTION_TOKEN_V2 and the optional
        NOTION_ACTIVE_USER_HEADER.

    Raises:
        ValueError: If NOTION_TOKEN_V2 is not set.
    """
    _ensure_env_loaded()

    token = os.environ.get("NOTION_TOKEN_V2")
    if not token:
        raise ValueError(
            "NOTION_TOKEN_V2 environment variable not set.\n"
            "Copy the token_v2 cookie from a logged-in notion.so browser session."
        )
    active_user = os.environ.get("NOTION_ACTIVE_USER_HEADER") or None
    return NotionSession(token_v2=token, active_user_header=active_user)


def get_base_url() -> str:
    """Get the v3 API base URL (NOTION_API_BASE_URL or the public default)."""
    _ensure_env_loaded()
    return os.environ.get("NOTION_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def check_id_length(block_id: str) -> bool:
    """Return True if block_id is an unformatted 32-character ID."""
    return len(block_id) == 32


def _format_uuid(raw_id: str) -> str:
    formatted = raw_id
    for offset in UUID_DASH_OFFSETS:
        formatted = formatted[:offset] + "-" + formatted[offset:]
    return formatted


def normalize_id(url_or_id: str) -> str:
    """Normalize a Notion URL or block ID to the canonical UUID form.

    Supports formats:
    - 2d240e6d-8f97-8077-8b8d-fd8dae6ed382 (returned unchanged)
    - 2d240e6d8f9780778b8dfd8dae6ed382
    - https://www.notion.so/workspace/Page-Title-2d240e6d8f9780778b8dfd8dae6ed382
    - https://www.notion.so/2d240e6d8f9780778b8dfd8dae6ed382?v=...

    Args:
        url_or_id: A Notion page URL or block ID.

    Returns:
        36-character block ID formatted as UUID with dashes.
        Example: "2d240e6d-8f97-8077-8b8d-fd8dae6ed382"

    Raises:
        InvalidIdentifier: If no block ID can be extracted.
    """
    if not isinstance(url_or_id, str) or not url_or_id:
        raise InvalidIdentifier(url_or_id)

    is_url = url_or_id.startswith(("http://", "https://"))

    if not is_url and len(url_or_id) == 36 and len(url_or_id.split("-")) == 5:
        return url_or_id

    if is_url:
        # Remove query params, then take the last path segment
        path = url_or_id.split("?")[0].split("#")[0].rstrip("/")
        raw_id = path.split("/")[-1].split("-")[-1]
    else:
        raw_id = url_or_id

    if len(raw_id) != 32 or "-" in raw_id:
        raise InvalidIdentifier(url_or_id)

    return _format_uuid(raw_id)
