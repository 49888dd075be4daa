"""Exceptions raised by the Notion blocks client."""


class NotionBlocksError(Exception):
    """Base class for all errors raised by notion_blocks."""


class InvalidIdentifier(NotionBlocksError, ValueError):
    """The input is neither a Notion URL nor a valid block ID."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"Expected a full Notion page URL or a valid block ID, got {value!r}."
        )


class NotAPage(NotionBlocksError):
    """A page lookup resolved to a block that is not a page."""

    def __init__(self, block_id: str, block_type: str | None):
        self.block_id = block_id
        self.block_type = block_type
        super().__init__(
            f"Block {block_id} has type {block_type!r}; "
            "the URL or ID passed to get_page must be that of a page block."
        )


class Unavailable(NotionBlocksError):
    """The snapshot for a block stayed empty after every retry attempt."""

    def __init__(self, block_id: str, attempts: int):
        self.block_id = block_id
        self.attempts = attempts
        super().__init__(
            f"No record data returned for block {block_id} after {attempts} attempts"
        )
