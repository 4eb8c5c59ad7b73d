"""Per-session configuration for difystream."""

from __future__ import annotations

from dataclasses import dataclass

from difystream.__about__ import DEFAULT_CLOSE_TAG, DEFAULT_OPEN_TAG
from difystream.core.errors import DifyStreamError, ErrorKind


@dataclass(frozen=True)
class StreamSettings:
    """Knobs shared by the stream coordinator and the blocking converter.

    Attributes:
        open_tag: Literal that opens the reasoning block.
        close_tag: Literal that closes the reasoning block.
        text_block_id: Block id carried by text parts.
        reasoning_block_id: Block id carried by reasoning parts.
        close_on_abort: Close a dangling block when the upstream feed ends
            without a terminal event. Off by default: an aborted feed may leave
            a block open and lose buffered tag text.
    """

    open_tag: str = DEFAULT_OPEN_TAG
    close_tag: str = DEFAULT_CLOSE_TAG
    text_block_id: str = "0"
    reasoning_block_id: str = "reasoning-0"
    close_on_abort: bool = False

    def __post_init__(self) -> None:
        for label, tag in (("open_tag", self.open_tag), ("close_tag", self.close_tag)):
            if len(tag) < 2:
                raise DifyStreamError(ErrorKind.CONFIG, f"{label} must be at least two characters, got {tag!r}.")
            if '"' in tag:
                raise DifyStreamError(ErrorKind.CONFIG, f"{label} must not contain quotes.")
        if self.open_tag == self.close_tag:
            raise DifyStreamError(ErrorKind.CONFIG, "open_tag and close_tag must differ.")
        if not self.text_block_id or not self.reasoning_block_id:
            raise DifyStreamError(ErrorKind.CONFIG, "Block ids must be non-empty.")
        if self.text_block_id == self.reasoning_block_id:
            raise DifyStreamError(ErrorKind.CONFIG, "text_block_id and reasoning_block_id must differ.")
