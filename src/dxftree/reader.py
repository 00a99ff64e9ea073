from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, TextIO

from .document import Document
from .entities import Block, create_object
from .errors import MalformedRecordError, UnbalancedStructureError
from .node import (
    BLOCK,
    END_MARKER_CONTAINERS,
    EOF,
    SECTION,
    TABLE,
    DocumentNode,
    EndMarker,
    EofMarker,
    Section,
    Table,
)

logger = logging.getLogger(__name__)


class ReaderState(Enum):
    IDLE = "idle"
    # the top of the stack is a plain object closed by the next code-0 record
    OBJECT_OPEN = "object_open"


class Reader:
    """Builds a document tree from a stream of (code line, value line) pairs."""

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict
        self.document = Document(populate=False)
        self.state = ReaderState.IDLE
        self.line_number = 0
        self.truncated = False
        self._stack: list[DocumentNode] = [self.document]

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def top(self) -> DocumentNode:
        return self._stack[-1]

    def read(self, lines: Iterable[str]) -> Document:
        records = iter(lines)
        for code_line in records:
            self.line_number += 1
            if not code_line.rstrip("\r\n"):
                logger.debug("empty group code at line %d, stopping", self.line_number)
                break
            code = self._parse_code(code_line.strip())
            value_line = next(records, None)
            if value_line is None:
                self.truncated = True
                logger.debug("stream ends inside the record at line %d", self.line_number)
                break
            self.line_number += 1
            if self.feed(code, value_line.strip()):
                break
        self._close_object()
        return self.document

    def feed(self, code: int, value: str) -> bool:
        """Consume one record. Returns True once EOF has been read."""
        if code != 0:
            self.top.add_property(code, value)
            return False

        self._close_object()
        if value == SECTION:
            self._open_container(Section())
        elif value == TABLE:
            self._open_container(Table())
        elif value == BLOCK:
            self._open_container(Block(value))
        elif value in END_MARKER_CONTAINERS:
            self._close_container(value)
        elif value == EOF:
            self.top.append(EofMarker())
            return True
        else:
            self._open_object(create_object(value))
        return False

    def _parse_code(self, text: str) -> int:
        try:
            code = int(text)
        except ValueError:
            raise MalformedRecordError(self.line_number, text) from None
        if code < 0:
            raise MalformedRecordError(self.line_number, text)
        return code

    def _open_container(self, node: DocumentNode) -> None:
        self.top.append(node)
        self._stack.append(node)
        self.state = ReaderState.IDLE

    def _open_object(self, node: DocumentNode) -> None:
        self.top.append(node)
        self._stack.append(node)
        self.state = ReaderState.OBJECT_OPEN

    def _close_object(self) -> None:
        if self.state is ReaderState.OBJECT_OPEN:
            self._stack.pop()
            self.state = ReaderState.IDLE

    def _close_container(self, marker: str) -> None:
        container = self.top
        matched = len(self._stack) > 1 and container.kind == END_MARKER_CONTAINERS[marker]
        if not matched:
            if self.strict:
                raise UnbalancedStructureError(marker, self.line_number)
            logger.debug("unmatched %s at line %d kept under %r", marker, self.line_number, container)
            self._open_object(EndMarker(marker))
            return
        end = container.append(EndMarker(marker))
        self._stack.pop()
        # the end marker record can carry its own properties (handle, owner, layer)
        self._stack.append(end)
        self.state = ReaderState.OBJECT_OPEN


def read(stream: TextIO | Iterable[str], *, strict: bool = False) -> Document:
    return Reader(strict=strict).read(stream)
