from __future__ import annotations

import io
from typing import TYPE_CHECKING, Iterator, TextIO

from .node import DocumentNode

if TYPE_CHECKING:
    from .document import Document


def iter_tags(node: DocumentNode) -> Iterator[tuple[int, str]]:
    for current in node.walk():
        for prop in current.properties:
            yield prop.code, prop.value


def write(document: Document, stream: TextIO) -> None:
    document.synchronize()
    for code, value in iter_tags(document):
        stream.write(f"{code}\n{value}\n")


def dumps(document: Document) -> str:
    buffer = io.StringIO()
    write(document, buffer)
    return buffer.getvalue()
