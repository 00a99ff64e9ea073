from __future__ import annotations

import fnmatch
import logging
import os
import re
from collections import Counter
from pathlib import Path
from typing import Iterable, Iterator, TextIO

from .entities import Block, BlockReference, Entity
from .errors import MalformedFieldValueError
from .fields import TypedNode
from .layer import DEFAULT_LAYER, Layer
from .node import (
    ENDBLK,
    ENDSEC,
    ENDTAB,
    SECTION,
    TABLE,
    DocumentNode,
    EndMarker,
    EofMarker,
    Section,
    Table,
    container_name,
)
from .resolve import ResolveResult, resolve_references
from .writer import write

logger = logging.getLogger(__name__)

SECTION_ORDER = ("HEADER", "CLASSES", "TABLES", "BLOCKS", "ENTITIES", "OBJECTS", "THUMBNAILIMAGE")
DEFAULT_VERSION = "AC1015"


class Document(DocumentNode):
    """Root of a drawing: top-level sections followed by the EOF marker."""

    def __init__(self, populate: bool = True) -> None:
        super().__init__()
        self.field_errors: list[MalformedFieldValueError] = []
        if populate:
            self.append(EofMarker())
            header = self._ensure_section("HEADER")
            header.add_property(9, "$ACADVER")
            header.add_property(1, DEFAULT_VERSION)
            self._ensure_layer_table().append_content(Layer.new(name=DEFAULT_LAYER))
            self._ensure_section("ENTITIES")

    def __repr__(self) -> str:
        names = [container_name(child) for child in self.children if child.kind == SECTION]
        return f"<Document sections={names}>"

    @property
    def version(self) -> str | None:
        header = self.find_section("HEADER")
        if header is None:
            return None
        props = header.properties
        for i, prop in enumerate(props[:-1]):
            if prop.code == 9 and prop.value == "$ACADVER":
                return props[i + 1].value
        return None

    def find_section(self, name: str) -> DocumentNode | None:
        name = name.upper()
        for child in self.children:
            if child.kind == SECTION and container_name(child) == name:
                return child
        return None

    @property
    def entities_section(self) -> DocumentNode | None:
        return self.find_section("ENTITIES")

    @property
    def blocks_section(self) -> DocumentNode | None:
        return self.find_section("BLOCKS")

    @property
    def tables_section(self) -> DocumentNode | None:
        return self.find_section("TABLES")

    @property
    def layer_table(self) -> DocumentNode | None:
        tables = self.tables_section
        if tables is None:
            return None
        for child in tables.children:
            if child.kind == TABLE and container_name(child) == "LAYER":
                return child
        return None

    def get_layers(self) -> list[Layer]:
        table = self.layer_table
        if table is None:
            return []
        return [child for child in table.children if isinstance(child, Layer)]

    def get_blocks(self) -> list[Block]:
        section = self.blocks_section
        if section is None:
            return []
        return [child for child in section.children if isinstance(child, Block)]

    def get_entities(self) -> list[Entity]:
        section = self.entities_section
        if section is None:
            return []
        return [child for child in section.children if isinstance(child, Entity)]

    def query(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        """Entities of the ENTITIES section filtered by type name or glob pattern."""
        patterns = _normalize_types(types)
        for entity in self.get_entities():
            if patterns is None or any(fnmatch.fnmatchcase(entity.dxftype, p) for p in patterns):
                yield entity

    def entity_counts(self) -> Counter[str]:
        return Counter(entity.dxftype for entity in self.get_entities())

    def find_layer_by_name(self, name: str) -> Layer | None:
        for layer in self.get_layers():
            if layer.matches(name):
                return layer
        return None

    def find_block_by_name(self, name: str) -> Block | None:
        for block in self.get_blocks():
            if block.matches(name):
                return block
        return None

    def get_or_create_layer(self, name: str, color_number: int = 7) -> Layer:
        layer = self.find_layer_by_name(name)
        if layer is None:
            layer = self.add_layer(Layer.new(name=name, color_number=color_number))
        return layer

    def add_layer(self, layer: Layer) -> Layer:
        if self.find_layer_by_name(layer.name) is not None:
            raise ValueError(f"layer already exists: {layer.name}")
        self._ensure_layer_table().append_content(layer)
        return layer

    def add_block(self, block: Block) -> Block:
        if self.find_block_by_name(block.name) is not None:
            raise ValueError(f"block already exists: {block.name}")
        if not block.children or not isinstance(block.children[-1], EndMarker):
            block.append(EndMarker(ENDBLK))
        self._ensure_section("BLOCKS").append_content(block)
        return block

    def add_entity(self, entity: Entity) -> Entity:
        self._ensure_section("ENTITIES").append_content(entity)
        entity.bind_layer(self.find_layer_by_name(entity.layer_name))
        entity.resolved_color = entity.display_color()
        if isinstance(entity, BlockReference):
            entity.bind_block(self.find_block_by_name(entity.block_name))
        return entity

    def remove_entity(self, entity: Entity) -> None:
        parent = entity.parent
        if parent is None:
            raise ValueError(f"{entity!r} is not part of a document")
        parent.remove(entity)
        if isinstance(parent, Block):
            parent.invalidate()

    def materialize(self, strict: bool = False) -> list[MalformedFieldValueError]:
        self.field_errors = []
        for node in self.walk():
            if not isinstance(node, TypedNode):
                continue
            try:
                node.materialize_from_properties()
            except MalformedFieldValueError as exc:
                if strict:
                    raise
                logger.warning("%s: %s", "/".join(node.path()), exc)
                self.field_errors.append(exc)
        return self.field_errors

    def synchronize(self) -> None:
        for node in self.walk():
            if isinstance(node, TypedNode):
                node.synchronize_properties_from_fields()

    def resolve(self) -> ResolveResult:
        return resolve_references(self)

    def save(self, target: str | os.PathLike[str] | TextIO, *, encoding: str = "utf-8") -> None:
        save(self, target, encoding=encoding)

    def _ensure_section(self, name: str) -> DocumentNode:
        section = self.find_section(name)
        if section is not None:
            return section
        section = Section(name)
        section.append(EndMarker(ENDSEC))
        rank = _section_rank(name)
        for index, child in enumerate(self.children):
            if isinstance(child, EofMarker) or (
                child.kind == SECTION and _section_rank(container_name(child)) > rank
            ):
                return self.insert(index, section)
        return self.append(section)

    def _ensure_layer_table(self) -> DocumentNode:
        table = self.layer_table
        if table is not None:
            return table
        table = Table("LAYER")
        table.append(EndMarker(ENDTAB))
        tables = self._ensure_section("TABLES")
        tables.insert(0, table)
        return table


def _section_rank(name: str | None) -> int:
    if name in SECTION_ORDER:
        return SECTION_ORDER.index(name)
    return len(SECTION_ORDER)


def _normalize_types(types: str | Iterable[str] | None) -> list[str] | None:
    if types is None:
        return None
    if isinstance(types, str):
        tokens = re.split(r"[,\s]+", types.strip())
    else:
        tokens = list(types)
    normalized = [token.strip().upper() for token in tokens if token and token.strip()]
    if not normalized or any(token in {"*", "ALL"} for token in normalized):
        return None
    return normalized


def new() -> Document:
    return Document()


def _load(lines: Iterable[str], strict: bool) -> Document:
    from .reader import Reader

    document = Reader(strict=strict).read(lines)
    document.materialize(strict=strict)
    document.resolve()
    return document


def open(
    source: str | os.PathLike[str] | TextIO,
    *,
    strict: bool = False,
    encoding: str = "utf-8",
    errors: str = "strict",
) -> Document:
    if isinstance(source, (str, os.PathLike)):
        with Path(source).open(encoding=encoding, errors=errors) as stream:
            return _load(stream, strict)
    return _load(source, strict)


def readfile(path: str | os.PathLike[str], *, strict: bool = False, encoding: str = "utf-8") -> Document:
    return open(path, strict=strict, encoding=encoding)


def loads(text: str, *, strict: bool = False) -> Document:
    return _load(text.splitlines(), strict)


def save(
    document: Document,
    target: str | os.PathLike[str] | TextIO,
    *,
    encoding: str = "utf-8",
) -> None:
    if isinstance(target, (str, os.PathLike)):
        with Path(target).open("w", encoding=encoding) as stream:
            write(document, stream)
        return
    write(document, target)
