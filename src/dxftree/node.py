from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import Iterator

SECTION = "SECTION"
ENDSEC = "ENDSEC"
TABLE = "TABLE"
ENDTAB = "ENDTAB"
BLOCK = "BLOCK"
ENDBLK = "ENDBLK"
EOF = "EOF"

CONTAINER_END_MARKERS = {
    SECTION: ENDSEC,
    TABLE: ENDTAB,
    BLOCK: ENDBLK,
}
END_MARKER_CONTAINERS = {end: start for start, end in CONTAINER_END_MARKERS.items()}


@dataclass
class Property:
    code: int
    value: str


class DocumentNode:
    """Generic tree node: ordered group-code properties plus ordered children.

    The parent link is a weak reference and is only used for upward
    navigation; ownership always flows from parent to children.
    """

    def __init__(self, properties: list[Property] | None = None) -> None:
        self.properties: list[Property] = list(properties or [])
        self.children: list[DocumentNode] = []
        self._parent: weakref.ReferenceType[DocumentNode] | None = None

    def __repr__(self) -> str:
        name = self.get_value(2)
        if name is not None and name != self.kind:
            return f"<{type(self).__name__} {self.kind} {name!r}>"
        return f"<{type(self).__name__} {self.kind}>"

    @property
    def parent(self) -> DocumentNode | None:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def kind(self) -> str | None:
        if not self.properties:
            return None
        first = self.properties[0]
        if first.code in (0, 2):
            return first.value
        return None

    def add_property(self, code: int, value: str) -> Property:
        prop = Property(code, value)
        self.properties.append(prop)
        return prop

    def get_value(self, code: int, default: str | None = None) -> str | None:
        for prop in self.properties:
            if prop.code == code:
                return prop.value
        return default

    def get_values(self, code: int) -> list[str]:
        return [prop.value for prop in self.properties if prop.code == code]

    def has_code(self, code: int) -> bool:
        return any(prop.code == code for prop in self.properties)

    def set_value(self, code: int, value: str) -> None:
        for prop in self.properties:
            if prop.code == code:
                prop.value = value
                return
        self.properties.append(Property(code, value))

    def remove_codes(self, *codes: int) -> int:
        before = len(self.properties)
        self.properties = [prop for prop in self.properties if prop.code not in codes]
        return before - len(self.properties)

    def append(self, child: DocumentNode) -> DocumentNode:
        child._parent = weakref.ref(self)
        self.children.append(child)
        return child

    def insert(self, index: int, child: DocumentNode) -> DocumentNode:
        child._parent = weakref.ref(self)
        self.children.insert(index, child)
        return child

    def remove(self, child: DocumentNode) -> None:
        for i, existing in enumerate(self.children):
            if existing is child:
                del self.children[i]
                child._parent = None
                return
        raise ValueError(f"{child!r} is not a child of {self!r}")

    def append_content(self, child: DocumentNode) -> DocumentNode:
        # Content goes in front of a trailing end marker so ENDSEC/ENDTAB/ENDBLK stay last.
        if self.children and isinstance(self.children[-1], EndMarker):
            return self.insert(len(self.children) - 1, child)
        return self.append(child)

    def walk(self) -> Iterator[DocumentNode]:
        yield self
        for child in self.children:
            yield from child.walk()

    def walk_post_order(self) -> Iterator[DocumentNode]:
        for child in self.children:
            yield from child.walk_post_order()
        yield self

    def path(self) -> list[str]:
        parts: list[str] = []
        node: DocumentNode | None = self
        while node is not None:
            label = node.kind or type(node).__name__
            name = node.get_value(2)
            if name is not None and name != label:
                label = f"{label}:{name}"
            parts.append(label)
            node = node.parent
        parts.reverse()
        return parts


class Section(DocumentNode):
    def __init__(self, name: str | None = None) -> None:
        super().__init__([Property(0, SECTION)])
        if name is not None:
            self.add_property(2, name)


class Table(DocumentNode):
    def __init__(self, name: str | None = None) -> None:
        super().__init__([Property(0, TABLE)])
        if name is not None:
            self.add_property(2, name)


class EndMarker(DocumentNode):
    def __init__(self, marker: str) -> None:
        if marker not in END_MARKER_CONTAINERS:
            raise ValueError(f"not an end marker: {marker}")
        super().__init__([Property(0, marker)])


class EofMarker(DocumentNode):
    def __init__(self) -> None:
        super().__init__([Property(0, EOF)])


def container_name(node: DocumentNode) -> str | None:
    """Name of a SECTION/TABLE node, i.e. its first code-2 value, upper-cased."""
    name = node.get_value(2)
    if name is None:
        return None
    return name.upper()
