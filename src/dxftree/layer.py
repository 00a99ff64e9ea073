from __future__ import annotations

from typing import ClassVar

from .fields import Field, FieldFailures, TypedNode, parse_int

DEFAULT_LAYER = "0"

_INVISIBLE = 1
_LOCKED = 4
_NOT_PLOTTABLE = 16


class Layer(TypedNode):
    DXFTYPE = "LAYER"
    FIELDS: ClassVar[tuple[Field, ...]] = (
        Field(2, "name", "str", DEFAULT_LAYER, required=True),
        Field(62, "color_number", "int", 7, required=True),
        Field(6, "line_type", "str", "CONTINUOUS", required=True),
    )

    name: str
    color_number: int
    line_type: str

    def _init_fields(self) -> None:
        self.flags = 0
        self.visible = True
        self.locked = False
        self.plottable = True

    def _materialize_extra(self, failures: FieldFailures) -> None:
        self.flags = self._parse_first(70, "flags", parse_int, failures, self.flags)
        self.visible = not self.flags & _INVISIBLE
        self.locked = bool(self.flags & _LOCKED)
        self.plottable = not self.flags & _NOT_PLOTTABLE

    def _synchronize_extra(self) -> None:
        flags = self.flags & ~(_INVISIBLE | _LOCKED | _NOT_PLOTTABLE)
        if not self.visible:
            flags |= _INVISIBLE
        if self.locked:
            flags |= _LOCKED
        if not self.plottable:
            flags |= _NOT_PLOTTABLE
        if self._is_held("flags") and flags == self.flags:
            return
        self.flags = flags
        self._store(70, flags, "int")

    def matches(self, name: str) -> bool:
        return self.name.casefold() == name.casefold()
