from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Collection, Sequence, TypeVar

from .errors import MalformedFieldValueError
from .node import DocumentNode, Property

FieldFailures = list[tuple[int, str, str]]
T = TypeVar("T", bound="TypedNode")


def parse_float(value: str) -> float:
    return float(value.strip())


def parse_int(value: str) -> int:
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        number = float(text)
        if not number.is_integer():
            raise
        return int(number)


def parse_bool(value: str) -> bool:
    return parse_int(value) != 0


def parse_str(value: str) -> str:
    return value


def format_float(value: float) -> str:
    text = repr(float(value))
    if text.endswith(".0"):
        return text[:-2]
    return text


def format_int(value: int) -> str:
    return str(int(value))


def format_bool(value: bool) -> str:
    return "1" if value else "0"


def format_str(value: str) -> str:
    return str(value)


_PARSERS: dict[str, Callable[[str], Any]] = {
    "float": parse_float,
    "int": parse_int,
    "bool": parse_bool,
    "str": parse_str,
    "point": parse_float,
}
_FORMATTERS: dict[str, Callable[[Any], str]] = {
    "float": format_float,
    "int": format_int,
    "bool": format_bool,
    "str": format_str,
    "point": format_float,
}


@dataclass(frozen=True)
class Field:
    """One typed attribute backed by a group code.

    ``point`` fields span two codes: X at ``code`` and Y at ``code + 10``.
    Non-required fields are not written back while they still hold their
    default and the stream never carried them.
    """

    code: int
    attr: str
    kind: str = "float"
    default: Any = 0.0
    required: bool = False


def point(code: int, attr: str, default: tuple[float, float] = (0.0, 0.0), required: bool = False) -> Field:
    return Field(code, attr, "point", default, required)


class TypedNode(DocumentNode):
    DXFTYPE: ClassVar[str] = ""
    FIELDS: ClassVar[tuple[Field, ...]] = ()

    def __init__(self, dxftype: str | None = None) -> None:
        super().__init__([Property(0, dxftype or self.DXFTYPE)])
        for field in self.FIELDS:
            setattr(self, field.attr, field.default)
        self._held: dict[str, Any] = {}
        self._init_fields()

    @classmethod
    def new(cls: type[T], **attrs: Any) -> T:
        node = cls()
        for attr, value in attrs.items():
            if not hasattr(node, attr):
                raise TypeError(f"{cls.__name__} has no field {attr!r}")
            setattr(node, attr, value)
        node.synchronize_properties_from_fields()
        return node

    def _init_fields(self) -> None:
        pass

    def invalidate(self) -> None:
        pass

    def materialize_from_properties(self) -> None:
        failures: FieldFailures = []
        for field in self.FIELDS:
            if field.kind == "point":
                x, y = getattr(self, field.attr)
                x = self._parse_first(field.code, field.attr, parse_float, failures, x)
                y = self._parse_first(field.code + 10, field.attr, parse_float, failures, y)
                setattr(self, field.attr, (x, y))
            else:
                current = getattr(self, field.attr)
                parser = _PARSERS[field.kind]
                setattr(self, field.attr, self._parse_first(field.code, field.attr, parser, failures, current))
        self._materialize_extra(failures)
        self._held = {attr: copy.deepcopy(getattr(self, attr, None)) for _code, _value, attr in failures}
        self.invalidate()
        if failures:
            raise MalformedFieldValueError(self.kind or self.DXFTYPE, failures)

    def _materialize_extra(self, failures: FieldFailures) -> None:
        pass

    def synchronize_properties_from_fields(self) -> None:
        for field in self.FIELDS:
            if self._is_held(field.attr):
                continue
            value = getattr(self, field.attr)
            if field.kind == "point":
                write_x = field.required or value != field.default or self.has_code(field.code)
                write_y = field.required or value != field.default or self.has_code(field.code + 10)
                if write_x:
                    self._store(field.code, float(value[0]), "float")
                if write_y:
                    self._store(field.code + 10, float(value[1]), "float")
                continue
            if field.required or value != field.default or self.has_code(field.code):
                self._store(field.code, value, field.kind)
        self._synchronize_extra()

    def _synchronize_extra(self) -> None:
        pass

    def _is_held(self, attr: str) -> bool:
        """True while an attr that failed to parse still holds the value it had then.

        Held attrs are not written back, so the raw properties survive until
        the caller assigns a new value.
        """
        return attr in self._held and getattr(self, attr, None) == self._held[attr]

    def _parse_first(
        self,
        code: int,
        attr: str,
        parser: Callable[[str], Any],
        failures: FieldFailures,
        current: Any,
    ) -> Any:
        for prop in self.properties:
            if prop.code != code:
                continue
            try:
                return parser(prop.value)
            except ValueError:
                failures.append((code, prop.value, attr))
                return current
        return current

    def _parse_all(
        self,
        code: int,
        attr: str,
        parser: Callable[[str], Any],
        failures: FieldFailures,
        props: Sequence[Property] | None = None,
    ) -> list[Any] | None:
        values = []
        for prop in self.properties if props is None else props:
            if prop.code != code:
                continue
            try:
                values.append(parser(prop.value))
            except ValueError:
                failures.append((code, prop.value, attr))
                return None
        return values

    def _parse_points(
        self,
        code: int,
        attr: str,
        failures: FieldFailures,
        props: Sequence[Property] | None = None,
    ) -> list[tuple[float, float]] | None:
        xs = self._parse_all(code, attr, parse_float, failures, props)
        ys = self._parse_all(code + 10, attr, parse_float, failures, props)
        if xs is None or ys is None:
            return None
        return list(zip(xs, ys))

    def _store(self, code: int, value: Any, kind: str) -> None:
        """Update the first ``code`` property in place, or append it."""
        text = _FORMATTERS[kind](value)
        for prop in self.properties:
            if prop.code != code:
                continue
            if not _same_value(prop.value, value, kind):
                prop.value = text
            return
        self.properties.append(Property(code, text))

    def _rewrite_repeated(
        self,
        codes: Collection[int],
        items: Sequence[tuple[int, Any]],
        kind: str = "float",
        companions: Collection[int] = (),
        span: tuple[int, int] | None = None,
    ) -> None:
        """Positionally rewrite a run of repeated codes.

        When the existing sequence of ``codes`` matches ``items`` code for
        code, values are updated in place and everything interleaved with them
        stays put. Otherwise the old run (plus ``companions``, e.g. Z values)
        is removed and the new one is inserted where the old run started.
        """
        lo, hi = span if span is not None else (0, len(self.properties))
        positions = [i for i in range(lo, hi) if self.properties[i].code in codes]
        if [self.properties[i].code for i in positions] == [code for code, _ in items]:
            formatter = _FORMATTERS[kind]
            for i, (_code, value) in zip(positions, items):
                prop = self.properties[i]
                if not _same_value(prop.value, value, kind):
                    prop.value = formatter(value)
            return

        dropped = set(codes) | set(companions)
        insert_at = positions[0] if positions else hi
        kept: list[Property] = []
        kept_before = 0
        for i, prop in enumerate(self.properties):
            if lo <= i < hi and prop.code in dropped:
                continue
            if i < insert_at:
                kept_before += 1
            kept.append(prop)
        formatter = _FORMATTERS[kind]
        new_props = [Property(code, formatter(value)) for code, value in items]
        self.properties = kept[:kept_before] + new_props + kept[kept_before:]


def _same_value(text: str, value: Any, kind: str) -> bool:
    try:
        return _PARSERS[kind](text) == value
    except ValueError:
        return False


def point_items(code: int, points: Sequence[tuple[float, float]]) -> list[tuple[int, float]]:
    items: list[tuple[int, float]] = []
    for x, y in points:
        items.append((code, float(x)))
        items.append((code + 10, float(y)))
    return items
