from __future__ import annotations

import colorsys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .layer import Layer

BYBLOCK = 0
BYLAYER = 256


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    @classmethod
    def from_rgb(cls, rgb: int) -> "Color":
        return cls((rgb >> 16) & 0xFF, (rgb >> 8) & 0xFF, rgb & 0xFF)

    @classmethod
    def from_hex(cls, text: str) -> "Color":
        return cls.from_rgb(int(text.lstrip("#"), 16))

    @classmethod
    def from_hsl(cls, hue: float, saturation: float, lightness: float) -> "Color":
        # hue in degrees, saturation and lightness in percent
        r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness / 100.0, saturation / 100.0)
        return cls(round(r * 255), round(g * 255), round(b * 255))

    @property
    def rgb(self) -> int:
        return (self.r << 16) | (self.g << 8) | self.b

    @property
    def hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


RED = Color(0xFF, 0x00, 0x00)
YELLOW = Color(0xFF, 0xFF, 0x00)
GREEN = Color(0x00, 0xFF, 0x00)
CYAN = Color(0x00, 0xFF, 0xFF)
BLUE = Color(0x00, 0x00, 0xFF)
MAGENTA = Color(0xFF, 0x00, 0xFF)
WHITE = Color(0xFF, 0xFF, 0xFF)
BLACK = Color(0x00, 0x00, 0x00)
DARK_GRAY = Color.from_hex("#414141")
GRAY = Color.from_hex("#808080")
ORANGE = Color.from_hex("#FFA500")

FALLBACK_COLOR = WHITE

_FIXED_ACI: dict[int, Color] = {
    1: RED,
    2: YELLOW,
    3: GREEN,
    4: CYAN,
    5: BLUE,
    6: MAGENTA,
    7: WHITE,
    8: DARK_GRAY,
    9: GRAY,
    10: RED,
    11: Color.from_hex("#FFAAAA"),
    12: Color.from_hex("#BD0000"),
    13: Color.from_hex("#BD7E7E"),
    14: Color.from_hex("#810000"),
    15: Color.from_hex("#810040"),
    16: Color.from_hex("#BD0040"),
    17: Color.from_hex("#FF0040"),
    18: Color.from_hex("#FFAABD"),
    19: Color.from_hex("#BD7E7E"),
    20: ORANGE,
}

_NAMED_ACI: dict[Color, int] = {
    RED: 1,
    YELLOW: 2,
    GREEN: 3,
    CYAN: 4,
    BLUE: 5,
    MAGENTA: 6,
    WHITE: 7,
}


@lru_cache(maxsize=None)
def aci_to_color(index: int) -> Color:
    fixed = _FIXED_ACI.get(index)
    if fixed is not None:
        return fixed
    if 10 <= index <= 249:
        return Color.from_hsl((index - 10) * 360.0 / 240.0, 100.0, 50.0)
    if 250 <= index <= 255:
        gray = (index - 250) * 255 // 5
        return Color(gray, gray, gray)
    return FALLBACK_COLOR


def color_to_aci(color: Color) -> int:
    return _NAMED_ACI.get(color, 7)


class ColorMethod(Enum):
    BYBLOCK = "byblock"
    BYLAYER = "bylayer"
    EXPLICIT = "explicit"
    TRUE_COLOR = "truecolor"


@dataclass(frozen=True)
class ColorSpec:
    method: ColorMethod = ColorMethod.BYLAYER
    index: int | None = None
    rgb: int | None = None

    def __post_init__(self) -> None:
        if self.method is ColorMethod.EXPLICIT:
            if self.index is None or not 1 <= self.index <= 255:
                raise ValueError(f"explicit color index must be in 1..255, got {self.index}")
        if self.method is ColorMethod.TRUE_COLOR:
            if self.rgb is None or not 0 <= self.rgb <= 0xFFFFFF:
                raise ValueError(f"true color must be a 24-bit RGB value, got {self.rgb}")

    @classmethod
    def by_layer(cls) -> "ColorSpec":
        return cls(ColorMethod.BYLAYER)

    @classmethod
    def by_block(cls) -> "ColorSpec":
        return cls(ColorMethod.BYBLOCK)

    @classmethod
    def explicit(cls, index: int) -> "ColorSpec":
        return cls(ColorMethod.EXPLICIT, index=index)

    @classmethod
    def true_color(cls, rgb: int) -> "ColorSpec":
        return cls(ColorMethod.TRUE_COLOR, rgb=rgb)

    @classmethod
    def from_color(cls, color: Color) -> "ColorSpec":
        return cls.true_color(color.rgb)

    @classmethod
    def from_group_codes(cls, aci: int | None, true_color: int | None = None) -> "ColorSpec":
        if true_color is not None:
            return cls.true_color(true_color & 0xFFFFFF)
        if aci is None or aci == BYLAYER:
            return cls.by_layer()
        if aci == BYBLOCK:
            return cls.by_block()
        if 1 <= aci <= 255:
            return cls.explicit(aci)
        if aci < 0:
            # legacy encoding: negated 24-bit RGB in code 62
            return cls.true_color(-aci & 0xFFFFFF)
        return cls.by_layer()

    @property
    def aci(self) -> int:
        """Value for group code 62."""
        if self.method is ColorMethod.BYBLOCK:
            return BYBLOCK
        if self.method is ColorMethod.EXPLICIT:
            return self.index if self.index is not None else BYLAYER
        if self.method is ColorMethod.TRUE_COLOR:
            return color_to_aci(Color.from_rgb(self.rgb or 0))
        return BYLAYER


def resolve(
    spec: ColorSpec,
    layer: "Layer | None" = None,
    block_color: Color | None = None,
) -> Color:
    if spec.method is ColorMethod.BYBLOCK:
        return block_color if block_color is not None else FALLBACK_COLOR
    if spec.method is ColorMethod.BYLAYER:
        if layer is None:
            return FALLBACK_COLOR
        return aci_to_color(abs(layer.color_number))
    if spec.method is ColorMethod.EXPLICIT:
        return aci_to_color(spec.index or 0)
    return Color.from_rgb(spec.rgb or 0)
