"""Color parsing, conversion and formatting."""

import colorsys
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ColorSpace(str, Enum):
    """Color notations a color can be converted to."""

    HEX = "hex"
    RGB = "rgb"
    HSL = "hsl"
    HWB = "hwb"


NAMED_COLORS = {
    "aliceblue": "f0f8ff", "antiquewhite": "faebd7", "aqua": "00ffff",
    "aquamarine": "7fffd4", "azure": "f0ffff", "beige": "f5f5dc",
    "bisque": "ffe4c4", "black": "000000", "blanchedalmond": "ffebcd",
    "blue": "0000ff", "blueviolet": "8a2be2", "brown": "a52a2a",
    "burlywood": "deb887", "cadetblue": "5f9ea0", "chartreuse": "7fff00",
    "chocolate": "d2691e", "coral": "ff7f50", "cornflowerblue": "6495ed",
    "cornsilk": "fff8dc", "crimson": "dc143c", "cyan": "00ffff",
    "darkblue": "00008b", "darkcyan": "008b8b", "darkgoldenrod": "b8860b",
    "darkgray": "a9a9a9", "darkgreen": "006400", "darkgrey": "a9a9a9",
    "darkkhaki": "bdb76b", "darkmagenta": "8b008b", "darkolivegreen": "556b2f",
    "darkorange": "ff8c00", "darkorchid": "9932cc", "darkred": "8b0000",
    "darksalmon": "e9967a", "darkseagreen": "8fbc8f", "darkslateblue": "483d8b",
    "darkslategray": "2f4f4f", "darkslategrey": "2f4f4f", "darkturquoise": "00ced1",
    "darkviolet": "9400d3", "deeppink": "ff1493", "deepskyblue": "00bfff",
    "dimgray": "696969", "dimgrey": "696969", "dodgerblue": "1e90ff",
    "firebrick": "b22222", "floralwhite": "fffaf0", "forestgreen": "228b22",
    "fuchsia": "ff00ff", "gainsboro": "dcdcdc", "ghostwhite": "f8f8ff",
    "gold": "ffd700", "goldenrod": "daa520", "gray": "808080",
    "green": "008000", "greenyellow": "adff2f", "grey": "808080",
    "honeydew": "f0fff0", "hotpink": "ff69b4", "indianred": "cd5c5c",
    "indigo": "4b0082", "ivory": "fffff0", "khaki": "f0e68c",
    "lavender": "e6e6fa", "lavenderblush": "fff0f5", "lawngreen": "7cfc00",
    "lemonchiffon": "fffacd", "lightblue": "add8e6", "lightcoral": "f08080",
    "lightcyan": "e0ffff", "lightgoldenrodyellow": "fafad2", "lightgray": "d3d3d3",
    "lightgreen": "90ee90", "lightgrey": "d3d3d3", "lightpink": "ffb6c1",
    "lightsalmon": "ffa07a", "lightseagreen": "20b2aa", "lightskyblue": "87cefa",
    "lightslategray": "778899", "lightslategrey": "778899", "lightsteelblue": "b0c4de",
    "lightyellow": "ffffe0", "lime": "00ff00", "limegreen": "32cd32",
    "linen": "faf0e6", "magenta": "ff00ff", "maroon": "800000",
    "mediumaquamarine": "66cdaa", "mediumblue": "0000cd", "mediumorchid": "ba55d3",
    "mediumpurple": "9370db", "mediumseagreen": "3cb371", "mediumslateblue": "7b68ee",
    "mediumspringgreen": "00fa9a", "mediumturquoise": "48d1cc", "mediumvioletred": "c71585",
    "midnightblue": "191970", "mintcream": "f5fffa", "mistyrose": "ffe4e1",
    "moccasin": "ffe4b5", "navajowhite": "ffdead", "navy": "000080",
    "oldlace": "fdf5e6", "olive": "808000", "olivedrab": "6b8e23",
    "orange": "ffa500", "orangered": "ff4500", "orchid": "da70d6",
    "palegoldenrod": "eee8aa", "palegreen": "98fb98", "paleturquoise": "afeeee",
    "palevioletred": "db7093", "papayawhip": "ffefd5", "peachpuff": "ffdab9",
    "peru": "cd853f", "pink": "ffc0cb", "plum": "dda0dd",
    "powderblue": "b0e0e6", "purple": "800080", "rebeccapurple": "663399",
    "red": "ff0000", "rosybrown": "bc8f8f", "royalblue": "4169e1",
    "saddlebrown": "8b4513", "salmon": "fa8072", "sandybrown": "f4a460",
    "seagreen": "2e8b57", "seashell": "fff5ee", "sienna": "a0522d",
    "silver": "c0c0c0", "skyblue": "87ceeb", "slateblue": "6a5acd",
    "slategray": "708090", "slategrey": "708090", "snow": "fffafa",
    "springgreen": "00ff7f", "steelblue": "4682b4", "tan": "d2b48c",
    "teal": "008080", "thistle": "d8bfd8", "tomato": "ff6347",
    "turquoise": "40e0d0", "violet": "ee82ee", "wheat": "f5deb3",
    "white": "ffffff", "whitesmoke": "f5f5f5", "yellow": "ffff00",
    "yellowgreen": "9acd32", "transparent": "00000000",
}

_HEX_RE = re.compile(r"^#([0-9a-f]{3,4}|[0-9a-f]{6}|[0-9a-f]{8})$", re.IGNORECASE)
_FUNCTION_RE = re.compile(r"^(rgba?|hsla?|hwb)\(\s*(.*?)\s*\)$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?", re.IGNORECASE)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _number(text: str) -> Optional[float]:
    if not _NUMBER_RE.fullmatch(text):
        return None
    return float(text)


def _channel(text: str) -> Optional[float]:
    """Parse an rgb channel, either 0-255 or a percentage."""
    if text.endswith("%"):
        value = _number(text[:-1])
        return None if value is None else _clamp(value * 2.55, 0, 255)
    value = _number(text)
    return None if value is None else _clamp(value, 0, 255)


def _percent(text: str) -> Optional[float]:
    value = _number(text[:-1] if text.endswith("%") else text)
    return None if value is None else _clamp(value, 0, 100)


def _hue(text: str) -> Optional[float]:
    lowered = text.lower()
    if lowered.endswith("deg"):
        return _number(lowered[:-3])
    if lowered.endswith("turn"):
        value = _number(lowered[:-4])
        return None if value is None else value * 360
    return _number(lowered)


def _alpha(text: Optional[str]) -> Optional[float]:
    if text is None:
        return 1.0
    if text.endswith("%"):
        value = _number(text[:-1])
        return None if value is None else _clamp(value / 100, 0, 1)
    value = _number(text)
    return None if value is None else _clamp(value, 0, 1)


def _split_arguments(body: str) -> Optional[Tuple[list[str], Optional[str]]]:
    """Split functional notation arguments into components and alpha."""
    if "," in body:
        parts = [part.strip() for part in body.split(",")]
        if len(parts) == 4:
            return parts[:3], parts[3]
        return (parts, None) if len(parts) == 3 else None

    main, _, alpha = body.partition("/")
    parts = main.split()
    if len(parts) != 3:
        return None
    alpha = alpha.strip()
    if "/" in body and not alpha:
        return None
    return parts, alpha or None


def _fmt(value: float) -> str:
    text = f"{round(value, 2) + 0.0:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _fmt_hue(value: float) -> str:
    return _fmt(round(value, 2) % 360)


@dataclass(frozen=True)
class Color:
    """A color in one of the supported notations.

    Components are kept in the units of their own space: 0-255 channels for
    hex and rgb, degrees and percentages for hsl and hwb. Alpha is 0-1.
    """

    space: ColorSpace
    values: Tuple[float, float, float]
    alpha: float = 1.0

    @classmethod
    def parse(cls, text: str) -> Optional["Color"]:
        """Parse a textual color.

        Args:
            text: Hex, named or functional (rgb, hsl, hwb) notation

        Returns:
            Parsed color or None if the text is not a color
        """
        text = text.strip()
        if not text:
            return None

        named = NAMED_COLORS.get(text.lower())
        if named is not None:
            return cls._parse_hex(named)

        if text.startswith("#"):
            return cls._parse_hex(text[1:]) if _HEX_RE.match(text) else None

        match = _FUNCTION_RE.match(text)
        if not match:
            return None

        function = match.group(1).lower()
        arguments = _split_arguments(match.group(2))
        if arguments is None:
            return None
        (first, second, third), alpha_text = arguments

        alpha = _alpha(alpha_text)
        if function.startswith("rgb"):
            values = (_channel(first), _channel(second), _channel(third))
            space = ColorSpace.RGB
        else:
            values = (_hue(first), _percent(second), _percent(third))
            space = ColorSpace.HWB if function == "hwb" else ColorSpace.HSL

        if alpha is None or any(v is None for v in values):
            return None
        return cls(space, values, alpha)  # type: ignore[arg-type]

    @classmethod
    def _parse_hex(cls, digits: str) -> "Color":
        if len(digits) in (3, 4):
            digits = "".join(c * 2 for c in digits)
        r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
        alpha = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0
        return cls(ColorSpace.HEX, (r, g, b), alpha)

    def to_rgb(self) -> Tuple[float, float, float]:
        """Return sRGB channels in the 0-1 range."""
        a, b, c = self.values
        if self.space in (ColorSpace.HEX, ColorSpace.RGB):
            return a / 255, b / 255, c / 255
        if self.space == ColorSpace.HSL:
            return colorsys.hls_to_rgb((a % 360) / 360, c / 100, b / 100)

        white, black = b / 100, c / 100
        if white + black >= 1:
            gray = white / (white + black)
            return gray, gray, gray
        pure = colorsys.hsv_to_rgb((a % 360) / 360, 1.0, 1.0)
        return tuple(v * (1 - white - black) + white for v in pure)  # type: ignore[return-value]

    def to_color(self, space: ColorSpace) -> "Color":
        """Convert this color to another space."""
        if space == self.space:
            return self

        r, g, b = self.to_rgb()
        if space in (ColorSpace.HEX, ColorSpace.RGB):
            values = (round(r * 255), round(g * 255), round(b * 255))
        elif space == ColorSpace.HSL:
            h, lightness, s = colorsys.rgb_to_hls(r, g, b)
            values = (h * 360, s * 100, lightness * 100)
        else:
            h, s, v = colorsys.rgb_to_hsv(r, g, b)
            values = (h * 360, (1 - s) * v * 100, (1 - v) * 100)
        return Color(space, values, self.alpha)

    def __str__(self) -> str:
        alpha = _fmt(self.alpha)
        opaque = alpha == "1"
        a, b, c = self.values

        if self.space == ColorSpace.HEX:
            channels = [round(v) for v in self.values]
            alpha_byte = round(self.alpha * 255)
            if alpha_byte != 255:
                channels.append(alpha_byte)
            return "#" + "".join(f"{v:02x}" for v in channels)
        if self.space == ColorSpace.RGB:
            body = f"{_fmt(a)}, {_fmt(b)}, {_fmt(c)}"
            return f"rgb({body})" if opaque else f"rgba({body}, {alpha})"
        if self.space == ColorSpace.HSL:
            body = f"{_fmt_hue(a)}, {_fmt(b)}%, {_fmt(c)}%"
            return f"hsl({body})" if opaque else f"hsla({body}, {alpha})"

        body = f"{_fmt_hue(a)} {_fmt(b)}% {_fmt(c)}%"
        return f"hwb({body})" if opaque else f"hwb({body} / {alpha})"
