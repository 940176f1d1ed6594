from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# typy koloru z IHDR (RFC 2083, 4.1.1)
class ColorType(Enum):
    Grayscale = 0
    Rgb = 2
    Indexed = 3
    GrayscaleAlpha = 4
    Rgba = 6


@dataclass(frozen=True)
class Layout:
    channels: int               # liczba próbek na piksel
    eligible: Tuple[int, ...]   # kanały, które wolno zaszumić
    depths: Tuple[int, ...]     # dozwolone bit depth


#jedyna tablica układów pikseli - korzystają z niej dekoder, enkoder i szum
LAYOUTS = {
    ColorType.Grayscale:      Layout(1, (0,),      (1, 2, 4, 8, 16)),
    ColorType.Rgb:            Layout(3, (0, 1, 2), (8, 16)),
    ColorType.Indexed:        Layout(1, (0,),      (1, 2, 4, 8)),
    ColorType.GrayscaleAlpha: Layout(2, (0,),      (8, 16)),
    ColorType.Rgba:           Layout(4, (0, 1, 2), (8, 16)),
}

# kolory, dla których przezroczystość idzie osobnym chunkiem tRNS
TRNS_COLOR_TYPES = {ColorType.Grayscale, ColorType.Rgb, ColorType.Indexed}


def bytes_per_pixel(color_type: ColorType, bit_depth: int) -> int:
    """Sample bytes per pixel, at least 1 (sub-byte depths round up)."""
    return max(1, LAYOUTS[color_type].channels * bit_depth // 8)


def row_bytes(color_type: ColorType, bit_depth: int, width: int) -> int:
    """Length of one unfiltered scanline in bytes."""
    return (LAYOUTS[color_type].channels * bit_depth * width + 7) // 8


@dataclass
class ImageHeader:
    width: int
    height: int
    color_type: ColorType
    bit_depth: int
    interlace: int = 0
    transparency: Optional[bytes] = None
    palette: Optional[bytes] = None

    @property
    def bytes_per_pixel(self) -> int:
        return bytes_per_pixel(self.color_type, self.bit_depth)

    @property
    def stride(self) -> int:
        return row_bytes(self.color_type, self.bit_depth, self.width)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def buffer_size(self) -> int:
        return self.stride * self.height
