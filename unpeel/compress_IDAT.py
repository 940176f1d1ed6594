import zlib
import struct
import logging

from .PNG import PngSignature, PNGError, writeChunk
from .header import ColorType, ImageHeader, TRNS_COLOR_TYPES

log = logging.getLogger(__name__)


def compressIDAT(header: ImageHeader, buf) -> bytes:
    #każdy wiersz dostaje bajt filtra 0 (None), potem całość DEFLATE
    stride = header.stride
    if len(buf) != header.buffer_size:
        raise PNGError(f'pixel buffer has {len(buf)} bytes, expected {header.buffer_size}')
    raw = bytearray()
    for r in range(header.height):
        raw.append(0)
        raw += buf[r * stride:(r + 1) * stride]
    return zlib.compress(bytes(raw))


def padPalette(palette: bytes, buf) -> bytes:
    #po zaszumieniu indeks może wskazywać poza paletę - dopełniamy czarnymi wpisami
    needed = max(buf, default=0) + 1
    have = len(palette) // 3
    if needed > have:
        log.debug('padding palette from %d to %d entries', have, needed)
        palette = palette + b'\x00\x00\x00' * (needed - have)
    return palette


#zapisuje minimalny PNG: IHDR, (PLTE), (tRNS), IDAT, IEND
def write_png_image(output_path, header: ImageHeader, buf):
    IHDR_data = struct.pack('>IIBBBBB', header.width, header.height, header.bit_depth,
                            header.color_type.value, 0, 0, 0)
    IDAT_data = compressIDAT(header, buf)

    with open(output_path, 'wb') as o:
        o.write(PngSignature)
        writeChunk(o, b'IHDR', IHDR_data)

        if header.color_type is ColorType.Indexed:
            palette = header.palette or b''
            if header.bit_depth == 8:
                palette = padPalette(palette, buf)
            writeChunk(o, b'PLTE', palette)

        #GrayscaleAlpha i Rgba mają alfę w pikselach, tRNS tylko dla pozostałych
        if header.color_type in TRNS_COLOR_TYPES and header.transparency:
            writeChunk(o, b'tRNS', header.transparency)

        writeChunk(o, b'IDAT', IDAT_data)
        writeChunk(o, b'IEND', b'')
