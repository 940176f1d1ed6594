import zlib
import struct
import logging
import numpy as np

from .PNG import PNGError, readPNG
from .header import LAYOUTS, ColorType, ImageHeader

log = logging.getLogger(__name__)

# dekoduje obraz PNG do surowego bufora pikseli
#   1 czyta chunki (z weryfikacją CRC) i parsuje IHDR
#   2 zbiera PLTE i tRNS potrzebne przy ponownym kodowaniu
#   3 rozpakowuje połączone dane IDAT (zlib / DEFLATE)
#   4 odwraca filtry PNG (None, Sub, Up, Average, Paeth)
#   5 zwraca (ImageHeader, bytearray) - wiersze sklejone bez bajtu filtra


#przygotowanie pomocniczego predyktora PaethPredictor RFC 2083 (filtr nr 4)
#działa na liczbach i na tablicach numpy element po elemencie
def PaethPredictor(a, b, c):
    p  = a + b - c
    pa = np.abs(p - a)
    pb = np.abs(p - b)
    pc = np.abs(p - c)
    return np.where((pa <= pb) & (pa <= pc), a, np.where(pb <= pc, b, c))


def parseIHDR(IHDR_data: bytes) -> ImageHeader:
    if len(IHDR_data) != 13:
        raise PNGError(f'IHDR must be 13 bytes, got {len(IHDR_data)}')
    width, height, bitd, colort, compm, filterm, interlacem = struct.unpack('>IIBBBBB', IHDR_data)

    if width == 0 or height == 0:
        raise PNGError(f'invalid image size {width}x{height}')
    try:
        color_type = ColorType(colort)
    except ValueError:
        raise PNGError(f'unknown color type {colort}') from None
    if bitd not in LAYOUTS[color_type].depths:
        raise PNGError(f'bit depth {bitd} not allowed for {color_type.name}')

    #PNG używa tylko jednej metody kompresji (0 = DEFLATE) i filtra (0) jeśli inny kod to plik jest niespecyfikacyjny
    if compm != 0:
        raise PNGError(f'unknown compression method {compm}')
    if filterm != 0:
        raise PNGError(f'unknown filter method {filterm}')
    if interlacem not in (0, 1):
        raise PNGError(f'unknown interlace method {interlacem}')

    return ImageHeader(width, height, color_type, bitd, interlace=interlacem)


def unfilterRows(rows, stride: int, bpp: int):
    #tylko None, Sub i Up - każdy wiersz liczony w całości
    Recon = np.zeros((len(rows), stride), dtype=np.uint8)
    prev  = np.zeros(stride, dtype=np.uint8)   #wiersz "nad" pierwszym to same zera
    for r, row in enumerate(rows):
        ftype, line = row[0], row[1:]
        if ftype == 0:      #None
            cur = line.copy()
        elif ftype == 1:    #Sub - suma narastająca co bpp bajtów, uint8 sam zawija mod 256
            cur = np.cumsum(line.reshape(-1, bpp), axis=0, dtype=np.uint8).reshape(stride)
        else:               #Up
            cur = line + prev
        Recon[r] = cur
        prev = cur
    return Recon


def unfilterWavefront(rows, stride: int, bpp: int):
    #Average i Paeth zależą od piksela po lewej, powyżej i lewego górnego,
    #więc wszystkie piksele na jednej antyprzekątnej r + x = k liczymy naraz
    height = len(rows)
    n = stride // bpp
    ftypes = rows[:, 0].astype(np.int16)
    F = rows[:, 1:].astype(np.int16).reshape(height, n, bpp)

    # R[r + 1, x + 1] = piksel (r, x); zerowa ramka u góry i z lewej
    R = np.zeros((height + 1, n + 1, bpp), dtype=np.int16)
    for k in range(height + n - 1):
        rs = np.arange(max(0, k - n + 1), min(height, k + 1))
        xs = k - rs
        a = R[rs + 1, xs]      #po lewej
        b = R[rs, xs + 1]      #powyżej
        c = R[rs, xs]          #lewy górny
        ft = ftypes[rs][:, None]
        pred = np.select([ft == 1, ft == 2, ft == 3, ft == 4],
                         [a, b, (a + b) // 2, PaethPredictor(a, b, c)], default=0)
        #zachowujemy tylko ostatnie 8 bitów (mogła wystąpić nadmiarowa suma >255)
        R[rs + 1, xs + 1] = (F[rs, xs] + pred) & 0xFF

    return R[1:, 1:].reshape(height, stride).astype(np.uint8)


def unfilterScanlines(data: bytes, height: int, stride: int, bpp: int) -> bytearray:
    """Reverse the per-scanline filters, returning rows without filter bytes."""
    expected = height * (stride + 1)
    if len(data) < expected:
        raise PNGError(f'image data too short: {len(data)} bytes, expected {expected}')

    rows = np.frombuffer(data, dtype=np.uint8, count=expected).reshape(height, stride + 1)

    #pierwszy bajt każdej linii = kod zastosowanego filtra
    ftypes = rows[:, 0]
    if (ftypes > 4).any():
        r = int(np.argmax(ftypes > 4))
        raise PNGError(f'unknown filter type {ftypes[r]} in row {r}')

    if (ftypes >= 3).any():
        Recon = unfilterWavefront(rows, stride, bpp)
    else:
        Recon = unfilterRows(rows, stride, bpp)
    return bytearray(Recon.tobytes())


def decodePNG(file_path):
    """Decode a PNG file into its header and raw pixel buffer."""
    chunks, tail = readPNG(file_path)
    if tail:
        log.debug('%d bytes behind IEND ignored by decoder', len(tail))

    if not chunks or chunks[0][0] != b'IHDR':
        raise PNGError('IHDR chunk not found')
    header = parseIHDR(chunks[0][1])
    if header.interlace:
        raise PNGError('interlaced images are not supported')

    IDAT_parts = []
    for t, d in chunks[1:]:
        if t == b'PLTE':
            if len(d) % 3 or not 0 < len(d) <= 768:
                raise PNGError(f'invalid PLTE length {len(d)}')
            header.palette = d
        elif t == b'tRNS':
            header.transparency = d
        elif t == b'IDAT':
            IDAT_parts.append(d)

    if header.color_type is ColorType.Indexed and header.palette is None:
        raise PNGError('indexed image without PLTE chunk')
    if not IDAT_parts:
        raise PNGError('IDAT chunk not found')

    #rozpakowanie DEFLATE po operacji mamy cały obraz linia po lini z dodanym byte filtra na początku każdego wiersza
    try:
        IDAT_data = zlib.decompress(b''.join(IDAT_parts))
    except zlib.error as e:
        raise PNGError(f'corrupt image data: {e}') from e

    #odległość filtra liczona w bajtach, minimum 1 dla głębi < 8
    buf = unfilterScanlines(IDAT_data, header.height, header.stride, header.bytes_per_pixel)
    log.debug('decoded %dx%d %s, %d bytes of pixel data',
              header.width, header.height, header.color_type.name, len(buf))
    return header, buf
