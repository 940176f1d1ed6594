import zlib
import struct
import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .PNG import PngSignature

log = logging.getLogger(__name__)

SRGB_INTENTS = ['Perceptual', 'Relative colorimetric', 'Saturation', 'Absolute colorimetric']

#minimalna długość danych dla chunków o stałym układzie
MIN_LENGTH = {
    b'pHYs': 9,
    b'tIME': 7,
    b'gAMA': 4,
    b'cHRM': 32,
    b'sRGB': 1,
}


class Chunk(NamedTuple):
    length: int
    type: bytes
    data: bytes
    crc: bytes


@dataclass
class ChunkInfo:
    """Fields extracted from one chunk, or the reason it was skipped."""
    tag: str
    length: int
    fields: dict = field(default_factory=dict)
    known: bool = True
    skipped: Optional[str] = None


@dataclass
class WalkSummary:
    chunks: int = 0
    reached_iend: bool = False
    bytes_after_iend: int = 0


def lossy(data: bytes) -> str:
    return data.decode('utf-8', errors='replace')


#1 czyta chunki ze strumienia ustawionego za sygnaturą; krótki odczyt = koniec chunków
def walkChunks(stream):
    while True:
        length_bytes = stream.read(4)
        if len(length_bytes) < 4:
            return
        length, = struct.unpack('>I', length_bytes)
        chunk_type = stream.read(4)
        if len(chunk_type) < 4:
            return
        data = stream.read(length)
        if len(data) < length:
            log.debug('chunk %r claims %d bytes, only %d left', chunk_type, length, len(data))
            return
        #CRC tylko konsumowany - ucięty CRC nie unieważnia wczytanych danych,
        #kolejny odczyt długości i tak zakończy pętlę
        crc = stream.read(4)
        yield Chunk(length, chunk_type, data, crc)


def splitKeyword(data: bytes):
    #keyword\0reszta; brak nullbyte = uszkodzony chunk
    keyword, sep, rest = data.partition(b'\x00')
    if not sep:
        return None, None
    return lossy(keyword), rest


def inflate(payload: bytes, method: int, fields: dict, key: str, as_text: bool):
    if method != 0:
        fields['inflate'] = f'unsupported method {method}'
        return
    try:
        raw = zlib.decompress(payload)
    except zlib.error as e:
        fields['inflate'] = f'failed ({e})'
        return
    fields[key] = lossy(raw) if as_text else len(raw)


#2 dekoduje pojedynczy chunk do słownika pól (bez wypisywania)
def parseChunk(chunk: Chunk, inflate_payloads: bool = False) -> ChunkInfo:
    t, d = chunk.type, chunk.data
    info = ChunkInfo(lossy(t), chunk.length)

    minimum = MIN_LENGTH.get(t)
    if minimum is not None and len(d) < minimum:
        info.skipped = f'insufficient data ({len(d)} < {minimum} bytes)'
        return info

    if t == b'tEXt':
        #niekompresowany tekst: key\0value
        key, rest = splitKeyword(d)
        if key is None:
            info.skipped = 'missing keyword separator'
            return info
        info.fields = {'keyword': key, 'text': lossy(rest)}

    elif t == b'zTXt':
        #tekst skompresowany zlib: key\0 method compressed...
        key, rest = splitKeyword(d)
        if key is None or not rest:
            info.skipped = 'missing keyword separator or compression method'
            return info
        info.fields = {'keyword': key, 'compression method': rest[0]}
        if inflate_payloads:
            inflate(rest[1:], rest[0], info.fields, 'text', as_text=True)

    elif t == b'iTXt':
        key, rest = splitKeyword(d)
        if key is None:
            info.skipped = 'missing keyword separator'
            return info
        info.fields = {'keyword': key}

    elif t == b'pHYs':
        x_ppu, y_ppu, unit = struct.unpack('>IIB', d[:9])
        info.fields = {'x': x_ppu, 'y': y_ppu, 'unit': 'meter' if unit == 1 else 'unknown'}

    elif t == b'tIME':
        y, mo, day, h, mi, s = struct.unpack('>HBBBBB', d[:7])
        info.fields = {'timestamp': f'{y:04}-{mo:02}-{day:02} {h:02}:{mi:02}:{s:02}'}

    elif t == b'gAMA':
        gamma, = struct.unpack('>I', d[:4])
        info.fields = {'gamma': gamma / 100000.0}

    elif t == b'cHRM':
        info.fields = {'present': True}

    elif t == b'sRGB':
        intent = d[0]
        info.fields = {'intent': SRGB_INTENTS[intent] if intent < len(SRGB_INTENTS) else 'Unknown'}

    elif t == b'iCCP':
        #nazwa\0 method skompresowany profil
        name, rest = splitKeyword(d)
        if name is None or not rest:
            info.skipped = 'missing profile name separator or compression method'
            return info
        info.fields = {'profile': name, 'compression method': rest[0], 'size': len(rest) - 1}
        if inflate_payloads:
            inflate(rest[1:], rest[0], info.fields, 'inflated size', as_text=False)

    else:
        info.known = False

    return info


#3 jedna linia raportu na chunk
def printChunk(info: ChunkInfo):
    if info.skipped is not None:
        log.debug('%s skipped: %s', info.tag, info.skipped)
        return

    if not info.known:
        print(f"  {info.tag} length: {info.length}")
        return

    f = info.fields
    if info.tag == 'tEXt':
        line = f"key='{f['keyword']}', text='{f['text']}'"
    elif info.tag == 'pHYs':
        line = f"x_ppu={f['x']}, y_ppu={f['y']}, unit={f['unit']}"
    elif info.tag == 'tIME':
        line = f['timestamp']
    elif info.tag == 'gAMA':
        line = f"gamma={f['gamma']}"
    elif info.tag == 'cHRM':
        line = 'chromaticity present'
    elif info.tag == 'sRGB':
        line = f"rendering intent={f['intent']}"
    else:
        line = ', '.join(f'{k}={v!r}' if isinstance(v, str) else f'{k}={v}' for k, v in f.items())
    print(f"  {info.tag} {line}")


def walkFile(stream, inflate_payloads: bool = False) -> WalkSummary:
    """Walk and print every chunk of an already opened PNG stream."""
    summary = WalkSummary()

    signature = stream.read(len(PngSignature))
    if signature != PngSignature:
        log.warning('file does not have a valid PNG signature')

    for chunk in walkChunks(stream):
        summary.chunks += 1
        if chunk.type == b'IEND':
            summary.reached_iend = True
            #sprawdzenie za IEND (steganografia)
            summary.bytes_after_iend = len(stream.read())
            break
        printChunk(parseChunk(chunk, inflate_payloads))

    if not summary.reached_iend:
        log.debug('chunk walk ended without IEND after %d chunks', summary.chunks)
    return summary


def printChunks(file_path, inflate_payloads: bool = False) -> WalkSummary:
    with open(file_path, 'rb') as f:
        return walkFile(f, inflate_payloads)
