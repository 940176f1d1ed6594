import zlib
import struct
from pathlib import Path

#1 stale specyficzne dla formatu PNG
PngSignature: bytes = b'\x89PNG\r\n\x1a\n'   #8 bajtowy nagłówek PNG

OUTPUT_SUFFIX = '-unpeeled'


class PNGError(ValueError):
    """Raised when a PNG stream cannot be decoded or is structurally broken."""


def chunkCRC(chunk_type: bytes, chunk_data: bytes) -> int:
    #CRC liczony z typu + danych (bez długości)
    return zlib.crc32(chunk_data, zlib.crc32(chunk_type)) & 0xFFFFFFFF


#2 parser pliku PNG recznie czyta strukturę PNG i zwraca listę chunków + bajty po IEND
def readPNG(file_path):
    """Read every chunk of a PNG file, verifying signature and CRCs.

    Returns ``(chunks, tail_bytes)`` where ``chunks`` is a list of
    ``(type, data)`` tuples up to and including IEND.
    """
    with open(file_path, 'rb') as f:
        #walidacja
        if f.read(len(PngSignature)) != PngSignature:
            raise PNGError('Invalid PNG signature')

        #odczyt jednego chunka
        def read_chunk(stream):
            #chunk = [4B length][4B type][payload][4B CRC]
            header = stream.read(8)
            if len(header) < 8:
                raise PNGError('unexpected end of file, IEND chunk missing')
            chunk_length, chunk_type = struct.unpack('>I4s', header)
            chunk_data = stream.read(chunk_length)
            crc_bytes = stream.read(4)
            if len(chunk_data) < chunk_length or len(crc_bytes) < 4:
                raise PNGError(f'chunk {chunk_type!r} truncated')
            chunk_crc, = struct.unpack('>I', crc_bytes)

            # CRC zabezpieczenie integralności, obliczamy zlib.crc32(type + data) i porównujemy
            if chunk_crc != chunkCRC(chunk_type, chunk_data):
                raise PNGError(f'chunk {chunk_type!r} checksum failed')
            return chunk_type, chunk_data

        chunks = []
        while True:
            t, d = read_chunk(f)
            chunks.append((t, d))
            if t == b'IEND':
                break  #koniec specyfikacji PNG dalej tyklko ukryte bajty

        tail_bytes = f.read()

    return chunks, tail_bytes


def writeChunk(f, chunk_type: bytes, chunk_data: bytes):
    f.write(struct.pack('>I', len(chunk_data)))
    f.write(chunk_type)
    f.write(chunk_data)
    f.write(struct.pack('>I', chunkCRC(chunk_type, chunk_data)))


#3 nazwa pliku wyjściowego: "-unpeeled" przed rozszerzeniem, w tym samym katalogu
def create_output_path(input_path) -> Path:
    path = Path(input_path)
    if not path.stem:
        return Path(str(path) + OUTPUT_SUFFIX)
    return path.with_name(f'{path.stem}{OUTPUT_SUFFIX}{path.suffix}')
