import logging
import numpy as np

from .header import LAYOUTS, ColorType

log = logging.getLogger(__name__)

NOISE_OFFSET = 15   #stała wielkość przesunięcia kanału


class UnsupportedBitDepthError(ValueError):
    pass


class NoiseSource:
    """Source of random draws for the noise pass.

    Subclasses provide ``next_bool`` and ``next_channel``; the batch
    helpers fall back to calling them once per pixel.
    """

    def next_bool(self) -> bool:
        raise NotImplementedError

    def next_channel(self, count: int) -> int:
        raise NotImplementedError

    def bools(self, n: int) -> np.ndarray:
        return np.array([self.next_bool() for _ in range(n)], dtype=bool)

    def channels(self, n: int, count: int) -> np.ndarray:
        return np.array([self.next_channel(count) for _ in range(n)], dtype=np.intp)


class RandomNoiseSource(NoiseSource):
    #numpy Generator, powtarzalny przy podanym seed
    def __init__(self, seed=None):
        self.rng = np.random.default_rng(seed)

    def next_bool(self) -> bool:
        return bool(self.rng.integers(0, 2))

    def next_channel(self, count: int) -> int:
        return int(self.rng.integers(0, count))

    def bools(self, n: int) -> np.ndarray:
        return self.rng.integers(0, 2, size=n).astype(bool)

    def channels(self, n: int, count: int) -> np.ndarray:
        return self.rng.integers(0, count, size=n)


def add_randomized_noise(buf: bytearray, pixel_count: int, color_type: ColorType,
                         source: NoiseSource, bit_depth: int = 8):
    """Shift one color channel of every pixel by +/-15, clamped to 0..255.

    ``buf`` is modified in place. Alpha channels are never touched; for
    layouts with several color channels the channel is picked by ``source``.
    """
    if bit_depth != 8:
        raise UnsupportedBitDepthError(f'noise needs 8-bit samples, got {bit_depth}-bit')

    layout = LAYOUTS[color_type]
    if pixel_count == 0:
        return

    #widok na bufor bez kopiowania - zapis idzie prosto do bytearray
    pixels = np.frombuffer(buf, dtype=np.uint8, count=pixel_count * layout.channels)
    pixels = pixels.reshape(pixel_count, layout.channels)

    if len(layout.eligible) > 1:
        picks = source.channels(pixel_count, len(layout.eligible))
        channel = np.asarray(layout.eligible)[picks]
    else:
        channel = np.full(pixel_count, layout.eligible[0], dtype=np.intp)
    offsets = np.where(source.bools(pixel_count), NOISE_OFFSET, -NOISE_OFFSET)

    rows = np.arange(pixel_count)
    values = pixels[rows, channel].astype(np.int16) + offsets
    pixels[rows, channel] = np.clip(values, 0, 255).astype(np.uint8)
    log.debug('noised %d %s pixels', pixel_count, color_type.name)
