"""Inspect PNG chunks and write a lightly noised copy of the image."""

from .PNG import PNGError, create_output_path
from .header import ColorType, ImageHeader
from .decompress_IDAT import decodePNG
from .compress_IDAT import write_png_image
from .noise import NoiseSource, RandomNoiseSource, UnsupportedBitDepthError, add_randomized_noise
from .print_chunks import parseChunk, printChunks, walkChunks
