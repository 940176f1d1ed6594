import sys
import logging
import argparse
from datetime import datetime
from pathlib import Path

from .PNG import PNGError, create_output_path
from .decompress_IDAT import decodePNG
from .compress_IDAT import write_png_image
from .noise import RandomNoiseSource, UnsupportedBitDepthError, add_randomized_noise
from .print_chunks import printChunks

log = logging.getLogger('unpeel')


class ArgumentParser(argparse.ArgumentParser):
    #zły zestaw argumentów kończy się kodem 1, nie domyślnym 2
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f'{self.prog}: error: {message}\n')


def build_parser():
    parser = ArgumentParser(prog='unpeel',
                            description='Report PNG metadata and write a noised copy next to the input.')
    parser.add_argument('path', help='path to a PNG file')
    parser.add_argument('--seed', type=int, default=None, help='seed for the noise generator')
    parser.add_argument('--inflate', action='store_true',
                        help='decompress zTXt text and iCCP profiles in the chunk report')
    parser.add_argument('--show', action='store_true', help='display original and output side by side')
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def fmt_time(ts: float) -> str:
    return datetime.fromtimestamp(ts).isoformat(sep=' ', timespec='seconds')


def print_file_metadata(path: Path):
    print('=== File System Metadata ===')
    try:
        st = path.stat()
    except OSError as e:
        log.warning('cannot read file metadata: %s', e)
        return
    print(f'File size: {st.st_size} bytes')
    print(f'Last modified: {fmt_time(st.st_mtime)}')
    #st_birthtime nie istnieje na każdym systemie
    created = getattr(st, 'st_birthtime', None)
    if created is not None:
        print(f'Created: {fmt_time(created)}')


def print_image_header(header):
    print('\n=== PNG Image Metadata ===')
    print(f'Width: {header.width} pixels')
    print(f'Height: {header.height} pixels')
    print(f'Color type: {header.color_type.name}')
    print(f'Bit depth: {header.bit_depth}')
    print(f'Bytes per pixel: {header.bytes_per_pixel}')
    print(f'Interlaced: {"yes" if header.interlace else "no"}')
    print(f'Transparency (tRNS): {"present" if header.transparency else "none"}')


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s: %(message)s')

    path = Path(args.path)
    if not path.exists():
        log.error("file '%s' does not exist", path)
        return 1

    print_file_metadata(path)

    #dekodowanie - ścieżka krytyczna, każdy błąd kończy program
    try:
        header, buf = decodePNG(path)
    except (PNGError, OSError) as e:
        log.error('cannot read PNG: %s', e)
        return 1

    try:
        add_randomized_noise(buf, header.pixel_count, header.color_type,
                             RandomNoiseSource(args.seed), header.bit_depth)
    except UnsupportedBitDepthError as e:
        log.warning('%s, writing the image without noise', e)

    print_image_header(header)

    print('\n=== Chunks ===')
    try:
        summary = printChunks(path, args.inflate)
    except OSError as e:
        log.error('cannot open file: %s', e)
        return 1

    print('\n=== Summary ===')
    print(f'File: {path}')
    print(f'Dimensions: {header.width}x{header.height}')
    print(f'Color format: {header.color_type.name} at {header.bit_depth} bits')
    print(f'Chunks read: {summary.chunks}{"" if summary.reached_iend else " (no IEND)"}')
    print(f'Bytes behind IEND: {summary.bytes_after_iend}')

    output_path = create_output_path(path)
    print('\n=== Writing Output Image ===')
    print(f'Output file: {output_path}')
    try:
        write_png_image(output_path, header, buf)
    except (PNGError, OSError) as e:
        log.error('cannot write output image: %s', e)
        return 1
    print(f'Successfully wrote image to: {output_path}')

    if args.show:
        #matplotlib ładowany tylko na żądanie
        try:
            from .preview import show_comparison
            show_comparison(path, output_path)
        except (ImportError, OSError, RuntimeError) as e:
            log.warning('preview failed: %s', e)

    return 0


if __name__ == '__main__':
    sys.exit(main())
