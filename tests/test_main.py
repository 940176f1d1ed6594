import zlib

import numpy as np
import pytest
from PIL import Image

from unpeel.decompress_IDAT import decodePNG
from unpeel.main import main
from pngdata import make_png


@pytest.fixture
def rgba_png(tmp_path):
    arr = np.random.default_rng(0).integers(0, 256, size=(6, 5, 4)).astype(np.uint8)
    path = tmp_path / 'photo.png'
    Image.fromarray(arr).save(path)
    return path, arr


@pytest.mark.parametrize('argv', [[], ['a.png', 'b.png']])
def test_wrong_argument_count_exits_1(argv, capsys):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    assert exc.value.code == 1
    assert 'usage' in capsys.readouterr().err


def test_missing_file(tmp_path, caplog):
    assert main([str(tmp_path / 'nope.png')]) == 1
    assert 'does not exist' in caplog.text


def test_corrupt_png_is_fatal(tmp_path):
    path = tmp_path / 'broken.png'
    path.write_bytes(b'not a png at all')
    assert main([str(path)]) == 1
    assert not (tmp_path / 'broken-unpeeled.png').exists()


def test_directory_is_fatal(tmp_path):
    assert main([str(tmp_path)]) == 1


def test_full_run_writes_noised_copy(rgba_png, capsys):
    path, arr = rgba_png
    assert main([str(path), '--seed', '1']) == 0

    out = path.with_name('photo-unpeeled.png')
    assert out.exists()
    with Image.open(out) as im:
        assert im.size == (5, 6)
        assert im.mode == 'RGBA'
        noised = np.asarray(im)
    assert np.array_equal(noised[..., 3], arr[..., 3])
    assert ((noised[..., :3] != arr[..., :3]).sum(axis=2) <= 1).all()

    report = capsys.readouterr().out
    for line in ('=== File System Metadata ===', 'Width: 5 pixels', 'Height: 6 pixels',
                 'Color type: Rgba', 'Bit depth: 8', 'Bytes per pixel: 4',
                 'Interlaced: no', '=== Summary ===', 'Dimensions: 5x6',
                 f'Output file: {out}'):
        assert line in report


def test_same_seed_same_output(rgba_png):
    path, _ = rgba_png
    out = path.with_name('photo-unpeeled.png')
    assert main([str(path), '--seed', '9']) == 0
    first = out.read_bytes()
    assert main([str(path), '--seed', '9']) == 0
    assert out.read_bytes() == first


def test_chunk_report_and_trailing_bytes(tmp_path, capsys):
    data = make_png(2, 2, 8, 0, [[0, 255], [128, 64]],
                    extra=[(b'tEXt', b'Author\x00Jane'), (b'gAMA', bytes([0, 0, 0x9A, 0x7C]))])
    path = tmp_path / 'gray'
    path.write_bytes(data + b'appended')

    assert main([str(path)]) == 0
    report = capsys.readouterr().out
    assert "  tEXt key='Author', text='Jane'" in report
    assert "  gAMA gamma=0.39548" in report
    assert 'Bytes behind IEND: 8' in report
    assert (tmp_path / 'gray-unpeeled').exists()


def test_sixteen_bit_image_copied_without_noise(tmp_path, caplog):
    arr = np.arange(12, dtype=np.uint16).reshape(3, 4) * 5000
    path = tmp_path / 'deep.png'
    Image.fromarray(arr).save(path)

    assert main([str(path)]) == 0
    assert 'without noise' in caplog.text
    _, original = decodePNG(path)
    _, copied = decodePNG(tmp_path / 'deep-unpeeled.png')
    assert copied == original


def test_transparency_is_carried_over(tmp_path, capsys):
    data = make_png(1, 1, 8, 2, [[9, 9, 9]], extra=[(b'tRNS', b'\x00\x09\x00\x09\x00\x09')])
    path = tmp_path / 'key.png'
    path.write_bytes(data)

    assert main([str(path), '--seed', '0']) == 0
    assert 'Transparency (tRNS): present' in capsys.readouterr().out
    header, _ = decodePNG(tmp_path / 'key-unpeeled.png')
    assert header.transparency == b'\x00\x09\x00\x09\x00\x09'


def test_unwritable_output_is_fatal(tmp_path, monkeypatch):
    path = tmp_path / 'x.png'
    path.write_bytes(make_png(1, 1, 8, 0, [[1]]))

    def refuse(*args, **kwargs):
        raise PermissionError('read-only')

    monkeypatch.setattr('unpeel.main.write_png_image', refuse)
    assert main([str(path)]) == 1


def test_show_uses_preview(rgba_png, monkeypatch):
    path, _ = rgba_png
    calls = []
    monkeypatch.setattr('unpeel.preview.show_comparison', lambda *a: calls.append(a))
    assert main([str(path), '--show', '--seed', '2']) == 0
    assert calls == [(path, path.with_name('photo-unpeeled.png'))]


def test_inflate_flag(tmp_path, capsys):
    data = make_png(1, 1, 8, 0, [[1]], extra=[(b'zTXt', b'Comment\x00\x00' + zlib.compress(b'hi'))])
    path = tmp_path / 'z.png'
    path.write_bytes(data)
    assert main([str(path), '--inflate']) == 0
    assert "text='hi'" in capsys.readouterr().out


def test_preview_backend_failure_is_only_a_warning(rgba_png, monkeypatch, caplog):
    path, _ = rgba_png

    def no_display(*args):
        raise RuntimeError('no display available')

    monkeypatch.setattr('unpeel.preview.show_comparison', no_display)
    assert main([str(path), '--show']) == 0
    assert 'preview failed: no display available' in caplog.text


def test_preview_programming_errors_propagate(rgba_png, monkeypatch):
    path, _ = rgba_png

    def broken(*args):
        raise TypeError('bad call')

    monkeypatch.setattr('unpeel.preview.show_comparison', broken)
    with pytest.raises(TypeError):
        main([str(path), '--show'])
