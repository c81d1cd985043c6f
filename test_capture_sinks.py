"""
Capture source and sink tests (no clipboard or registry access needed)
"""
import io
import sys
import types

import cv2
import numpy as np
import pytest

from palette_grid.capture import CapturedImage, FileSource
from palette_grid.errors import InvalidImageError, SinkError
from palette_grid.sinks import FileSink, RegistrySink, StreamSink


def test_captured_image_validates_buffer_length():
    image = CapturedImage(width=2, height=2, pixels=b"\x00" * 15, mode="RGBA")

    with pytest.raises(InvalidImageError):
        image.to_array()
    with pytest.raises(InvalidImageError):
        CapturedImage(width=0, height=2, pixels=b"", mode="RGB").to_array()
    with pytest.raises(InvalidImageError):
        CapturedImage(width=1, height=1, pixels=b"\x00", mode="L").to_array()


def test_captured_image_discards_alpha():
    pixels = bytes([10, 20, 30, 0, 40, 50, 60, 255])
    arr = CapturedImage(width=2, height=1, pixels=pixels, mode="RGBA").to_array()

    assert arr.shape == (1, 2, 3)
    assert arr.tolist() == [[[10, 20, 30], [40, 50, 60]]]


def test_from_array_and_digest():
    arr = np.zeros((3, 4, 3), dtype=np.uint8)
    image = CapturedImage.from_array(arr)

    assert (image.width, image.height, image.mode) == (4, 3, "RGB")
    assert image.digest() == CapturedImage.from_array(arr.copy()).digest()

    arr[1, 1] = 1
    assert image.digest() != CapturedImage.from_array(arr).digest()
    # same bytes, different geometry
    reshaped = CapturedImage(width=3, height=4, pixels=image.pixels, mode="RGB")
    assert image.digest() != reshaped.digest()


def test_file_source_reads_rgb(tmp_path):
    path = tmp_path / "shot.png"
    source = FileSource(path)
    assert source.grab() is None

    rgb = np.zeros((5, 6, 3), dtype=np.uint8)
    rgb[:, :3] = (255, 0, 0)
    cv2.imwrite(str(path), cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))

    image = source.grab()
    assert (image.width, image.height) == (6, 5)
    assert np.array_equal(image.to_array(), rgb)


def test_file_source_ignores_unreadable_file(tmp_path):
    path = tmp_path / "partial.png"
    path.write_bytes(b"\x89PNG\r\n")

    assert FileSource(path).grab() is None


def test_file_sink_replaces_contents(tmp_path):
    path = tmp_path / "out" / "grid.txt"
    sink = FileSink(path)

    sink.write("0.25:0.50,0.75:0.50")
    sink.write("0.75:0.50")

    assert path.read_bytes() == b"0.75:0.50"
    assert [p.name for p in path.parent.iterdir()] == ["grid.txt"]


def test_stream_sink():
    stream = io.StringIO()
    StreamSink(stream).write("0.25:0.50")

    assert stream.getvalue() == "0.25:0.50\n"


@pytest.mark.skipif(sys.platform == "win32", reason="registry exists on Windows")
def test_registry_sink_needs_windows(monkeypatch):
    monkeypatch.setitem(sys.modules, "winreg", None)
    with pytest.raises(SinkError):
        RegistrySink()


class FakeKey:
    def __init__(self):
        self.values = {}
        self.closed = False

    def Close(self):
        self.closed = True


class FakeWinreg(types.ModuleType):
    """Stands in for the registry so the sink can be exercised off Windows"""

    HKEY_CURRENT_USER = "HKCU"
    REG_BINARY = 3

    def __init__(self):
        super().__init__("winreg")
        self.key = FakeKey()
        self.opened = []

    def CreateKey(self, root, path):
        self.opened.append((root, path))
        return self.key

    def SetValueEx(self, key, name, reserved, kind, data):
        key.values[name] = (kind, data)


def test_registry_sink_writes_binary_value(monkeypatch, capsys):
    fake = FakeWinreg()
    monkeypatch.setitem(sys.modules, "winreg", fake)

    sink = RegistrySink("Software\\Test", "grid")
    sink.write("0.25:0.50")
    sink.close()

    assert fake.opened == [("HKCU", "Software\\Test")]
    assert fake.key.values == {"grid": (3, b"0.25:0.50")}
    assert fake.key.closed
    assert "[SINK] Writing to HKEY_CURRENT_USER\\Software\\Test\\grid" in capsys.readouterr().err
