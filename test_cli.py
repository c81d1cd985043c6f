"""
Command line tests for encode / palette / preview
"""
import cv2
import numpy as np

from palette_grid.__main__ import main
from palette_grid.palette import load_palette


def write_image(path, rgb):
    assert cv2.imwrite(str(path), cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
    return str(path)


def test_encode_to_stdout(tmp_path, capsys):
    image = write_image(tmp_path / "flag.png", np.full((33, 50, 3), 255, dtype=np.uint8))

    assert main(["encode", image]) == 0

    tokens = capsys.readouterr().out.strip().split(",")
    assert len(tokens) == 100 * 66
    # white is the top-left palette cell
    assert set(tokens) == {"0.07:0.92"}


def test_encode_to_file_with_custom_geometry(tmp_path):
    image = write_image(tmp_path / "flag.png", np.zeros((10, 10, 3), dtype=np.uint8))
    out = tmp_path / "grid.txt"

    assert main(["encode", image, "--width", "4", "--height", "3", "--output", str(out)]) == 0

    # black is the last cell of the top row
    assert out.read_text() == ",".join(["0.93:0.92"] * 12)


def test_palette_listing(capsys):
    assert main(["palette"]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 42
    assert "rgb=(255, 255, 255)" in lines[0]


def test_preview_writes_image(tmp_path):
    palette = load_palette()
    rgb = np.array([[palette[7], palette[8]]], dtype=np.uint8)
    image = write_image(tmp_path / "in.png", rgb)
    out = tmp_path / "preview.png"

    assert main(["preview", image, str(out), "--width", "2", "--height", "1", "--scale", "4"]) == 0

    written = cv2.cvtColor(cv2.imread(str(out)), cv2.COLOR_BGR2RGB)
    assert written.shape == (4, 8, 3)
    assert tuple(written[0, 0]) == palette[7]
    assert tuple(written[3, 7]) == palette[8]


def test_missing_palette_is_fatal(tmp_path):
    image = write_image(tmp_path / "flag.png", np.zeros((4, 4, 3), dtype=np.uint8))

    assert main(["encode", image, "--palette", str(tmp_path / "nope.png")]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 1
