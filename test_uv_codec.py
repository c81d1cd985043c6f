"""
UV codec tests: index <-> coordinate mapping and encoded-string parsing
"""
import numpy as np
import pytest

from palette_grid.uv_codec import (
    decode_indices,
    format_token,
    index_to_uv,
    parse_encoded,
    uv_to_cell,
    uv_to_index,
    uv_token_table,
)


def test_index_to_uv_flips_vertical_axis():
    # top-left cell of a 7x6 palette sits at the top of texture space
    assert index_to_uv(0, 7, 6) == pytest.approx((0.5 / 7, 5.5 / 6))
    # bottom-right cell
    assert index_to_uv(41, 7, 6) == pytest.approx((6.5 / 7, 0.5 / 6))


def test_index_to_uv_range_checks():
    with pytest.raises(ValueError):
        index_to_uv(42, 7, 6)
    with pytest.raises(ValueError):
        index_to_uv(-1, 7, 6)
    with pytest.raises(ValueError):
        index_to_uv(0, 0, 6)


def test_round_trip_through_formatted_tokens():
    cols, rows = 7, 6
    for i, token in enumerate(uv_token_table(cols, rows)):
        u, v = parse_encoded(token)[0]
        assert 0 < u < 1 and 0 < v < 1
        assert uv_to_cell(u, v, cols, rows) == (i // cols, i % cols)
        assert uv_to_index(u, v, cols, rows) == i


def test_format_token():
    assert format_token(0.25, 0.5) == "0.25:0.50"
    assert format_token(1 / 3, 2 / 3) == "0.33:0.67"
    assert format_token(0.25, 0.5, decimals=3) == "0.250:0.500"


def test_parse_encoded_rejects_garbage():
    with pytest.raises(ValueError):
        parse_encoded("")
    with pytest.raises(ValueError):
        parse_encoded("0.25:0.50,0.75")
    with pytest.raises(ValueError):
        parse_encoded("0.25:abc")


def test_decode_indices_restores_grid():
    # 2x2 palette, 3 wide x 2 high output grid
    grid = np.array([[0, 1, 2], [3, 0, 1]])
    tokens = uv_token_table(2, 2)
    encoded = ",".join(tokens[i] for i in [3, 0, 0, 1, 1, 2])

    assert decode_indices(encoded, 2, 2, 3, 2).tolist() == grid.tolist()


def test_decode_indices_checks_token_count():
    with pytest.raises(ValueError):
        decode_indices("0.25:0.50", 2, 1, 2, 1)
