import pytest

from colors import GREEN, NO_DATA_COLOR, RED, YELLOW, color, legend, rgb_string, to_hex


@pytest.mark.parametrize("max_count", [1, 2, 100, 999_999])
def test_zero_is_no_data_gray(max_count):
    assert color(0, max_count) == (226, 232, 240)


@pytest.mark.parametrize("max_count", [1, 7, 100, 999_999])
def test_maximum_is_red(max_count):
    assert color(max_count, max_count) == (245, 101, 101)


@pytest.mark.parametrize("max_count", [2, 10, 100, 1000, 12346])
def test_midpoint_is_about_yellow(max_count):
    r, g, b = color(round(max_count * 0.5), max_count)
    assert abs(r - YELLOW[0]) <= 1
    assert abs(g - YELLOW[1]) <= 1
    assert abs(b - YELLOW[2]) <= 1


def test_low_end_approaches_green():
    r, g, b = color(1, 1_000_000)
    assert (r, g, b) == GREEN


def test_quarter_interpolates_green_to_yellow():
    # t = 0.5 on the first segment: channel midpoints rounded half up
    assert color(25, 100) == (154, 194, 98)


def test_three_quarters_interpolates_yellow_to_red():
    assert color(75, 100) == (241, 151, 88)


def test_ratio_is_clamped():
    assert color(500, 100) == RED


def test_deterministic():
    assert color(37, 91) == color(37, 91)


def test_formatting():
    assert rgb_string(NO_DATA_COLOR) == "rgb(226, 232, 240)"
    assert to_hex(GREEN) == "#48bb78"
    assert to_hex(RED) == "#f56565"


def test_legend():
    assert legend(250) == {
        "low": 0,
        "high": 250,
        "colors": ["#48bb78", "#ecc94b", "#f56565"],
        "noData": "#e2e8f0",
    }
