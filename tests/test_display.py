import pandas as pd
import pytest

from unstats_explorer.explorer.display import DisplayAction, PaginatedDisplay, display_table

from conftest import scripted


@pytest.fixture
def rows37():
    return pd.DataFrame({"geoAreaCode": [f"A{i:02d}" for i in range(37)], "value": range(37)})


def _pager(*answers):
    lines = []
    return PaginatedDisplay(
        input_fn=scripted(*answers), output=lambda *a: lines.append(" ".join(map(str, a)).strip())
    ), lines


def test_page_arithmetic():
    assert PaginatedDisplay.total_pages(37, 15) == 3
    assert PaginatedDisplay.total_pages(0, 15) == 1
    assert PaginatedDisplay.page_bounds(1, 37, 15) == (0, 15)
    assert PaginatedDisplay.page_bounds(3, 37, 15) == (30, 37)


def test_last_then_next_warns_and_stays(rows37):
    pager, lines = _pager("l", "n", "q")

    assert pager.show(rows37, page_size=15) is DisplayAction.NONE
    assert pager.current_page == 3
    assert "Page 3/3: rows 31-37 of 37" in lines
    assert "⚠️  Already on the last page" in lines


def test_prev_on_first_page_warns(rows37):
    pager, lines = _pager("p", "q")
    pager.show(rows37, page_size=15)
    assert pager.current_page == 1
    assert "⚠️  Already on the first page" in lines


def test_enter_advances_and_exits_after_last_page(rows37):
    pager, lines = _pager("", "", "")
    assert pager.show(rows37, page_size=15) is DisplayAction.NONE
    assert [line for line in lines if line.startswith("Page ")] == [
        "Page 1/3: rows 1-15 of 37",
        "Page 2/3: rows 16-30 of 37",
        "Page 3/3: rows 31-37 of 37",
    ]


def test_jump_and_out_of_range(rows37):
    pager, lines = _pager("2", "9", "f", "zz", "q")
    pager.show(rows37, page_size=15)
    assert "Page 2/3: rows 16-30 of 37" in lines
    assert "⚠️  Page must be between 1 and 3" in lines
    assert "⚠️  Unknown command 'zz'" in lines
    assert pager.current_page == 1


def test_export_command(rows37):
    pager, _ = _pager("e")
    assert pager.show(rows37, page_size=15) is DisplayAction.EXPORT


def test_small_frame_is_not_paged():
    def _no_input(_prompt=""):
        raise AssertionError("pager should not prompt")

    lines = []
    pager = PaginatedDisplay(input_fn=_no_input, output=lambda *a: lines.append(" ".join(map(str, a))))
    df = pd.DataFrame({"code": ["1", "2"]})
    assert pager.show(df, page_size=15) is DisplayAction.NONE


def test_invalid_page_size(rows37):
    with pytest.raises(ValueError):
        _pager()[0].show(rows37, page_size=0)


def test_display_table_empty_and_summary(rows37):
    lines = []
    out = lambda *a: lines.append(" ".join(map(str, a)))  # noqa: E731

    assert display_table(pd.DataFrame(), output=out) is DisplayAction.NONE
    assert "\n⚠️  No data to display" in lines

    pager = PaginatedDisplay(input_fn=scripted("q"), output=out)
    display_table(rows37, max_rows=15, pager=pager, output=out)
    assert "  Total rows: 37" in lines
