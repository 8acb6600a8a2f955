"""Display utilities for the interactive explorer.

Table rendering goes through ``DataFrame.to_string``; large results are
paged by `PaginatedDisplay`, a small state machine over page numbers:

    n / Enter  next page      (Enter on the last page leaves the pager)
    p          previous page
    f / l      first / last page
    <number>   jump to page
    e          leave and request an export
    q          leave
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Optional, Tuple

import pandas as pd

WIDTH = 70
SUMMARY_COLUMNS = ("geoAreaName", "timePeriod", "indicator", "goal", "code", "title")


class DisplayAction(Enum):
    NONE = "none"
    EXPORT = "export"


# ------------------------------------------------------------------
# Console helpers
# ------------------------------------------------------------------


def show_separator(char: str = "─", width: int = WIDTH, output: Callable[..., None] = print) -> None:
    output(char * width)


def show_header(text: str, output: Callable[..., None] = print) -> None:
    output("\n" + "=" * WIDTH)
    output(text)
    output("=" * WIDTH)


def print_info(msg: str, output: Callable[..., None] = print) -> None:
    output(f"ℹ️  {msg}")


def print_warning(msg: str, output: Callable[..., None] = print) -> None:
    output(f"⚠️  {msg}")


def print_error(msg: str, output: Callable[..., None] = print) -> None:
    output(f"❌ {msg}")


def print_loading(msg: str, output: Callable[..., None] = print) -> None:
    output(f"⏳ {msg}...")


def print_loaded(msg: str, output: Callable[..., None] = print) -> None:
    output(f"✓ {msg}")


def show_data_summary(df: pd.DataFrame, output: Callable[..., None] = print) -> None:
    """Show row / column counts and unique values of the key columns."""
    output("\n" + "=" * WIDTH)
    output("📊 DATA SUMMARY")
    output("=" * WIDTH)
    output(f"  Total rows: {len(df)}")
    output(f"  Total columns: {len(df.columns)}")
    if len(df.columns) > 0:
        output(f"  Columns: {', '.join(map(str, df.columns))}")

    for col in SUMMARY_COLUMNS:
        if col not in df.columns:
            continue
        unique_vals = df[col].dropna().unique()
        if len(unique_vals) <= 5:
            output(f"  Unique {col}: {', '.join(map(str, unique_vals))}")
        else:
            output(f"  Unique {col}: {len(unique_vals)}")
    output("=" * WIDTH)


# ------------------------------------------------------------------
# Pager
# ------------------------------------------------------------------


class PaginatedDisplay:
    """Interactive page-by-page table viewer.

    Parameters
    ----------
    input_fn, output
        Line reader and printer; ``input`` / ``print`` by default.
    max_columns
        Columns rendered before pandas elides the middle ones.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output: Callable[..., None] = print,
        max_columns: int = 10,
    ):
        self._input = input_fn
        self._out = output
        self.max_columns = max_columns
        self.current_page = 1

    @staticmethod
    def total_pages(row_count: int, page_size: int) -> int:
        return max(1, math.ceil(row_count / page_size))

    @staticmethod
    def page_bounds(page: int, row_count: int, page_size: int) -> Tuple[int, int]:
        """0-based ``[start, end)`` row slice of *page* (1-based)."""
        start = (page - 1) * page_size
        return start, min(start + page_size, row_count)

    def render(self, df: pd.DataFrame) -> str:
        return df.to_string(max_cols=self.max_columns)

    def _render_page(self, df: pd.DataFrame, page: int, page_size: int, total: int) -> None:
        start, end = self.page_bounds(page, len(df), page_size)
        chunk = df.iloc[start:end].copy()
        # 1-based row numbers across pages
        chunk.index = range(start + 1, end + 1)
        self._out(f"\nPage {page}/{total}: rows {start + 1}-{end} of {len(df)}")
        self._out(self.render(chunk))

    def _warn(self, msg: str) -> None:
        print_warning(msg, output=self._out)

    def show(self, df: pd.DataFrame, page_size: int = 20) -> DisplayAction:
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {page_size}")

        self.current_page = 1
        if len(df) <= page_size:
            self._out()
            self._out(self.render(df.reset_index(drop=True)))
            return DisplayAction.NONE

        total = self.total_pages(len(df), page_size)
        while True:
            page = self.current_page
            self._render_page(df, page, page_size, total)
            cmd = self._input(
                "\n[n]ext [p]rev [f]irst [l]ast [#] page [e]xport [q]uit: "
            ).strip().lower()

            if cmd == "":
                if page == total:
                    return DisplayAction.NONE
                self.current_page = page + 1
            elif cmd in ("n", "next"):
                if page == total:
                    self._warn("Already on the last page")
                else:
                    self.current_page = page + 1
            elif cmd in ("p", "prev", "previous"):
                if page == 1:
                    self._warn("Already on the first page")
                else:
                    self.current_page = page - 1
            elif cmd in ("f", "first"):
                self.current_page = 1
            elif cmd in ("l", "last"):
                self.current_page = total
            elif cmd in ("q", "quit"):
                return DisplayAction.NONE
            elif cmd in ("e", "export"):
                return DisplayAction.EXPORT
            elif cmd.isdigit():
                target = int(cmd)
                if 1 <= target <= total:
                    self.current_page = target
                else:
                    self._warn(f"Page must be between 1 and {total}")
            else:
                self._warn(f"Unknown command '{cmd}'")


def display_table(
    df: pd.DataFrame,
    *,
    max_rows: int = 20,
    show_summary: bool = True,
    pager: Optional[PaginatedDisplay] = None,
    output: Callable[..., None] = print,
) -> DisplayAction:
    """Show summary and a paged table of *df*."""
    if df.empty:
        output("\n⚠️  No data to display")
        return DisplayAction.NONE

    if show_summary:
        show_data_summary(df, output=output)

    pager = pager or PaginatedDisplay(output=output)
    return pager.show(df, page_size=max_rows)
