"""Menu navigation for the interactive explorer.

`ExplorerMenu.run` loops over the main menu and dispatches to the goal /
indicator / series / area / trend workflows. A failed API call inside a
workflow is reported on the console and the user lands back in the main
menu; the process never exits on a single bad query.
"""

from __future__ import annotations

import logging
import os
import pathlib
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pandas as pd

from ..config import SDGConfig
from ..downloader.client import RequestFailure, SDGClient
from ..downloader.data import compare_trends, get_indicator_data, get_series_data
from ..downloader.metadata import (
    get_geoareas,
    get_goals,
    get_indicators,
    get_series,
    search_indicators,
)
from ..downloader.storage import UnsupportedFormat, export_data
from .display import (
    DisplayAction,
    PaginatedDisplay,
    display_table,
    print_error,
    print_info,
    print_loaded,
    print_loading,
    print_warning,
    show_header,
    show_separator,
)
from .input import InputValidator, parse_list_input, parse_year_input

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

EXPORT_FORMATS: Dict[str, str] = {
    "csv": ".csv",
    "c": ".csv",
    "json": ".json",
    "j": ".json",
    "arrow": ".arrow",
    "a": ".arrow",
    "excel": ".xlsx",
    "x": ".xlsx",
}

SERIES_THRESHOLD = 0.6
AREA_THRESHOLD = 0.7
DATA_PAGE_SIZE = 50


def _text_column(df: pd.DataFrame, col: str) -> List[str]:
    return df[col].fillna("").astype(str).tolist()


class ExplorerMenu:
    """Interactive SDG data explorer.

    Parameters
    ----------
    client
        Shared `SDGClient`; its metadata cache persists across menu visits.
    input_fn, output
        Console line reader / printer.
    exporter
        ``(df, path) -> path`` used by every export; defaults to `export_data`.
    output_dir
        Directory interactive exports are written to.
    now
        Clock used for export timestamps.
    """

    def __init__(
        self,
        client: SDGClient,
        *,
        input_fn: Callable[[str], str] = input,
        output: Callable[..., None] = print,
        validator: Optional[InputValidator] = None,
        pager: Optional[PaginatedDisplay] = None,
        exporter: Callable[..., object] = export_data,
        output_dir: str | os.PathLike = ".",
        now: Callable[[], datetime] = datetime.now,
    ):
        self.client = client
        self._input = input_fn
        self._out = output
        self.validator = validator or InputValidator(input_fn=input_fn, output=output)
        self.pager = pager or PaginatedDisplay(input_fn=input_fn, output=output)
        self._exporter = exporter
        self.output_dir = pathlib.Path(output_dir)
        self._now = now

    # ------------------------------------------------------------------
    # Console primitives
    # ------------------------------------------------------------------

    def ask(self, prompt: str = "") -> str:
        return self._input(prompt).strip()

    def pause(self, prompt: str = "\nPress Enter to continue...") -> None:
        self._input(prompt)

    def _display(self, df: pd.DataFrame, max_rows: int = 20, show_summary: bool = True) -> DisplayAction:
        return display_table(
            df, max_rows=max_rows, show_summary=show_summary, pager=self.pager, output=self._out
        )

    def _guarded(self, action: Callable[[], None], label: str) -> None:
        try:
            action()
        except RequestFailure as exc:
            logger.error("%s failed: %s", label, exc)
            print_error(f"Failed to {label}: {exc}", output=self._out)
            self._out("\nThe API request timed out or failed. Please try again.")
        except (UnsupportedFormat, OSError) as exc:
            logger.error("%s failed: %s", label, exc)
            print_error(f"Failed to {label}: {exc}", output=self._out)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        show_header("UN STATS SDG DATA EXPLORER", output=self._out)

        actions: Dict[str, tuple[Callable[[], None], str]] = {
            "g": (self.explore_goals, "browse goals"),
            "i": (self.search_flow, "search indicators"),
            "s": (self.series_flow, "fetch series data"),
            "a": (self.areas_flow, "list geographic areas"),
            "c": (self.trends_flow, "compare trends"),
        }

        while True:
            self._out()
            show_separator("-", output=self._out)
            self._out("MAIN MENU")
            show_separator("-", output=self._out)
            self._out("  [g] - Browse Goals")
            self._out("  [i] - Search Indicators")
            self._out("  [s] - Query Series Data")
            self._out("  [a] - List Geographic Areas")
            self._out("  [c] - Compare Trends")
            self._out("  [q] - Quit")

            choice = self.ask("\nChoice: ").lower()
            if choice == "q":
                print_info("Goodbye!", output=self._out)
                return
            if choice not in actions:
                print_error("Invalid choice. Please try again.", output=self._out)
                continue
            action, label = actions[choice]
            self._guarded(action, label)

    # ------------------------------------------------------------------
    # Goals → indicators → data
    # ------------------------------------------------------------------

    def explore_goals(self) -> None:
        goals = get_goals(self.client)

        show_header(f"SDG GOALS ({len(goals)} total)", output=self._out)
        self._display(goals, max_rows=17)

        self._out("\n📌 NAVIGATION:")
        self._out("  • Enter a goal code (1-17) to explore indicators")
        self._out("  • Type 'back' or 'b' to return to main menu")
        self._out("  • Type 'export' or 'e' to save goals list")
        choice = self.ask("\nYour choice: ")

        if choice.lower() in ("back", "b", ""):
            return
        if choice.lower() in ("export", "e"):
            path = self._exporter(goals, self.output_dir / "sdg_goals.csv")
            self._out(f"✓ Exported to {path}")
            self.pause()
            return
        self.explore_goal_detail(choice)

    def explore_goal_detail(self, goal_code: str) -> None:
        show_header(f"GOAL {goal_code} - INDICATORS", output=self._out)
        indicators = get_indicators(self.client, goal=goal_code)

        if indicators.empty:
            print_warning(f"No indicators found for goal {goal_code}", output=self._out)
            self.pause("\nPress Enter to return...")
            return

        self._display(indicators, max_rows=20)

        self._out("\n📌 NAVIGATION:")
        self._out(f"  • Enter an indicator code (e.g., {indicators['code'].iloc[0]}) to view data")
        self._out("  • Type 'search <keyword>' or 's <keyword>' to search indicators")
        self._out("  • Type 'export' or 'e' to save indicator list")
        self._out("  • Type 'back' or 'b' to return")
        choice = self.ask("\nYour choice: ")
        lowered = choice.lower()

        if lowered in ("back", "b", ""):
            return
        if lowered in ("export", "e"):
            path = self._exporter(indicators, self.output_dir / f"goal_{goal_code}_indicators.csv")
            self._out(f"✓ Exported to {path}")
            self.pause()
            return
        if lowered.startswith("search ") or lowered.startswith("s "):
            keyword = choice.split(" ", 1)[1].strip()
            self._out(f"\n🔍 Searching for: '{keyword}'")
            results = search_indicators(self.client, keyword, goal=goal_code)
            self._display(results)
            self.pause()
            return
        self.explore_indicator_data(choice)

    def explore_indicator_data(self, indicator_code: str) -> None:
        show_header(f"INDICATOR {indicator_code} - DATA QUERY", output=self._out)

        self._out("\n📊 FETCH OPTIONS:")
        self._out("  • Type 'all' or 'a' for all available data (may be large)")
        self._out("  • Type 'filter' or 'f' to specify countries and years")
        self._out("  • Type 'back' or 'b' to return")
        choice = self.ask("\nYour choice: ").lower()

        if choice in ("back", "b", ""):
            return
        if choice in ("all", "a"):
            print_loading(f"Fetching all data for indicator {indicator_code}", output=self._out)
            data = get_indicator_data(self.client, indicator=indicator_code)
            if data.empty:
                print_warning("No data available for this indicator", output=self._out)
                self.pause()
                return
            action = self._display(data, max_rows=DATA_PAGE_SIZE)
            self.offer_export(data, f"indicator_{indicator_code}", action)
            return
        if choice in ("filter", "f"):
            self.filtered_query(indicator_code)
            return

        print_warning("Invalid choice. Please try again.", output=self._out)
        self.pause()

    def filtered_query(self, indicator_code: str) -> None:
        show_header("FILTERED QUERY BUILDER", output=self._out)

        self._out("\n🌍 COUNTRY SELECTION:")
        self._out("  Enter country codes separated by commas (e.g., USA, GBR, JPN)")
        self._out("  Or leave empty to include all countries")
        country_input = self.ask("\nCountry codes: ")
        countries = self._resolve_areas(country_input)
        if parse_list_input(country_input) and not countries:
            print_warning("No valid country codes. Query cancelled.", output=self._out)
            self.pause("\nPress Enter to return...")
            return

        self._out("\n📅 TIME PERIOD SELECTION:")
        self._out("  Enter years as:")
        self._out("    • Range: 2010-2020")
        self._out("    • List: 2010, 2015, 2020")
        self._out("  Or leave empty to include all years")
        years = self.ask_years("\nYears: ")

        self._out("\n📋 QUERY SUMMARY:")
        self._out(f"  Indicator: {indicator_code}")
        self._out(f"  Countries: {', '.join(countries) if countries else 'All'}")
        self._out(f"  Years: {', '.join(map(str, years)) if years else 'All'}")

        if self.ask("\nProceed with query? (y/n): ").lower() != "y":
            print_warning("Query cancelled", output=self._out)
            self.pause("\nPress Enter to return...")
            return

        print_loading("Fetching filtered data", output=self._out)
        data = get_indicator_data(
            self.client,
            indicator=indicator_code,
            geoareas=countries or None,
            time_period=years,
        )

        if data.empty:
            print_warning("No data found matching your criteria", output=self._out)
            self._out("\nTry:")
            self._out("  • Different country codes")
            self._out("  • Different time period")
            self._out("  • Removing filters to see all available data")
            self.pause("\nPress Enter to return...")
            return

        action = self._display(data, max_rows=DATA_PAGE_SIZE)
        self.offer_export(data, f"indicator_{indicator_code}_filtered", action)

    # ------------------------------------------------------------------
    # Other workflows
    # ------------------------------------------------------------------

    def search_flow(self) -> None:
        keyword = self.ask("\nEnter search keyword: ")
        if not keyword:
            return
        results = search_indicators(self.client, keyword)
        self._display(results)

    def areas_flow(self) -> None:
        areas = get_geoareas(self.client)
        action = self._display(areas, max_rows=DATA_PAGE_SIZE)
        self.offer_export(areas, "geoareas", action)

    def series_flow(self) -> None:
        series_code = self._choose_series()
        if series_code is None:
            return

        country_input = self.ask("\nEnter country codes (comma-separated, or leave empty): ")
        countries = self._resolve_areas(country_input)

        print_loading("Fetching series data", output=self._out)
        data = get_series_data(self.client, series=series_code, geoareas=countries or None)
        print_loaded(f"Fetched {len(data)} data points", output=self._out)

        action = self._display(data, max_rows=DATA_PAGE_SIZE)
        self.offer_export(data, f"series_{series_code}", action)

    def trends_flow(self) -> None:
        series_code = self._choose_series()
        if series_code is None:
            return

        self._out("\nEnter years (comma-separated or range like 2010-2020): ")
        years = self.ask_years("Years: ")
        if not years:
            print_warning("No years given. Skipping trend comparison.", output=self._out)
            return

        areas_input = self.ask("\nEnter area codes (comma-separated, e.g., 001 for World): ")
        areas = self._resolve_areas(areas_input)
        if not areas:
            print_warning("No valid areas specified. Skipping trend comparison.", output=self._out)
            return

        print_loading("Comparing trends", output=self._out)
        data = compare_trends(
            self.client, series_code=series_code, years=years, area_codes=areas
        )
        print_loaded(f"Fetched {len(data)} data points", output=self._out)

        action = self._display(data, max_rows=DATA_PAGE_SIZE)
        self.offer_export(data, f"trends_{series_code}", action)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def ask_years(self, prompt: str) -> Optional[List[int]]:
        """Re-prompt until the years parse; empty input means "all years"."""
        while True:
            text = self.ask(prompt)
            if not text:
                return None
            years = parse_year_input(text)
            if years is not None:
                return years
            print_warning("Invalid year format. Use 2010-2020 or 2010, 2015, 2020", output=self._out)

    def _choose_series(self) -> Optional[str]:
        print_loading("Loading series list", output=self._out)
        series_list = get_series(self.client)
        print_loaded(f"Loaded {len(series_list)} series", output=self._out)

        code, _ = self.validator.resolve_one(
            "\nEnter series code: ",
            _text_column(series_list, "code"),
            _text_column(series_list, "description"),
            allow_empty=True,
            fuzzy_threshold=SERIES_THRESHOLD,
        )
        return code

    def _resolve_areas(self, text: str) -> List[str]:
        if not parse_list_input(text):
            return []
        print_loading("Loading geographic areas", output=self._out)
        geoareas = get_geoareas(self.client)
        print_loaded(f"Loaded {len(geoareas)} geographic areas", output=self._out)

        self._out("\n⏳ Validating areas...")
        return self.validator.resolve_many(
            text,
            _text_column(geoareas, "geoAreaCode"),
            _text_column(geoareas, "geoAreaName"),
            fuzzy_threshold=AREA_THRESHOLD,
        )

    def offer_export(self, df: pd.DataFrame, base_name: str, action: DisplayAction) -> None:
        if df.empty:
            return
        if action is DisplayAction.EXPORT or self.ask("\nExport data? (y/n): ").lower() == "y":
            self.export_choice(df, base_name)

    def export_choice(self, df: pd.DataFrame, base_name: str) -> Optional[pathlib.Path]:
        """Ask for a format and export *df* as ``<base_name>_<timestamp><ext>``."""
        self._out("\n💾 EXPORT OPTIONS:")
        self._out("  • Type 'csv' or 'c' for CSV format")
        self._out("  • Type 'json' or 'j' for JSON format")
        self._out("  • Type 'arrow' or 'a' for Arrow format (efficient binary)")
        self._out("  • Type 'excel' or 'x' for Excel format")
        self._out("  • Type 'no' or 'n' to skip export")
        choice = self.ask("\nExport format (or skip): ").lower()

        if choice in ("no", "n", ""):
            return None
        ext = EXPORT_FORMATS.get(choice)
        if ext is None:
            print_warning("Invalid format. Export skipped.", output=self._out)
            self.pause()
            return None

        timestamp = self._now().strftime("%Y%m%d_%H%M%S")
        path = pathlib.Path(self._exporter(df, self.output_dir / f"{base_name}_{timestamp}{ext}"))
        self._out(f"\n✓ Exported {len(df)} rows to: {path}")
        self.pause()
        return path


def interactive_explorer(config: Optional[SDGConfig] = None, **client_kwargs) -> None:
    """Main interactive explorer entry point."""
    with SDGClient(config, **client_kwargs) as client:
        ExplorerMenu(client).run()
