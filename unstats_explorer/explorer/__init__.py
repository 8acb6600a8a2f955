"""Interactive terminal layer: fuzzy matching, input validation, paging, menus."""

from __future__ import annotations

from .display import DisplayAction, PaginatedDisplay, display_table
from .input import InputValidator, parse_list_input, parse_year_input
from .matching import MatchCandidate, find_fuzzy_matches, jaro_winkler
from .menu import ExplorerMenu, interactive_explorer

__all__ = [
    "DisplayAction",
    "ExplorerMenu",
    "InputValidator",
    "MatchCandidate",
    "PaginatedDisplay",
    "display_table",
    "find_fuzzy_matches",
    "interactive_explorer",
    "jaro_winkler",
    "parse_list_input",
    "parse_year_input",
]
