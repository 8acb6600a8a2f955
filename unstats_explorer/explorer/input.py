"""Input handling for the interactive explorer.

`InputValidator` resolves what the user typed into a known code:

1. empty input → ``None`` (if allowed) or re-prompt
2. case-insensitive exact match → done
3. fuzzy suggestions → pick by number / ``r`` re-enter / ``l`` list codes
4. no suggestions → "Try again? (y/n)"

Reading a line goes through the injectable *input_fn* so the loop can be
driven by a list of scripted answers in tests.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional, Sequence, Tuple

from .matching import find_fuzzy_matches

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))

# Multi-value input has no per-token confirmation, so the bar is higher
AUTO_CORRECT_SCORE = 0.85
LIST_PAGE_SIZE = 20
DESCRIPTION_WIDTH = 60


def parse_list_input(text: str) -> List[str]:
    """Split comma-separated input: ``"USA, GBR"`` → ``["USA", "GBR"]``."""
    if not text or not text.strip():
        return []
    return [item.strip() for item in text.split(",") if item.strip()]


def parse_year_input(text: str) -> Optional[List[int]]:
    """Parse a year range or a comma-separated list.

    ``"2010-2012"`` → ``[2010, 2011, 2012]``; ``"2010, 2015"`` →
    ``[2010, 2015]``. Empty or malformed input gives ``None``.
    """
    text = (text or "").strip()
    if not text:
        return None

    try:
        if "-" in text:
            start_s, end_s = text.split("-", 1)
            start, end = int(start_s.strip()), int(end_s.strip())
            if end < start:
                raise ValueError(f"range end {end} before start {start}")
            return list(range(start, end + 1))
        return [int(y.strip()) for y in text.split(",") if y.strip()]
    except ValueError as exc:
        logger.warning("Failed to parse year input %r: %s", text, exc)
        return None


def _short(desc: str, width: int = DESCRIPTION_WIDTH) -> str:
    return desc if len(desc) <= width else desc[: width - 3] + "..."


def _exact_index(text: str, valid_codes: Sequence[str]) -> Optional[int]:
    wanted = text.lower()
    for i, code in enumerate(valid_codes):
        if str(code).lower() == wanted:
            return i
    return None


class InputValidator:
    """Prompt / validate / suggest loop over a line-oriented console."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output: Callable[..., None] = print,
    ):
        self._input = input_fn
        self._out = output

    def ask(self, prompt: str = "") -> str:
        return self._input(prompt).strip()

    def confirm(self, prompt: str) -> bool:
        return self.ask(prompt).lower() == "y"

    # ------------------------------------------------------------------
    # Single value
    # ------------------------------------------------------------------

    def resolve_one(
        self,
        prompt: str,
        valid_codes: Sequence[str],
        descriptions: Sequence[str],
        *,
        allow_empty: bool = False,
        fuzzy_threshold: float = 0.6,
    ) -> Tuple[Optional[str], bool]:
        """Return ``(code, was_corrected)``; ``(None, False)`` when abandoned."""
        while True:
            text = self.ask(prompt)

            if not text:
                if allow_empty:
                    return None, False
                self._out("⚠️  Input cannot be empty. Please try again.")
                continue

            idx = _exact_index(text, valid_codes)
            if idx is not None:
                self._out(f"✓ Selected: {descriptions[idx]}")
                return str(valid_codes[idx]), False

            suggestions = find_fuzzy_matches(
                text, valid_codes, descriptions, threshold=fuzzy_threshold
            )

            if not suggestions:
                self._show_no_match_tips(text)
                if not self.confirm("\nTry again? (y/n): "):
                    return None, False
                continue

            self._out("\n💡 Did you mean:")
            for i, cand in enumerate(suggestions, start=1):
                pct = round(cand.score * 100)
                self._out(f"  [{i}] {cand.code} - {_short(cand.description)} ({pct}% match)")
            self._out("  [r] Re-enter")
            self._out("  [l] List all available codes")

            choice = self.ask("\nYour choice: ")
            if choice in ("r", ""):
                continue
            if choice == "l":
                self._list_codes(valid_codes, descriptions)
                continue
            if choice.isdigit() and 1 <= int(choice) <= len(suggestions):
                picked = suggestions[int(choice) - 1]
                self._out(f"✓ Selected: {picked.description}")
                return picked.code, True

            self._out("⚠️  Invalid choice. Please try again.")

    def _list_codes(self, valid_codes: Sequence[str], descriptions: Sequence[str]) -> None:
        self._out("\n📋 Available codes:")
        for code, desc in list(zip(valid_codes, descriptions))[:LIST_PAGE_SIZE]:
            self._out(f"  {code} - {_short(str(desc))}")
        if len(valid_codes) > LIST_PAGE_SIZE:
            self._out(f"  ... and {len(valid_codes) - LIST_PAGE_SIZE} more")
        self._out()

    def _show_no_match_tips(self, text: str) -> None:
        self._out(f"\n⚠️  No matches found for '{text}'")
        self._out("\n💡 Tips:")
        self._out("  • Check spelling")
        self._out("  • Try a shorter search term")
        self._out("  • Use partial codes (e.g., '1.1' instead of '1.1.1')")

    # ------------------------------------------------------------------
    # Multiple values
    # ------------------------------------------------------------------

    def resolve_many(
        self,
        text: str,
        valid_codes: Sequence[str],
        descriptions: Sequence[str],
        *,
        fuzzy_threshold: float = 0.7,
    ) -> List[str]:
        """Resolve every comma-separated token of *text*; unknown ones are skipped."""
        selected: List[str] = []
        for part in parse_list_input(text):
            idx = _exact_index(part, valid_codes)
            if idx is not None:
                code = str(valid_codes[idx])
                selected.append(code)
                self._out(f"  ✓ Added: {code}")
                continue

            best = find_fuzzy_matches(
                part, valid_codes, descriptions, threshold=fuzzy_threshold, max_results=1
            )
            if best and best[0].score >= AUTO_CORRECT_SCORE:
                selected.append(best[0].code)
                self._out(f"  ~ Auto-corrected '{part}' to '{best[0].code}'")
            else:
                logger.info("Skipping unresolved code %r", part)
                self._out(f"  ⚠️  Skipping invalid code: '{part}'")
        return selected

    def prompt_many(
        self,
        prompt: str,
        valid_codes: Sequence[str],
        descriptions: Sequence[str],
        *,
        fuzzy_threshold: float = 0.7,
    ) -> List[str]:
        self._out(prompt)
        self._out("(Enter comma-separated values)")
        return self.resolve_many(
            self.ask(), valid_codes, descriptions, fuzzy_threshold=fuzzy_threshold
        )
