"""Fuzzy matching of free-text input against (code, description) pairs.

Scores use Jaro-Winkler similarity, which rewards a shared prefix: typing
``"1.1"`` ranks ``"1.1.1"`` above ``"11.1.1"``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

# Description hits are noisier than code hits
DESCRIPTION_WEIGHT = 0.7


@dataclass(frozen=True)
class MatchCandidate:
    code: str
    description: str
    score: float


def jaro_winkler(a: str, b: str, prefix_weight: float = 0.1) -> float:
    """Jaro-Winkler similarity of *a* and *b* in ``[0, 1]``.

    Jaro = (1/3) * (m/|a| + m/|b| + (m-t)/m)
    Winkler = Jaro + L * p * (1 - Jaro), L = common prefix (max 4)

    Case-sensitive; callers lower-case first.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    len_a, len_b = len(a), len(b)
    match_distance = max(0, max(len_a, len_b) // 2 - 1)

    a_matches = [False] * len_a
    b_matches = [False] * len_b
    matches = 0

    for i in range(len_a):
        start = max(0, i - match_distance)
        end = min(i + match_distance + 1, len_b)
        for j in range(start, end):
            if b_matches[j] or a[i] != b[j]:
                continue
            a_matches[i] = True
            b_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i in range(len_a):
        if not a_matches[i]:
            continue
        while not b_matches[k]:
            k += 1
        if a[i] != b[k]:
            transpositions += 1
        k += 1

    jaro = (
        matches / len_a + matches / len_b + (matches - transpositions / 2) / matches
    ) / 3.0

    prefix_len = 0
    for i in range(min(4, len_a, len_b)):
        if a[i] != b[i]:
            break
        prefix_len += 1

    return max(0.0, min(1.0, jaro + prefix_len * prefix_weight * (1.0 - jaro)))


def score_candidate(text: str, code: str, description: str) -> float:
    """Case-insensitive score of *text* against one candidate."""
    text = text.lower()
    code_score = jaro_winkler(text, str(code).lower())
    desc_score = jaro_winkler(text, str(description or "").lower()) * DESCRIPTION_WEIGHT
    return max(code_score, desc_score)


def find_fuzzy_matches(
    text: str,
    valid_codes: Sequence[str],
    descriptions: Sequence[str],
    *,
    threshold: float = 0.6,
    max_results: int = 5,
) -> List[MatchCandidate]:
    """Rank *valid_codes* by similarity to *text*.

    Candidates scoring below *threshold* are dropped; the rest are sorted by
    descending score (ties keep input order) and truncated to *max_results*.
    """
    matches: List[MatchCandidate] = []
    for code, desc in zip(valid_codes, descriptions):
        score = score_candidate(text, code, desc)
        if score >= threshold:
            matches.append(MatchCandidate(str(code), str(desc or ""), score))

    # sorted() is stable
    matches = sorted(matches, key=lambda m: m.score, reverse=True)
    return matches[:max_results]
