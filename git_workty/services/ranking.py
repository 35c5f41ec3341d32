"""Fuzzy ranking of worktrees for an external picker."""

from typing import Iterable

from git_workty.models.worktree import WorktreeRecord

_BOUNDARY_CHARS = "/_-."


def fuzzy_score(query: str, name: str) -> float:
    """Score how well `query` matches `name`; 0 means no match.

    Scoring priorities:
    - Exact substring matches score highest
    - Matches at word boundaries (after /, _, -, .) score higher
    - Consecutive character matches score higher
    - Shorter names get a bonus
    """
    if not query:
        return 1.0

    query_lower = query.lower()
    name_lower = name.lower()

    idx = name_lower.find(query_lower)
    if idx != -1:
        boundary_bonus = 0.2 if idx == 0 or name[idx - 1] in _BOUNDARY_CHARS else 0
        exact_bonus = 0.5 if len(query) == len(name) else 0
        length_penalty = len(name) / 200
        return 1.0 + boundary_bonus + exact_bonus - length_penalty

    # Characters in order, not necessarily adjacent
    query_idx = 0
    consecutive_bonus = 0.0
    boundary_bonus = 0.0
    last_match = -2
    for i, char in enumerate(name_lower):
        if query_idx < len(query_lower) and char == query_lower[query_idx]:
            if i == last_match + 1:
                consecutive_bonus += 0.1
            if i == 0 or name[i - 1] in _BOUNDARY_CHARS:
                boundary_bonus += 0.15
            last_match = i
            query_idx += 1

    if query_idx < len(query_lower):
        return 0.0

    base_score = len(query) / len(name)
    length_penalty = len(name) / 300
    return max(0.01, base_score + consecutive_bonus + boundary_bonus - length_penalty)


def rank_worktrees(query: str, records: Iterable[WorktreeRecord]) -> list[WorktreeRecord]:
    """Matching records, best first; ties keep discovery order."""
    scored = []
    for position, record in enumerate(records):
        score = max(fuzzy_score(query, record.name), fuzzy_score(query, record.path.name))
        if score > 0:
            scored.append((score, position, record))
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [record for _, _, record in scored]
