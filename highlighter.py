"""
KEYWORD HIGHLIGHTER
===================
Splits generated text into plain and keyword-tagged segments so the UI can
mark every SEO keyword that made it into a title or description.

Matching is lexical and case-insensitive (a keyword may match inside a larger
word). When matches overlap, the longer one wins; if two overlapping spans
survive that rule, the one that starts first wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Segment:
    text: str
    keyword: Optional[str] = None   # the keyword that produced this match

    @property
    def matched(self) -> bool:
        return self.keyword is not None

    def to_dict(self) -> Dict[str, object]:
        return {"text": self.text, "matched": self.matched, "keyword": self.keyword}


@dataclass(frozen=True)
class _Match:
    start: int
    end: int
    keyword: str

    @property
    def length(self) -> int:
        return self.end - self.start


def _find_matches(text: str, keywords: Iterable[str]) -> List[_Match]:
    matches: List[_Match] = []
    for keyword in keywords:
        if not keyword:
            continue
        pattern = re.compile(re.escape(keyword), re.IGNORECASE)
        for m in pattern.finditer(text):
            matches.append(_Match(m.start(), m.end(), keyword))
    return matches


def _drop_contained(matches: List[_Match]) -> List[_Match]:
    """Longest match wins: drop spans weakly contained in a strictly longer one."""
    return [
        a for a in matches
        if not any(
            b.length > a.length and b.start <= a.start and b.end >= a.end
            for b in matches
        )
    ]


def _dedupe_spans(matches: List[_Match]) -> List[_Match]:
    seen: Dict[Tuple[int, int], _Match] = {}
    for m in matches:
        seen.setdefault((m.start, m.end), m)
    return list(seen.values())


def highlight(text: str, keywords: Iterable[str]) -> List[Segment]:
    """Split `text` into plain and matched segments; joining them gives back `text`."""
    keywords = list(keywords or [])
    if not text or not keywords:
        return [Segment(text or "")]

    matches = _dedupe_spans(_drop_contained(_find_matches(text, keywords)))
    matches.sort(key=lambda m: m.start)
    if not matches:
        return [Segment(text)]

    segments: List[Segment] = []
    cursor = 0
    for m in matches:
        if m.start < cursor:
            continue
        if m.start > cursor:
            segments.append(Segment(text[cursor:m.start]))
        segments.append(Segment(text[m.start:m.end], m.keyword))
        cursor = m.end

    if cursor < len(text):
        segments.append(Segment(text[cursor:]))
    return segments


def keywords_in_text(text: str, keywords: Iterable[str]) -> List[str]:
    """Keywords that occur anywhere in `text` (case-insensitive), in input order."""
    haystack = (text or "").lower()
    return [k for k in keywords if k and k.lower() in haystack]
