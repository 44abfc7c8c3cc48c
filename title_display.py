"""Title display split: priority-keyword chip, visible prefix, dimmed remainder.

Etsy search shows roughly the first 40 characters of a title, so the UI
renders that prefix at full strength and dims the rest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from highlighter import Segment, highlight

VISIBLE_TITLE_LENGTH = 40


@dataclass(frozen=True)
class TitleDisplay:
    priority_chip: Optional[str]
    visible_text: str
    hidden_text: str
    visible: List[Segment] = field(default_factory=list)
    hidden: List[Segment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priorityChip": self.priority_chip,
            "visibleText": self.visible_text,
            "hiddenText": self.hidden_text,
            "visible": [s.to_dict() for s in self.visible],
            "hidden": [s.to_dict() for s in self.hidden],
        }


def split_index(text: str, budget: int) -> int:
    """Where the visible part ends: last space within budget, else the budget itself."""
    if len(text) <= budget:
        return len(text)
    if budget <= 0:
        return 0
    boundary = text.rfind(" ", 0, budget + 1)
    return boundary if boundary > 0 else budget


def split_title(
    title: str,
    keywords: Iterable[str],
    priority_keyword: Optional[str] = None,
    budget: int = VISIBLE_TITLE_LENGTH,
) -> TitleDisplay:
    keywords = list(keywords)
    chip: Optional[str] = None
    rest = title

    if priority_keyword and title.lower().startswith(priority_keyword.lower()):
        chip = priority_keyword
        rest = title[len(priority_keyword):]
        budget -= len(priority_keyword)

    cut = split_index(rest, budget)
    visible_text, hidden_text = rest[:cut], rest[cut:]
    return TitleDisplay(
        priority_chip=chip,
        visible_text=visible_text,
        hidden_text=hidden_text,
        visible=highlight(visible_text, keywords),
        hidden=highlight(hidden_text, keywords) if hidden_text else [],
    )
