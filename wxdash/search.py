"""Keyboard-navigable geocode suggestion box."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import SUGGESTION_LIMIT
from .models import GeoResult

# Actions returned by SuggestionBox.key()
NONE = "none"
SEARCH = "search"
CHOOSE = "choose"


@dataclass
class SuggestionBox:
    query: str = ""
    suggestions: List[GeoResult] = field(default_factory=list)
    visible: bool = False
    focus: int = -1
    # ArrowDown before any list arrived: preselect the first result on arrival
    pending_arrow_down: bool = False

    def set_query(self, text: str) -> None:
        self.query = text
        self.close()

    def close(self) -> None:
        self.visible = False
        self.focus = -1

    def show(self, results: List[GeoResult]) -> None:
        self.suggestions = list(results[:SUGGESTION_LIMIT])
        self.visible = bool(self.suggestions)
        self.focus = 0 if self.pending_arrow_down and self.visible else -1
        self.pending_arrow_down = False

    def clear(self) -> None:
        self.suggestions = []
        self.pending_arrow_down = False
        self.close()

    @property
    def active(self) -> Optional[GeoResult]:
        if self.visible and 0 <= self.focus < len(self.suggestions):
            return self.suggestions[self.focus]
        return None

    def hover(self, index: int) -> None:
        if 0 <= index < len(self.suggestions):
            self.focus = index

    def key(self, name: str) -> Tuple[str, Optional[GeoResult]]:
        """Handle a key press; returns (action, place) for the caller to run."""
        if self.visible and self.suggestions:
            count = len(self.suggestions)
            if name in ("ArrowDown", "Down"):
                self.focus = 0 if self.focus < 0 else (self.focus + 1) % count
            elif name in ("ArrowUp", "Up"):
                self.focus = count - 1 if self.focus <= 0 else self.focus - 1
            elif name == "Enter":
                place = self.active
                if place is not None:
                    return CHOOSE, place
                return SEARCH, None
            elif name == "Escape":
                self.close()
            return NONE, None

        if name in ("ArrowDown", "Down") and self.query.strip():
            self.pending_arrow_down = True
            return SEARCH, None
        if name == "Enter":
            return SEARCH, None
        return NONE, None
