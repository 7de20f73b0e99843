"""Ordered pages and the line-limit rules."""

from __future__ import annotations

from ghost_typewriter.models import Page, PageSnapshot
from ghost_typewriter.text import count_lines, truncate_lines


class PageStore:
    """Append-only list of pages plus the index of the current one."""

    def __init__(self, max_lines: int, first_background: str = ""):
        self.max_lines = max_lines
        self.pages: list[Page] = [Page(index=0, background_ref=first_background)]
        self.current_index = 0

    @property
    def current(self) -> Page:
        return self.pages[self.current_index]

    @property
    def is_last(self) -> bool:
        return self.current_index == len(self.pages) - 1

    def __len__(self) -> int:
        return len(self.pages)

    def append(self, background_ref: str) -> Page:
        """Add a blank page at the end. Does not move current_index."""
        page = Page(index=len(self.pages), background_ref=background_ref)
        self.pages.append(page)
        return page

    def goto(self, index: int) -> Page:
        if not 0 <= index < len(self.pages):
            raise ValueError(f"Page not found: {index}")
        self.current_index = index
        return self.current

    def snapshot(self, index: int) -> PageSnapshot:
        page = self.pages[index]
        return PageSnapshot(index=page.index, text=page.text, background_ref=page.background_ref)

    def set_current_text(self, text: str) -> None:
        self.current.text = text

    def append_char(self, char: str) -> None:
        self.current.text += char

    def delete_last_char(self) -> str | None:
        page = self.current
        if not page.text:
            return None
        removed = page.text[-1]
        page.text = page.text[:-1]
        return removed

    def would_overflow(
        self,
        page_text: str,
        ghost_text: str = "",
        buffered_text: str = "",
        char: str = "",
    ) -> bool:
        """True if accepting char would open a line past the limit.

        Characters typed on the last line are accepted; a newline typed
        on it is not.

        Args:
            page_text: Committed text of the current page
            ghost_text: Uncommitted suggestion currently rendered
            buffered_text: Keystrokes queued but not yet drained
            char: The candidate character
        """
        return count_lines(page_text, ghost_text, buffered_text, char) > self.max_lines

    def clip(self, text: str) -> str:
        """The part of text that fits after the current page within the limit."""
        page_text = self.current.text
        return truncate_lines(page_text + text, self.max_lines)[len(page_text):]

    def merge(self, text: str) -> str:
        """Append text to the current page, dropping lines past the limit."""
        self.current.text += self.clip(text)
        return self.current.text

    def page_label(self) -> str:
        return f"Page {self.current_index + 1} / {len(self.pages)}"
