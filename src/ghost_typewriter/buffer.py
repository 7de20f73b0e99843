"""Keystroke buffer drained one character per typing tick."""

from collections import deque


class InputBuffer:
    """FIFO of keystrokes that have been accepted but not yet committed."""

    def __init__(self):
        self._queue: deque[str] = deque()

    def enqueue(self, char: str) -> bool:
        """Queue one character.

        Returns:
            False if char is not a single character
        """
        if len(char) != 1:
            return False
        self._queue.append(char)
        return True

    def drain_one(self) -> str | None:
        """Pop the oldest pending character."""
        if not self._queue:
            return None
        return self._queue.popleft()

    def cancel_last(self) -> str | None:
        """Pop the newest pending character (backspace before it lands)."""
        if not self._queue:
            return None
        return self._queue.pop()

    def clear(self) -> None:
        self._queue.clear()

    @property
    def pending_text(self) -> str:
        return "".join(self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)
