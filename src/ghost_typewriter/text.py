"""Text helpers for pagination."""


def count_lines(*parts: str) -> int:
    """Line count of the concatenated parts."""
    return "".join(parts).count("\n") + 1


def truncate_lines(text: str, max_lines: int) -> str:
    """Drop every line past max_lines."""
    lines = text.split("\n")
    if len(lines) <= max_lines:
        return text
    return "\n".join(lines[:max_lines])


def count_words(text: str) -> int:
    return len(text.split())
