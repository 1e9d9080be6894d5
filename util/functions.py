from typing import Any, Iterable, Optional, Sequence


def clip_words(text: str, max_words: int = 40) -> str:
    """
    - Trim 'text' to at most `max_words` tokens separated by whitespace.
    - Adds an ellipsis when trimming occurs. Used to keep log lines short.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + " …"


def dig(obj: Any, path: Sequence[str]) -> Any:
    """Follow `path` through nested mappings; None as soon as a hop is missing."""
    node = obj
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def first_present(obj: Any, paths: Iterable[Sequence[str]]) -> Optional[str]:
    """Return the first non-empty string found at one of `paths`, in order."""
    for path in paths:
        value = dig(obj, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
