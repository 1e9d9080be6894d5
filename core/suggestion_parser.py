import logging
import re
from dataclasses import dataclass
from typing import Final, Optional, Protocol
from model.suggestions import SuggestionSections

logger = logging.getLogger(__name__)

# "<digits>. " starts a new enumerated item
ITEM_SPLIT: Final[re.Pattern[str]] = re.compile(r"\d+\.\s")
TRAILING_SEPARATORS: Final[tuple[str, ...]] = (";", "；")
MARKER_DECORATION: Final[str] = " \t\r\n:：*#【】[]"


@dataclass(frozen=True)
class SectionMarkers:
    advantages: str = "优势亮点"
    weaknesses: str = "不足之处"
    improvements: str = "改进建议"

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.advantages, self.weaknesses, self.improvements)


DEFAULT_MARKERS: Final[SectionMarkers] = SectionMarkers()


class SuggestionParser(Protocol):
    def parse(self, source_text: str) -> SuggestionSections: ...


class MarkerSuggestionParser:
    """
    Best-effort extraction of the three suggestion sections from free text.

    Each marker is located by its first occurrence. A section spans from the
    end of its marker to the nearest marker that starts after it (or the end
    of the text), so markers may appear in any order or not at all.
    """

    def __init__(self, markers: SectionMarkers = DEFAULT_MARKERS) -> None:
        self._markers = markers

    def parse(self, source_text: str) -> SuggestionSections:
        text = source_text or ""
        markers = self._markers.as_tuple()
        positions = [text.find(m) for m in markers]

        sections: list[Optional[list[str]]] = []
        for marker, start in zip(markers, positions):
            if start < 0:
                sections.append(None)
                continue
            following = [p for p in positions if p > start]
            end = min(following) if following else len(text)
            sections.append(self._items(text[start + len(marker):end]))

        advantages, weaknesses, improvements = sections
        logger.debug(
            "suggestions.parsed adv=%s weak=%s impr=%s",
            _count(advantages),
            _count(weaknesses),
            _count(improvements),
        )
        return SuggestionSections(
            advantages=advantages, weaknesses=weaknesses, improvements=improvements
        )

    def _items(self, span: str) -> list[str]:
        out: list[str] = []
        for fragment in ITEM_SPLIT.split(span):
            item = fragment.strip()
            for sep in TRAILING_SEPARATORS:
                if item.endswith(sep):
                    item = item[: -len(sep)].rstrip()
                    break
            if self._is_noise(item):
                continue
            out.append(item)
        return out

    def _is_noise(self, item: str) -> bool:
        # Empty, punctuation only, or a restatement of a marker
        core = item.strip(MARKER_DECORATION)
        return not core or core in self._markers.as_tuple()


def _count(items: Optional[list[str]]) -> str:
    return "-" if items is None else str(len(items))


_default_parser = MarkerSuggestionParser()


def parse(source_text: str) -> SuggestionSections:
    return _default_parser.parse(source_text)
