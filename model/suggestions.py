from pydantic import BaseModel


class SuggestionSections(BaseModel):
    # None means the section marker was absent; [] means present with no items.
    advantages: list[str] | None = None
    weaknesses: list[str] | None = None
    improvements: list[str] | None = None

    @property
    def is_empty(self) -> bool:
        return self.advantages is None and self.weaknesses is None and self.improvements is None
