"""Input words and the max-words pre-filter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Sequence


@dataclass(frozen=True)
class Word:
    """A word plus its integer weight (occurrence count, score, ...)."""

    text: str
    weight: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", str(self.text))
        object.__setattr__(self, "weight", max(int(self.weight), 0))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Word":
        """Accept both ``{"word", "size"}`` and ``{"text", "weight"}`` shapes."""

        if "word" in data:
            text = data["word"]
        elif "text" in data:
            text = data["text"]
        else:
            raise KeyError("word entry needs a 'word' or 'text' key")
        weight = data.get("size", data.get("weight", 0))
        return cls(text=text, weight=weight)


def coerce_words(items: Iterable[Word | Mapping[str, Any]]) -> List[Word]:
    return [item if isinstance(item, Word) else Word.from_mapping(item) for item in items]


def highest_weight(words: Iterable[Word]) -> int:
    return max((word.weight for word in words), default=0)


def filter_words(words: Sequence[Word], max_words: int) -> List[Word]:
    """Keep the ``max_words`` heaviest words, heaviest first.

    Words sharing a weight keep their input order, so a list already sorted by
    strictly decreasing weight comes back unchanged (just truncated).
    """

    if max_words <= 0:
        return []

    buckets: dict[int, List[Word]] = {}
    for word in words:
        buckets.setdefault(word.weight, []).append(word)

    kept: List[Word] = []
    for weight in sorted(buckets, reverse=True):
        for word in buckets[weight]:
            if len(kept) >= max_words:
                return kept
            kept.append(word)
    return kept


__all__ = ["Word", "coerce_words", "filter_words", "highest_weight"]
