from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict


@dataclass
class TextStatistics:
    word_count: int
    char_count: int
    line_count: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def calculate_text_statistics(content: str) -> TextStatistics:
    """Whitespace-separated words, characters, and ``\\n``-separated lines."""
    return TextStatistics(
        word_count=len(content.split()),
        char_count=len(content),
        line_count=content.count("\n") + 1,
    )
