"""
Text Features
story_contest/scoring/text_features.py

Partitions a story into words, sentences and paragraphs once, so every
category scorer and integrity detector reads the same view of the text.

Reading level:
    complexity = (avg_words_per_sentence / 20
                  + avg_syllables_per_word / 3
                  + share_of_words_with_3+_syllables) / 3
    < 0.3 Beginner, < 0.5 Elementary, < 0.7 Intermediate, else Advanced
"""

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import List

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_WORD = re.compile(r"[A-Za-z']+")
_SILENT_ENDING = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")
_VOWEL_GROUP = re.compile(r"[aeiouy]{1,2}")


def count_syllables(word: str) -> int:
    """Vowel-group syllable estimate, at least 1."""
    word = re.sub(r"[^a-z]", "", word.lower())
    if len(word) <= 3:
        return 1

    word = _SILENT_ENDING.sub("", word)
    word = re.sub(r"^y", "", word)

    syllables = len(_VOWEL_GROUP.findall(word)) or 1
    if word.endswith("le") and len(word) > 2:
        syllables += 1
    if word.endswith("ion"):
        syllables += 1
    return max(1, syllables)


def count_matches(pattern: "re.Pattern[str]", text: str) -> int:
    return len(pattern.findall(text))


@dataclass
class TextProfile:
    """Partitioned view of one story shared by every scorer."""

    text: str
    lower: str = field(init=False)
    words: List[str] = field(init=False)
    sentences: List[str] = field(init=False)
    paragraphs: List[str] = field(init=False)

    def __post_init__(self):
        self.lower = self.text.lower()
        self.words = _WORD.findall(self.text)
        self.sentences = [
            s.strip() for s in _SENTENCE_SPLIT.split(self.text) if len(s.strip()) > 5
        ]
        self.paragraphs = [
            p.strip() for p in _PARAGRAPH_SPLIT.split(self.text) if len(p.strip()) > 20
        ]

    @property
    def word_count(self) -> int:
        return len(self.words)

    @cached_property
    def lower_words(self) -> List[str]:
        return [w.lower() for w in self.words]

    @cached_property
    def content_words(self) -> List[str]:
        """Lowercased words longer than two letters."""
        return [w for w in self.lower_words if len(w) > 2]

    @cached_property
    def sentence_lengths(self) -> List[int]:
        return [len(s.split()) for s in self.sentences]

    @property
    def first_sentence(self) -> str:
        return self.sentences[0].lower() if self.sentences else ""

    def last_sentences(self, n: int = 3) -> str:
        return " ".join(self.sentences[-n:]).lower()

    @cached_property
    def complexity(self) -> float:
        if not self.words:
            return 0.0
        sentences = max(len(self.sentences), 1)
        syllables = [count_syllables(w) for w in self.words]
        avg_words_per_sentence = len(self.words) / sentences
        avg_syllables = sum(syllables) / len(syllables)
        complex_share = sum(1 for s in syllables if s >= 3) / len(syllables)
        return (avg_words_per_sentence / 20 + avg_syllables / 3 + complex_share) / 3

    @property
    def reading_level(self) -> str:
        complexity = self.complexity
        if complexity < 0.3:
            return "Beginner"
        if complexity < 0.5:
            return "Elementary"
        if complexity < 0.7:
            return "Intermediate"
        return "Advanced"

    def contains_any(self, phrases) -> bool:
        return any(p in self.lower for p in phrases)

    def search(self, pattern: "re.Pattern[str]") -> bool:
        return pattern.search(self.lower) is not None
