"""
Plagiarism Detector
story_contest/scoring/plagiarism_detector.py

Originality screen against well-known passages and non-fiction source
patterns (encyclopedia, academic, news, social media).

Formula:
    originality = 100 − Σ deductions        clamped to [0, 100]
    known passage match     → min(0.3 × confidence, 30)
    source-pattern match    → 15 per occurrence
    repetitive paragraphs   → 0.2 × repetition%   (when repetition > 70%)

Risk level:
    critical if any critical violation or originality < 30
    high     if > 1 severe violation   or originality < 50
    medium   if > 3 violations         or originality < 70
    low      otherwise
"""

import re
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Tuple

import structlog

from story_contest.models.enumerations import RiskTier
from story_contest.scoring.text_features import TextProfile
from story_contest.scoring.utils import clamp_score

logger = structlog.get_logger(__name__)


@dataclass
class Violation:
    kind: str          # exact_match | source_pattern | structure
    severity: str      # moderate | severe | critical
    source: str
    matched_text: str


@dataclass
class PlagiarismResult:
    """Output of PlagiarismDetector.check()."""
    originality_score: float
    risk: RiskTier
    violations: List[Violation] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


# phrase → (confidence, source)
KNOWN_PASSAGES: Dict[str, Tuple[int, str]] = {
    "call me ishmael": (100, "Moby Dick"),
    "it was the best of times": (100, "A Tale of Two Cities"),
    "in a hole in the ground there lived a hobbit": (100, "The Hobbit"),
    "may the force be with you": (95, "Star Wars"),
    "i am your father": (90, "Star Wars"),
    "winter is coming": (95, "Game of Thrones"),
    "the mitochondria is the powerhouse": (100, "Biology textbook"),
    "photosynthesis is the process by which": (95, "Science textbook"),
    "world war ii began in 1939": (90, "History textbook"),
}

SOURCE_PATTERNS: Dict[str, List["re.Pattern[str]"]] = {
    "encyclopedia": [
        re.compile(r"\b\w+\s*\([^)]*born[^)]*\d{4}[^)]*\)\s*(?:is|was)\s*an?\s*\w+", re.I),
        re.compile(r"according to (?:the\s+)?(?:encyclopedia|wikipedia|britannica)", re.I),
        re.compile(r"\[\d+\]|\[citation needed\]|\[edit\]", re.I),
        re.compile(r"see also:|main article:|further reading:", re.I),
    ],
    "academic": [
        re.compile(r"(?:research|studies|evidence) (?:shows?|indicates?|suggests?|demonstrates?)", re.I),
        re.compile(r"scholars? (?:argue|contend|suggest|maintain) that", re.I),
        re.compile(r"peer[- ]reviewed (?:research|studies?|literature)", re.I),
        re.compile(r"statistically significant", re.I),
    ],
    "journalism": [
        re.compile(r"(?:reuters|associated press|ap news|cnn|bbc) (?:reports?|reported)", re.I),
        re.compile(r"(?:breaking|developing) (?:news|story)", re.I),
        re.compile(r"sources? (?:close to|familiar with) the (?:matter|situation)", re.I),
        re.compile(r"in an? (?:exclusive|brief|phone) interview", re.I),
    ],
    "internet": [
        re.compile(r"like and subscribe|smash that like button|don't forget to subscribe", re.I),
        re.compile(r"(?:link in|check) (?:the\s+)?(?:description|bio|comments)", re.I),
        re.compile(r"(?:viral|trending) (?:on|across) social media", re.I),
        re.compile(r"(?<!\w)[#@]\w+"),
    ],
}

_OPENS_WITH_TRANSITION = re.compile(r"^(however|furthermore|moreover|additionally|consequently)\b", re.I)
_CLOSES_WITH_CONCLUSION = re.compile(r"(therefore|thus|in conclusion|finally).*[.!?]$", re.I | re.S)


def _paragraph_shape(paragraph: str) -> Tuple[int, float, bool, bool]:
    sentences = [s for s in re.split(r"[.!?]+", paragraph) if len(s.strip()) > 5]
    lengths = [len(s.split()) for s in sentences] or [0]
    return (
        len(sentences),
        sum(lengths) / len(lengths),
        bool(_OPENS_WITH_TRANSITION.search(paragraph)),
        bool(_CLOSES_WITH_CONCLUSION.search(paragraph)),
    )


def _shape_similarity(a, b) -> float:
    similarity = 0.0
    if abs(a[0] - b[0]) <= 1:
        similarity += 0.3
    if abs(a[1] - b[1]) <= 2:
        similarity += 0.3
    if a[2] == b[2]:
        similarity += 0.2
    if a[3] == b[3]:
        similarity += 0.2
    return similarity


def risk_from_originality(score: float) -> RiskTier:
    """Risk tier implied by an originality score alone."""
    if score < 30:
        return RiskTier.CRITICAL
    if score < 50:
        return RiskTier.HIGH
    if score < 70:
        return RiskTier.MEDIUM
    return RiskTier.LOW


class PlagiarismDetector:
    """Rule-based originality check; no external lookups."""

    def check(self, profile: TextProfile) -> PlagiarismResult:
        violations: List[Violation] = []
        deductions = 0.0

        for phrase, (confidence, source) in KNOWN_PASSAGES.items():
            if phrase in profile.lower:
                severity = "critical" if confidence > 95 else "severe" if confidence > 80 else "moderate"
                violations.append(Violation("exact_match", severity, source, phrase))
                deductions += min(confidence * 0.3, 30)

        for category, patterns in SOURCE_PATTERNS.items():
            for pattern in patterns:
                for match in pattern.finditer(profile.text):
                    violations.append(Violation("source_pattern", "moderate", category, match.group(0)))
                    deductions += 15

        repetition = self.paragraph_repetition(profile)
        if repetition > 70:
            violations.append(Violation("structure", "moderate", "paragraph_analysis", f"{repetition:.0f}% alike"))
            deductions += repetition * 0.2

        score = float(clamp_score(100 - deductions))
        risk = self.risk_level(score, violations)

        logger.debug(
            "plagiarism_check_completed",
            originality_score=score,
            risk=risk.value,
            violations=len(violations),
        )
        return PlagiarismResult(
            originality_score=score,
            risk=risk,
            violations=violations,
            recommendations=self.recommendations(score),
        )

    def paragraph_repetition(self, profile: TextProfile) -> float:
        """Mean pairwise shape similarity of long paragraphs, in percent."""
        shapes = [_paragraph_shape(p) for p in profile.paragraphs if len(p) > 50]
        if len(shapes) < 3:
            return 0.0
        pairs = list(combinations(shapes, 2))
        return sum(_shape_similarity(a, b) for a, b in pairs) / len(pairs) * 100

    def risk_level(self, score: float, violations: List[Violation]) -> RiskTier:
        severities = [v.severity for v in violations]
        if "critical" in severities or score < 30:
            return RiskTier.CRITICAL
        if severities.count("severe") > 1 or score < 50:
            return RiskTier.HIGH
        if len(violations) > 3 or score < 70:
            return RiskTier.MEDIUM
        return RiskTier.LOW

    def recommendations(self, score: float) -> List[str]:
        if score < 50:
            return [
                "Several sections look like they came from other sources. Write the story in your own words.",
                "Use your own experiences and imagination to make the story uniquely yours.",
            ]
        if score < 70:
            return [
                "Some parts might be influenced by other sources. Try writing more in your own voice.",
            ]
        return []
