"""
AI-Likelihood Detector
story_contest/scoring/ai_detector.py

Estimates how human a story reads. Output is a human-likeness score in
[0, 100] (100 = clearly human) plus the AILikelihood tier the integrity
classifier consumes.

Formula:
    human_like = 0.30 × pattern_score
               + 0.25 × vocabulary_score
               + 0.20 × style_score
               + 0.15 × consistency_score
               + 0.10 × human_traits_score

Tier (any critical indicator forces very_high):
    ≥ 90 very_low | ≥ 75 low | ≥ 50 medium | ≥ 25 high | else very_high
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

import structlog

from story_contest.models.enumerations import AgeBracket, AILikelihood, RiskTier
from story_contest.scoring.text_features import TextProfile
from story_contest.scoring.utils import clamp_score, ratio, std_dev, weighted_score

logger = structlog.get_logger(__name__)

ANALYSIS_WEIGHTS: Dict[str, float] = {
    "pattern_matching": 0.30,
    "vocabulary": 0.25,
    "stylometric": 0.20,
    "semantic_consistency": 0.15,
    "human_characteristics": 0.10,
}


@dataclass
class Indicator:
    kind: str
    severity: RiskTier
    evidence: str
    explanation: str


@dataclass
class AIDetectionResult:
    """Output of AIDetector.detect()."""
    human_like_score: float
    likelihood: AILikelihood
    analyses: Dict[str, int]
    indicators: List[Indicator] = field(default_factory=list)


# ── Assistant signatures ────────────────────────────────────────────────
_SIGNATURES = {
    "assistant_disclaimer": (
        RiskTier.CRITICAL,
        [re.compile(r"as an ai (language model|assistant)", re.I)],
    ),
    "assistant_voice": (
        RiskTier.HIGH,
        [
            re.compile(r"i (?:don't have|lack) (?:personal )?(?:experiences?|memories|feelings)", re.I),
            re.compile(r"i (?:cannot|can't) (?:feel|experience|remember|access)", re.I),
            re.compile(r"it's (?:important|worth|essential) to (?:note|remember|consider)", re.I),
            re.compile(r"(?:furthermore|moreover|additionally), it's (?:crucial|important|vital)", re.I),
            re.compile(r"i'd be happy to help", re.I),
            re.compile(r"i should (?:note|mention|clarify)", re.I),
        ],
    ),
    "expository": (
        RiskTier.MEDIUM,
        [
            re.compile(r"(?:research|studies) (?:shows?|indicates?|suggests?) that", re.I),
            re.compile(r"it (?:has been|is) (?:proven|established|demonstrated) (?:that|to)", re.I),
            re.compile(r"experts? (?:agree|suggest|recommend) that", re.I),
        ],
    ),
    "formulaic": (
        RiskTier.LOW,
        [
            re.compile(r"\b(?:firstly|secondly|thirdly|lastly),", re.I),
            re.compile(r"\b(?:on the other hand|conversely|nevertheless|nonetheless)\b", re.I),
        ],
    ),
}

_SEVERITY_DEDUCTION = {
    RiskTier.CRITICAL: 40,
    RiskTier.HIGH: 25,
    RiskTier.MEDIUM: 15,
    RiskTier.LOW: 5,
}

# ── Vocabulary unusual for the writer's age ─────────────────────────────
_TOO_ADVANCED = {
    AgeBracket.EARLY: {
        "subsequently", "consequently", "nevertheless", "furthermore", "moreover",
        "specifically", "particularly", "significantly", "substantially",
        "comprehensive", "sophisticated", "fundamental", "substantial",
        "preliminary", "subsequent",
    },
    AgeBracket.MIDDLE: {
        "epistemological", "phenomenological", "paradigmatic", "quintessential",
        "ubiquitous", "multifaceted", "juxtaposition", "dichotomy", "synthesis",
        "methodology", "theoretical", "empirical", "hypothetical", "conceptual",
    },
    AgeBracket.TEEN: {
        "phenomenology", "epistemology", "ontological", "hermeneutic",
        "dialectical", "deconstructionist", "postmodern", "metacognitive",
        "heuristic", "paradigmatic",
    },
}
_ADVANCED_SEVERITY = {
    AgeBracket.EARLY: RiskTier.CRITICAL,
    AgeBracket.MIDDLE: RiskTier.HIGH,
    AgeBracket.TEEN: RiskTier.MEDIUM,
}
_ACADEMIC = {
    "furthermore", "moreover", "consequently", "nevertheless", "nonetheless",
    "specifically", "particularly", "significantly", "substantially",
    "comprehensive", "methodology", "theoretical", "empirical", "hypothetical",
    "conceptual", "fundamental", "substantial", "preliminary", "subsequent",
    "ultimately",
}
_ACADEMIC_EXPECTED = {AgeBracket.EARLY: 0.01, AgeBracket.MIDDLE: 0.03, AgeBracket.TEEN: 0.05}

# ── Stylometrics ────────────────────────────────────────────────────────
_TRANSITIONS = (
    "however", "furthermore", "moreover", "consequently", "therefore",
    "nevertheless", "nonetheless", "additionally", "specifically",
)
# (max sophisticated punctuation per sentence, max transitions per sentence)
_STYLE_LIMITS = {
    AgeBracket.EARLY: (0.05, 0.1),
    AgeBracket.MIDDLE: (0.1, 0.2),
    AgeBracket.TEEN: (0.2, 0.3),
}

# ── Human traits ────────────────────────────────────────────────────────
_PERSONAL = ("i remember", "my mom", "my dad", "my friend", "at school", "last week", "yesterday")
_EMOTIONAL = ("excited", "scared", "happy", "sad", "angry", "surprised", "worried")
_TYPICAL_SLIPS = re.compile(r"\b(alot|teh|recieve|seperate|your going|becuase|freind)\b", re.I)
_STOPWORDS = {
    "that", "with", "have", "this", "will", "from", "they", "been", "said",
    "each", "which", "their", "were", "there", "when", "then", "what",
}


def likelihood_from_score(score: float) -> AILikelihood:
    if score >= 90:
        return AILikelihood.VERY_LOW
    if score >= 75:
        return AILikelihood.LOW
    if score >= 50:
        return AILikelihood.MEDIUM
    if score >= 25:
        return AILikelihood.HIGH
    return AILikelihood.VERY_HIGH


class AIDetector:
    """Rule-based AI-generation screen for children's stories."""

    def detect(self, profile: TextProfile, bracket: AgeBracket) -> AIDetectionResult:
        indicators: List[Indicator] = []
        analyses = {
            "pattern_matching": self._patterns(profile, indicators),
            "vocabulary": self._vocabulary(profile, bracket, indicators),
            "stylometric": self._style(profile, bracket, indicators),
            "semantic_consistency": self._consistency(profile, indicators),
            "human_characteristics": self._human_traits(profile, bracket, indicators),
        }
        human_like = float(weighted_score(analyses, ANALYSIS_WEIGHTS))

        likelihood = likelihood_from_score(human_like)
        if any(i.severity == RiskTier.CRITICAL for i in indicators):
            likelihood = AILikelihood.VERY_HIGH

        logger.debug(
            "ai_detection_completed",
            human_like_score=human_like,
            likelihood=likelihood.value,
            indicators=len(indicators),
        )
        return AIDetectionResult(
            human_like_score=human_like,
            likelihood=likelihood,
            analyses=analyses,
            indicators=indicators,
        )

    def _patterns(self, profile: TextProfile, indicators: List[Indicator]) -> int:
        deductions = 0
        for category, (severity, patterns) in _SIGNATURES.items():
            for pattern in patterns:
                for match in pattern.finditer(profile.text):
                    indicators.append(Indicator(
                        "pattern", severity, match.group(0), f"Detected {category} phrasing",
                    ))
                    deductions += _SEVERITY_DEDUCTION[severity]
        return clamp_score(100 - deductions)

    def _vocabulary(self, profile: TextProfile, bracket: AgeBracket, indicators: List[Indicator]) -> int:
        words = [w for w in profile.lower_words if len(w) > 3]
        score = 100
        severity = _ADVANCED_SEVERITY[bracket]
        for word in sorted(set(words) & _TOO_ADVANCED[bracket]):
            indicators.append(Indicator(
                "vocabulary", severity, word, f"'{word}' is unusually advanced for ages {bracket.value}",
            ))
            score -= {RiskTier.CRITICAL: 30, RiskTier.HIGH: 20}.get(severity, 10)

        academic = ratio(sum(1 for w in words if w in _ACADEMIC), len(words))
        if academic > _ACADEMIC_EXPECTED[bracket] * 2:
            indicators.append(Indicator(
                "vocabulary", RiskTier.HIGH, f"{academic:.1%} academic words",
                "Too many formal words for creative writing at this age",
            ))
            score -= 25
        return clamp_score(score)

    def _style(self, profile: TextProfile, bracket: AgeBracket, indicators: List[Indicator]) -> int:
        sentences = max(len(profile.sentences), 1)
        score = 100

        spread = std_dev(profile.sentence_lengths)
        if len(profile.sentences) > 8 and spread < Decimal("2"):
            indicators.append(Indicator(
                "style", RiskTier.MEDIUM, f"sentence length σ={spread}",
                "Unnaturally uniform sentence lengths",
            ))
            score -= 20

        max_punct, max_transitions = _STYLE_LIMITS[bracket]
        punctuation = len(re.findall(r"[;:]|—|–", profile.text)) / sentences
        if punctuation > max_punct:
            severity = RiskTier.HIGH if bracket == AgeBracket.EARLY else RiskTier.MEDIUM
            indicators.append(Indicator(
                "style", severity, f"{punctuation:.2f} semicolons/colons/dashes per sentence",
                "Punctuation more sophisticated than expected for the age",
            ))
            score -= 25 if severity == RiskTier.HIGH else 15

        transitions = sum(1 for t in _TRANSITIONS if t in profile.lower)
        if transitions / sentences > max_transitions:
            indicators.append(Indicator(
                "style", RiskTier.MEDIUM, f"{transitions} formal transitions",
                "Too many formal transitions for creative writing",
            ))
            score -= 15
        return clamp_score(score)

    def _consistency(self, profile: TextProfile, indicators: List[Indicator]) -> int:
        """Penalize abrupt topic changes between consecutive paragraphs."""
        topics = [
            {w for w in re.findall(r"[a-z]{4,}", p.lower()) if w not in _STOPWORDS}
            for p in profile.paragraphs
        ]
        shifts = 0
        for current, following in zip(topics, topics[1:]):
            if current and following and not current & following:
                shifts += 1
        if shifts:
            indicators.append(Indicator(
                "semantic", RiskTier.LOW, f"{shifts} topic shift(s)",
                "Paragraphs share no vocabulary with their neighbours",
            ))
        return clamp_score(100 - shifts * 15)

    def _human_traits(self, profile: TextProfile, bracket: AgeBracket, indicators: List[Indicator]) -> int:
        score = 100
        length = len(profile.text)
        if length > 200 and not profile.contains_any(_PERSONAL):
            indicators.append(Indicator(
                "behavioral", RiskTier.MEDIUM, "no personal references",
                "Young writers usually include personal references",
            ))
            score -= 15
        if length > 300 and not profile.contains_any(_EMOTIONAL):
            indicators.append(Indicator(
                "behavioral", RiskTier.MEDIUM, "no emotional language",
                "Lack of emotional language is unusual in creative writing",
            ))
            score -= 15
        if bracket == AgeBracket.EARLY and length > 200 and not _TYPICAL_SLIPS.search(profile.text):
            indicators.append(Indicator(
                "behavioral", RiskTier.HIGH, "no typical spelling slips",
                "Flawless writing is unusual for this age",
            ))
            score -= 25
        return clamp_score(score)
