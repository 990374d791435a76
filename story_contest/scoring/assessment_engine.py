"""
Assessment Engine
story_contest/scoring/assessment_engine.py

Scores a story across every registered category, aggregates the sub-scores
with the fixed weight table and attaches the integrity analysis.

Pipeline:
    text → TextProfile
         → CategoryScorer.score() per category      (0-100 each)
         → overall = Σ(score_k × AGGREGATE_WEIGHTS_k)
         → PlagiarismDetector + AIDetector           (skipped below MIN_WORDS_FOR_INTEGRITY)
         → integrity_classifier.classify()
         → educational feedback

compute_assessment() is pure. assess_or_fallback() is the entry point for
callers that must not fail: any scoring error yields the fallback result
with needs_manual_assessment=True.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Dict, List, Optional

import structlog

from story_contest.config import settings
from story_contest.core.exceptions import AssessmentFailureException, ValidationException
from story_contest.models.assessment import (
    AssessmentContext,
    AssessmentResult,
    AssessmentSection,
    IntegrityAnalysis,
)
from story_contest.models.enumerations import AILikelihood, RiskTier
from story_contest.scoring.ai_detector import AIDetector
from story_contest.scoring.category_scorers import CategoryScorer, get_scorers
from story_contest.scoring.feedback import build_feedback
from story_contest.scoring.integrity_classifier import classify
from story_contest.scoring.plagiarism_detector import PlagiarismDetector
from story_contest.scoring.text_features import TextProfile
from story_contest.scoring.utils import mean, weighted_score

logger = structlog.get_logger(__name__)

SECTIONS: Dict[str, List[str]] = {
    "mechanics": ["grammar", "spelling", "vocabulary"],
    "story_elements": ["character_development", "plot_development", "theme_recognition"],
    "creative_skills": ["creativity", "plot_originality", "descriptive_writing", "sensory_details"],
    "organization": ["structure", "plot_logic", "cause_effect"],
    "advanced_elements": ["problem_solving", "age_appropriateness"],
}


class AssessmentEngine:
    """Deterministic, rule-based story assessment."""

    def __init__(
        self,
        scorers: Optional[Dict[str, CategoryScorer]] = None,
        aggregate_weights: Optional[Dict[str, float]] = None,
        plagiarism_detector: Optional[PlagiarismDetector] = None,
        ai_detector: Optional[AIDetector] = None,
        min_words_for_integrity: Optional[int] = None,
        fallback_score: Optional[int] = None,
    ):
        self.scorers = scorers if scorers is not None else get_scorers()
        self.aggregate_weights = aggregate_weights or dict(settings.AGGREGATE_WEIGHTS)
        self.plagiarism_detector = plagiarism_detector or PlagiarismDetector()
        self.ai_detector = ai_detector or AIDetector()
        self.min_words_for_integrity = min_words_for_integrity or settings.MIN_WORDS_FOR_INTEGRITY
        self.fallback_score = (
            settings.FALLBACK_CATEGORY_SCORE if fallback_score is None else fallback_score
        )

        missing = [name for name in self.aggregate_weights if name not in self.scorers]
        if missing:
            raise ValueError(f"No scorer registered for weighted categories: {missing}")

    def compute_assessment(
        self,
        text: str,
        context: Optional[AssessmentContext] = None,
        detailed: bool = False,
    ) -> AssessmentResult:
        """
        Assess one story.

        Args:
            text: Story text
            context: Writer age bracket, genre and collaboration mode
            detailed: Also group categories into sections

        Returns:
            AssessmentResult with category scores, overall score and integrity

        Raises:
            ValidationException: text is empty or whitespace only
        """
        if text is None or not text.strip():
            raise ValidationException("Story text must not be empty")
        context = context or AssessmentContext()
        profile = TextProfile(text)

        category_scores: Dict[str, int] = {}
        category_analysis: Dict[str, str] = {}
        for name, scorer in self.scorers.items():
            outcome = scorer.score(profile, context)
            category_scores[name] = outcome.score
            category_analysis[name] = outcome.analysis

        overall = float(weighted_score(category_scores, self.aggregate_weights))
        integrity = self.assess_integrity(profile, context)

        result = AssessmentResult(
            category_scores=category_scores,
            category_analysis=category_analysis,
            overall_score=overall,
            weights=dict(self.aggregate_weights),
            sections=self.build_sections(category_scores) if detailed else [],
            reading_level=profile.reading_level,
            word_count=profile.word_count,
            integrity=integrity,
            feedback=build_feedback(category_scores, overall, context, integrity),
        )

        logger.info(
            "assessment_computed",
            overall_score=overall,
            word_count=profile.word_count,
            risk_tier=integrity.risk_tier.value,
            detailed=detailed,
        )
        return result

    def assess_integrity(self, profile: TextProfile, context: AssessmentContext) -> IntegrityAnalysis:
        """Run both detectors and classify; short texts are treated as original."""
        if profile.word_count < self.min_words_for_integrity:
            return classify(100.0, AILikelihood.VERY_LOW, RiskTier.LOW, 100.0)

        plagiarism = self.plagiarism_detector.check(profile)
        detection = self.ai_detector.detect(profile, context.age_bracket)
        analysis = classify(
            plagiarism.originality_score,
            detection.likelihood,
            plagiarism_risk=plagiarism.risk,
            ai_likelihood_score=detection.human_like_score,
        )
        if plagiarism.recommendations:
            analysis = analysis.model_copy(
                update={"recommendations": analysis.recommendations + plagiarism.recommendations}
            )
        return analysis

    def build_sections(self, category_scores: Dict[str, int]) -> List[AssessmentSection]:
        sections = []
        for name, categories in SECTIONS.items():
            present = {c: category_scores[c] for c in categories if c in category_scores}
            if not present:
                continue
            sections.append(AssessmentSection(
                name=name,
                score=float(mean(list(present.values())).quantize(Decimal("0.01"))),
                categories=present,
            ))
        return sections

    def fallback_result(self, error: str) -> AssessmentResult:
        """Fixed default assessment used when scoring fails."""
        score = self.fallback_score
        category_scores = {name: score for name in self.scorers}
        integrity = classify(100.0, AILikelihood.VERY_LOW, RiskTier.LOW, 100.0)
        return AssessmentResult(
            category_scores=category_scores,
            category_analysis={name: "Pending manual assessment" for name in self.scorers},
            overall_score=float(score),
            weights=dict(self.aggregate_weights),
            integrity=integrity,
            needs_manual_assessment=True,
            error=error,
        )

    def assess_or_fallback(
        self,
        text: str,
        context: Optional[AssessmentContext] = None,
        detailed: bool = False,
    ) -> AssessmentResult:
        """compute_assessment(), degrading to the fallback result on any failure."""
        try:
            return self.compute_assessment(text, context, detailed=detailed)
        except Exception as e:
            failure = AssessmentFailureException(f"Assessment failed: {e}", {"error_type": type(e).__name__})
            logger.warning(
                "assessment_fallback_used",
                error=failure.message,
                error_type=type(e).__name__,
            )
            return self.fallback_result(failure.message)


@lru_cache
def get_assessment_engine() -> AssessmentEngine:
    return AssessmentEngine()
