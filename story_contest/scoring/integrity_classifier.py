"""
Integrity Classifier
story_contest/scoring/integrity_classifier.py

Maps a plagiarism outcome and an AI-likelihood tier to a risk tier and a
submission disposition. Total and deterministic: every input combination
yields exactly one (risk_tier, disposition) pair.

Rule table (first match wins):
    critical  plagiarism risk critical  OR  AI likelihood very_high
    high      plagiarism risk high      OR  AI likelihood high
    medium    plagiarism risk medium    OR  AI likelihood medium
    low       otherwise

Disposition:
    critical        → flag    (status flagged, needs_review, pending_mentor_review)
    high / medium   → review  (status review; medium carries a warning)
    low             → accept  (status completed)
"""

from dataclasses import dataclass
from typing import Optional

from story_contest.models.assessment import IntegrityAnalysis
from story_contest.models.enumerations import (
    AILikelihood,
    Disposition,
    ReviewStatus,
    RiskTier,
    SubmissionStatus,
)
from story_contest.scoring.plagiarism_detector import risk_from_originality

# Human-likeness implied by a tier when no numeric score is supplied
_TIER_HUMAN_LIKE = {
    AILikelihood.VERY_LOW: 95.0,
    AILikelihood.LOW: 80.0,
    AILikelihood.MEDIUM: 60.0,
    AILikelihood.HIGH: 35.0,
    AILikelihood.VERY_HIGH: 10.0,
}

_AI_TIER = {
    AILikelihood.VERY_HIGH: RiskTier.CRITICAL,
    AILikelihood.HIGH: RiskTier.HIGH,
    AILikelihood.MEDIUM: RiskTier.MEDIUM,
    AILikelihood.LOW: RiskTier.LOW,
    AILikelihood.VERY_LOW: RiskTier.LOW,
}

DISPOSITIONS = {
    RiskTier.CRITICAL: Disposition.FLAG,
    RiskTier.HIGH: Disposition.REVIEW,
    RiskTier.MEDIUM: Disposition.REVIEW,
    RiskTier.LOW: Disposition.ACCEPT,
}


@dataclass(frozen=True)
class SubmissionOutcome:
    """Submission fields written back for a disposition."""
    status: SubmissionStatus
    needs_review: bool
    review_status: ReviewStatus


def risk_tier_for(plagiarism_risk: RiskTier, ai_likelihood: AILikelihood) -> RiskTier:
    """The more severe of the two signals."""
    ai_tier = _AI_TIER[ai_likelihood]
    return max(plagiarism_risk, ai_tier, key=lambda tier: tier.severity)


def classify(
    plagiarism_score: float,
    ai_likelihood: AILikelihood,
    plagiarism_risk: Optional[RiskTier] = None,
    ai_likelihood_score: Optional[float] = None,
) -> IntegrityAnalysis:
    """
    Classify integrity risk.

    Args:
        plagiarism_score: Originality score (0-100, 100 = fully original)
        ai_likelihood: AI-generation likelihood tier
        plagiarism_risk: Risk reported by the plagiarism check; derived from
            `plagiarism_score` when omitted
        ai_likelihood_score: Human-likeness score; a representative value
            for the tier is used when omitted

    Returns:
        IntegrityAnalysis with risk tier, disposition and warnings
    """
    ai_likelihood = AILikelihood(ai_likelihood)
    if plagiarism_risk is None:
        plagiarism_risk = risk_from_originality(plagiarism_score)
    else:
        plagiarism_risk = RiskTier(plagiarism_risk)
    if ai_likelihood_score is None:
        ai_likelihood_score = _TIER_HUMAN_LIKE[ai_likelihood]

    tier = risk_tier_for(plagiarism_risk, ai_likelihood)
    disposition = DISPOSITIONS[tier]

    warnings = []
    recommendations = []
    if tier == RiskTier.CRITICAL:
        warnings.append("Submission flagged for mentor review due to integrity concerns")
        recommendations.append("Hold from competition ranking until a mentor has reviewed it")
    elif tier == RiskTier.HIGH:
        warnings.append("High integrity risk: manual review required")
    elif tier == RiskTier.MEDIUM:
        warnings.append("Some passages may not be original; review recommended")
        recommendations.append("Encourage the writer to use their own words and experiences")

    return IntegrityAnalysis(
        plagiarism_score=plagiarism_score,
        plagiarism_risk=plagiarism_risk,
        ai_likelihood_score=ai_likelihood_score,
        ai_likelihood=ai_likelihood,
        integrity_score=min(plagiarism_score, ai_likelihood_score),
        risk_tier=tier,
        disposition=disposition,
        warnings=warnings,
        recommendations=recommendations,
    )


def submission_status_for(analysis: IntegrityAnalysis) -> SubmissionOutcome:
    """Submission status, needs_review and review_status for a disposition."""
    if analysis.disposition == Disposition.FLAG:
        return SubmissionOutcome(SubmissionStatus.FLAGGED, True, ReviewStatus.PENDING_MENTOR_REVIEW)
    if analysis.disposition == Disposition.REVIEW:
        return SubmissionOutcome(SubmissionStatus.REVIEW, True, ReviewStatus.NONE)
    return SubmissionOutcome(SubmissionStatus.COMPLETED, False, ReviewStatus.NONE)
