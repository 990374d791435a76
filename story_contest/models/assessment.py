from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional, List, Dict

from story_contest.models.enumerations import (
    AgeBracket,
    AILikelihood,
    Disposition,
    Genre,
    RiskTier,
)


class AssessmentContext(BaseModel):
    """
    Writer context the category scorers calibrate against.
    """

    age_bracket: AgeBracket = Field(
        default=AgeBracket.MIDDLE,
        description="Age bracket of the writer (6-8, 9-12, 13+)"
    )

    genre: Genre = Field(
        default=Genre.CREATIVE,
        description="Expected story genre"
    )

    is_collaborative: bool = Field(
        default=False,
        description="True for stories co-written turn by turn, False for solo uploads"
    )

    title: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Story title"
    )


class IntegrityAnalysis(BaseModel):
    """
    Plagiarism and AI-likelihood outcome with its derived risk tier.
    """

    plagiarism_score: float = Field(
        ...,
        ge=0,
        le=100,
        description="Originality score (100 = fully original)"
    )

    plagiarism_risk: RiskTier = Field(
        ...,
        description="Risk level reported by the plagiarism check"
    )

    ai_likelihood_score: float = Field(
        default=100.0,
        ge=0,
        le=100,
        description="Human-likeness score (100 = clearly human)"
    )

    ai_likelihood: AILikelihood = Field(
        ...,
        description="Likelihood that the text is AI generated"
    )

    integrity_score: float = Field(
        ...,
        ge=0,
        le=100,
        description="min(plagiarism_score, ai_likelihood_score)"
    )

    risk_tier: RiskTier
    disposition: Disposition
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class EducationalFeedback(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    teacher_comment: str = ""
    encouragement: str = ""


class AssessmentSection(BaseModel):
    """Group of categories shown together in detailed mode."""

    name: str
    score: float = Field(..., ge=0, le=100)
    categories: Dict[str, int]


class AssessmentResult(BaseModel):
    """
    Per-submission assessment: category sub-scores, weighted overall score
    and integrity analysis.
    """

    submission_id: Optional[str] = None
    category_scores: Dict[str, int]
    category_analysis: Dict[str, str] = Field(default_factory=dict)
    overall_score: float = Field(..., ge=0, le=100)
    weights: Dict[str, float] = Field(default_factory=dict)
    sections: List[AssessmentSection] = Field(default_factory=list)
    reading_level: Optional[str] = None
    word_count: int = 0
    integrity: IntegrityAnalysis
    feedback: EducationalFeedback = Field(default_factory=EducationalFeedback)
    needs_manual_assessment: bool = False
    error: Optional[str] = None
    assessed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Assessment timestamp (UTC)"
    )


class AssessmentRequest(BaseModel):
    """Body of POST /api/v1/assessments."""

    text: str = Field(..., min_length=1)
    context: AssessmentContext = Field(default_factory=AssessmentContext)
    detailed: bool = False


class IntegrityClassifyRequest(BaseModel):
    """Body of POST /api/v1/integrity/classify."""

    plagiarism_score: float = Field(..., ge=0, le=100)
    ai_likelihood: AILikelihood
    plagiarism_risk: Optional[RiskTier] = None
    ai_likelihood_score: Optional[float] = Field(default=None, ge=0, le=100)
