"""
Educational Feedback
story_contest/scoring/feedback.py

Turns category scores into strengths (≥ 80), improvements (< 60), next
steps, a teacher comment and an encouragement line.
"""

from typing import Dict, List

from story_contest.models.assessment import (
    AssessmentContext,
    EducationalFeedback,
    IntegrityAnalysis,
)
from story_contest.models.enumerations import AgeBracket, RiskTier

STRENGTH_THRESHOLD = 80
IMPROVEMENT_THRESHOLD = 60

_STRENGTHS = {
    "grammar": "Excellent grammar and sentence structure!",
    "vocabulary": "Impressive vocabulary choices!",
    "creativity": "Your imagination shines through!",
    "structure": "Well-organized story structure!",
    "character_development": "Your characters feel real and interesting!",
    "plot_development": "Engaging and well-developed plot!",
    "plot_originality": "A fresh, original story idea!",
    "descriptive_writing": "Beautiful descriptive details!",
    "sensory_details": "Great use of sensory descriptions!",
    "plot_logic": "Your story makes logical sense!",
    "cause_effect": "Good understanding of cause and effect!",
    "problem_solving": "Creative problem-solving skills!",
    "theme_recognition": "Strong thematic elements!",
    "age_appropriateness": "Content well suited to your age!",
    "spelling": "Careful, accurate spelling!",
}
_EARLY_STRENGTHS = {
    "grammar": "Great job with your sentences!",
    "vocabulary": "You use wonderful words!",
}

_IMPROVEMENTS = {
    "grammar": "focus on grammar and punctuation",
    "vocabulary": "try using more varied and interesting words",
    "creativity": "let your imagination run wild with unique ideas",
    "structure": "organize your story with a clear beginning, middle and end",
    "character_development": "describe your characters' feelings and motivations",
    "plot_development": "build more excitement and conflict into your story",
    "plot_originality": "swap familiar phrases for ideas of your own",
    "descriptive_writing": "add details that help readers picture your story",
    "sensory_details": "include what characters see, hear, smell, taste and feel",
    "plot_logic": "make sure the story events make sense together",
    "cause_effect": "show how one event leads to another",
    "problem_solving": "give your characters challenges to overcome",
    "theme_recognition": "think about the message or lesson in your story",
    "age_appropriateness": "choose topics that match your age and interests",
    "spelling": "double-check the spelling of tricky words",
}
_EARLY_IMPROVEMENTS = {"grammar": "practice writing complete sentences"}


def build_feedback(
    category_scores: Dict[str, int],
    overall_score: float,
    context: AssessmentContext,
    integrity: IntegrityAnalysis,
) -> EducationalFeedback:
    early = context.age_bracket == AgeBracket.EARLY
    ordered = sorted(category_scores.items(), key=lambda item: (-item[1], item[0]))

    strengths: List[str] = []
    improvements: List[str] = []
    for name, score in ordered:
        if score >= STRENGTH_THRESHOLD:
            message = (_EARLY_STRENGTHS if early else {}).get(name) or _STRENGTHS.get(name)
            if message:
                strengths.append(message)
    for name, score in reversed(ordered):
        if score < IMPROVEMENT_THRESHOLD:
            message = (_EARLY_IMPROVEMENTS if early else {}).get(name) or _IMPROVEMENTS.get(name)
            if message:
                improvements.append(message)

    next_steps = [step[0].upper() + step[1:] for step in improvements[:3]]
    if integrity.risk_tier in (RiskTier.HIGH, RiskTier.CRITICAL):
        next_steps.insert(0, "Rewrite the story in your own words with your own ideas")
    if not next_steps:
        next_steps.append("Try a new genre or a longer story to stretch your skills")

    return EducationalFeedback(
        strengths=strengths[:5],
        improvements=[i[0].upper() + i[1:] for i in improvements[:5]],
        next_steps=next_steps,
        teacher_comment=teacher_comment(overall_score, strengths, improvements, context),
        encouragement=encouragement(overall_score, integrity.plagiarism_score, early),
    )


def teacher_comment(
    overall_score: float,
    strengths: List[str],
    improvements: List[str],
    context: AssessmentContext,
) -> str:
    story = "collaborative story" if context.is_collaborative else "story"
    top_strengths = " ".join(strengths[:2])
    focus = " and ".join(improvements[:2]) or "keep practicing"

    if overall_score >= 90:
        return f"Outstanding work on your {story}! {top_strengths} You're developing into a skilled young writer."
    if overall_score >= 80:
        return f"Excellent {story}! {top_strengths} Keep practicing to make your writing even stronger."
    if overall_score >= 70:
        first = improvements[0] if improvements else "keep practicing"
        return f"Good work on your {story}! I can see your creativity and effort. Next time, {first}."
    if overall_score >= 60:
        return f"Nice effort on your {story}! You have some good ideas. To improve, {focus}."
    if context.age_bracket == AgeBracket.EARLY:
        first = improvements[0] if improvements else "keep writing every day"
        return f"Keep practicing your writing! Remember to {first}. You're learning and that's what matters!"
    return f"This {story} shows potential. To strengthen it, {focus}."


def encouragement(overall_score: float, originality: float, early: bool) -> str:
    if originality >= 90 and overall_score >= 80:
        return "You're an amazing original storyteller! Keep writing from your heart and imagination."
    if originality >= 80:
        return "I love how original and creative your story is! Keep using your unique voice."
    if overall_score >= 80:
        return "Your writing skills are really developing well! Keep practicing and stay creative."
    if early:
        return "Every story you write helps you become a better writer! Keep using your imagination!"
    return "You're on the right track! Keep practicing and don't be afraid to let your creativity shine."
