"""
Category Scorers
story_contest/scoring/category_scorers.py

One rule-based strategy per named assessment category. Each scorer reads a
TextProfile plus the writer's AssessmentContext and returns an integer
sub-score in [0, 100] with a one-line analysis.

Scorers are registered by name; the engine aggregates whatever the
registry holds, so categories can be added or replaced without touching
aggregation or integrity logic.

Scoring pattern (all categories):
  1. Start from a baseline (usually 100 or a category-specific floor)
  2. Subtract penalties for missing story features or detected errors
  3. Add bounded bonuses for rich usage
  4. clamp_score() → int in [0, 100]
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from story_contest.models.assessment import AssessmentContext
from story_contest.models.enumerations import AgeBracket, Genre
from story_contest.scoring.text_features import TextProfile, count_matches
from story_contest.scoring.utils import clamp_score, ratio


@dataclass
class CategoryScore:
    score: int
    analysis: str


class CategoryScorer(ABC):
    """Strategy interface for one assessment category."""

    name: str = ""

    @abstractmethod
    def score(self, profile: TextProfile, context: AssessmentContext) -> CategoryScore:
        ...


def _rx(*words: str) -> "re.Pattern[str]":
    return re.compile(r"\b(" + "|".join(words) + r")\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Mechanics
# ---------------------------------------------------------------------------

@dataclass
class GrammarRule:
    pattern: "re.Pattern[str]"
    penalty: int
    description: str


_BASE_GRAMMAR_RULES = [
    GrammarRule(re.compile(r"\bi is\b", re.I), 8, "Subject-verb disagreement"),
    GrammarRule(re.compile(r"\bme and \w+ (is|are|was|were)\b", re.I), 6, "Incorrect pronoun usage"),
    GrammarRule(re.compile(r"\bshould of\b", re.I), 10, "'should have' written as 'should of'"),
    GrammarRule(re.compile(r"\bcould of\b", re.I), 10, "'could have' written as 'could of'"),
    GrammarRule(re.compile(r"\byour going\b", re.I), 8, "'you're' written as 'your'"),
    GrammarRule(re.compile(r"\bits raining\b", re.I), 5, "Missing apostrophe in contraction"),
]

_OLDER_GRAMMAR_RULES = [
    GrammarRule(re.compile(r"\bwho's (car|house|dog|book)\b", re.I), 7, "'whose' written as 'who's'"),
    GrammarRule(re.compile(r"\bthere (car|house|dog|friends?|mom|dad)\b", re.I), 8, "'their' written as 'there'"),
]

# (simple_min, simple_max, complex_min, complex_max) share of sentences
_SENTENCE_MIX = {
    AgeBracket.EARLY: (0.4, 0.8, 0.1, 0.4),
    AgeBracket.MIDDLE: (0.2, 0.6, 0.3, 0.7),
    AgeBracket.TEEN: (0.1, 0.4, 0.5, 0.9),
}

_GRAMMAR_FLOOR = {AgeBracket.EARLY: 60, AgeBracket.MIDDLE: 65, AgeBracket.TEEN: 70}


class GrammarScorer(CategoryScorer):
    name = "grammar"

    def rules_for(self, bracket: AgeBracket) -> List[GrammarRule]:
        if bracket == AgeBracket.EARLY:
            return [r for r in _BASE_GRAMMAR_RULES if r.penalty <= 8]
        return _BASE_GRAMMAR_RULES + _OLDER_GRAMMAR_RULES

    def sentence_structure(self, sentences: List[str], bracket: AgeBracket) -> int:
        if not sentences:
            return 0
        simple = sum(1 for s in sentences if "," not in s and " and " not in s)
        complex_ = sum(
            1 for s in sentences if "," in s or "because" in s or "although" in s
        )
        simple_min, simple_max, complex_min, complex_max = _SENTENCE_MIX[bracket]
        score = 100
        if not simple_min <= simple / len(sentences) <= simple_max:
            score -= 15
        if not complex_min <= complex_ / len(sentences) <= complex_max:
            score -= 15
        return score

    def score(self, profile, context):
        errors: List[str] = []
        score = 85.0
        for rule in self.rules_for(context.age_bracket):
            hits = count_matches(rule.pattern, profile.text)
            if hits:
                errors.append(rule.description)
                score -= hits * rule.penalty

        structure = self.sentence_structure(profile.sentences, context.age_bracket)
        score = score * 0.7 + structure * 0.3
        score = max(_GRAMMAR_FLOOR[context.age_bracket], score)

        analysis = (
            f"Check: {', '.join(sorted(set(errors)))}" if errors
            else "No common grammar errors found"
        )
        return CategoryScore(clamp_score(score), analysis)


_COMMON_MISSPELLINGS = {
    "alot", "becuase", "becaus", "beleive", "definately", "finaly", "freind",
    "frend", "goed", "realy", "recieve", "runned", "sed", "suprise", "thier",
    "tommorow", "tomorow", "untill", "wanna", "wich", "whent", "wierd", "wuz",
    "woud", "thru", "nite", "becuz", "cuz", "gonna", "probly", "libary",
}


class SpellingScorer(CategoryScorer):
    name = "spelling"

    def score(self, profile, context):
        misspelled = [w for w in profile.lower_words if w in _COMMON_MISSPELLINGS]
        score = 100 - len(misspelled) * 5
        floor = 50 if context.age_bracket == AgeBracket.EARLY else 40
        analysis = (
            f"{len(misspelled)} common misspelling(s), e.g. '{misspelled[0]}'"
            if misspelled else "No common misspellings found"
        )
        return CategoryScore(clamp_score(max(floor, score)), analysis)


_DIVERSITY_RANGE = {
    AgeBracket.EARLY: (0.4, 0.7),
    AgeBracket.MIDDLE: (0.5, 0.8),
    AgeBracket.TEEN: (0.6, 0.9),
}

_ADVANCED_WORDS = {
    AgeBracket.EARLY: {"beautiful", "adventure", "mysterious", "dangerous", "enormous"},
    AgeBracket.MIDDLE: {"magnificent", "extraordinary", "catastrophic", "fascinating", "tremendous"},
    AgeBracket.TEEN: {"exceptional", "unprecedented", "sophisticated", "revolutionary", "phenomenal"},
}

DESCRIPTIVE_WORDS = {
    "bright", "dark", "colorful", "shiny", "dull", "vivid", "pale", "loud",
    "quiet", "silent", "noisy", "melodic", "harsh", "soft", "rough", "smooth",
    "bumpy", "silky", "coarse", "sweet", "sour", "bitter", "salty",
    "delicious", "awful", "fragrant", "stinky", "fresh", "musty", "aromatic",
}


class VocabularyScorer(CategoryScorer):
    name = "vocabulary"

    def score(self, profile, context):
        words = profile.content_words
        if not words:
            return CategoryScore(0, "Too few words to judge vocabulary")

        score = 100.0
        diversity = len(set(words)) / len(words)
        low, high = _DIVERSITY_RANGE[context.age_bracket]
        if diversity < low:
            score -= (low - diversity) * 100
        elif diversity > high:
            score -= (diversity - high) * 50

        advanced = ratio(sum(1 for w in words if w in _ADVANCED_WORDS[context.age_bracket]), len(words))
        if 0.02 < advanced < 0.15:
            score += min(15, advanced * 300)

        descriptive = ratio(sum(1 for w in words if w in DESCRIPTIVE_WORDS), len(words))
        if descriptive > 0.05:
            score += min(10, descriptive * 200)

        return CategoryScore(
            clamp_score(score),
            f"Type-token ratio {diversity:.2f} (expected {low:.1f}-{high:.1f})",
        )


# ---------------------------------------------------------------------------
# Story elements
# ---------------------------------------------------------------------------

_BEGINNING = [
    _rx("one day", "once", "there was", "in", "at", "when", "long ago"),
    _rx("my name is", "i am", "this is"),
    _rx("it was", "the"),
]
_ENDING = [
    _rx("the end", "finally", "in the end", "at last", "ever after"),
    _rx("learned", "realized", "never forgot", "remembered"),
    _rx("happy", "safe", "home", "peace"),
]


class StructureScorer(CategoryScorer):
    name = "structure"

    def score(self, profile, context):
        has_beginning = any(p.search(profile.first_sentence) for p in _BEGINNING)
        has_middle = len(profile.paragraphs) >= 2 or (
            context.is_collaborative and len(profile.sentences) >= 6
        )
        has_end = any(p.search(profile.last_sentences()) for p in _ENDING)

        missing = [
            part for part, present in (
                ("beginning", has_beginning), ("middle", has_middle), ("ending", has_end)
            ) if not present
        ]
        score = 100 - 25 * len(missing)
        analysis = f"Missing a clear {', '.join(missing)}" if missing else "Clear beginning, middle and end"
        return CategoryScore(clamp_score(score), analysis)


_PRONOUNS = _rx("he", "she", "him", "her", "his", "hers", "they")
_FAMILY = _rx("mom", "dad", "mother", "father", "friend", "teacher", "brother", "sister")
_PHYSICAL = _rx("tall", "short", "brown hair", "blue eyes", "wore", "dressed")
_TRAITS = _rx("kind", "mean", "brave", "scared", "funny", "serious", "smart", "silly")
EMOTIONS = _rx("happy", "sad", "angry", "excited", "worried", "surprised", "afraid")
_GROWTH = [
    _rx("learned", "realized", "understood", "discovered", "changed", "became"),
    re.compile(r"\bnow (he|she|i|they) (knew|understood|was|were)\b", re.I),
    _rx("never again", "from that day", "after that"),
]


def identify_characters(profile: TextProfile) -> List[str]:
    """Capitalized non-initial words plus generic pronoun/family markers."""
    characters = set()
    for sentence in profile.sentences:
        for word in sentence.split()[1:]:
            if re.fullmatch(r"[A-Z][a-z]+", word) and word not in {"I"}:
                characters.add(word)
    if profile.search(_PRONOUNS):
        characters.add("character")
    if profile.search(_FAMILY):
        characters.add("family/friend")
    return sorted(characters)


class CharacterDevelopmentScorer(CategoryScorer):
    name = "character_development"

    def score(self, profile, context):
        score = 100
        characters = identify_characters(profile)
        if not characters:
            score -= 30
        elif len(characters) == 1:
            score -= 10

        if not profile.search(_PHYSICAL):
            score -= 15
        if not profile.search(_TRAITS):
            score -= 20
        if not profile.search(EMOTIONS):
            score -= 15
        grew = any(p.search(profile.lower) for p in _GROWTH)
        if grew:
            score += 10

        analysis = f"{len(characters)} character marker(s)" + ("; shows growth" if grew else "")
        return CategoryScore(clamp_score(score), analysis)


CONFLICT = [
    _rx("problem", "trouble", "difficult", "challenge", "struggle", "fight", "argue", "disagree"),
    _rx("lost", "broken", "missing", "stolen", "trapped", "stuck", "scared", "worried"),
    _rx("enemy", "villain", "monster", "danger", "threat", "crisis"),
]
RESOLUTION = [
    _rx("solved", "fixed", "found", "saved", "helped", "won", "succeeded", "better", "safe"),
    _rx("finally", "at last", "in the end", "eventually"),
    _rx("happy", "peaceful", "calm", "relieved", "satisfied"),
]
_TIME_MARKERS = ("first", "then", "next", "after", "later", "finally", "meanwhile")
_ACTIONS = _rx("ran", "jumped", "shouted", "fought", "escaped", "chased")
_TENSION = [
    _rx("suddenly", "unexpected", "surprise", "shock", "gasp", "scream"),
    _rx("dangerous", "scary", "frightening", "terrifying", "mysterious"),
    re.compile(r"\b(what if|will (he|she|i)|could (he|she|i))\b", re.I),
]


def has_any(profile: TextProfile, patterns) -> bool:
    return any(p.search(profile.lower) for p in patterns)


def has_progression(profile: TextProfile) -> bool:
    long_paragraphs = [p for p in profile.paragraphs if len(p) > 50]
    if len(long_paragraphs) < 2 and len(profile.sentences) < 6:
        return False
    return profile.contains_any(_TIME_MARKERS) or count_matches(_ACTIONS, profile.lower) >= 2


class PlotDevelopmentScorer(CategoryScorer):
    name = "plot_development"

    def score(self, profile, context):
        checks = {
            "conflict": (has_any(profile, CONFLICT), 25),
            "resolution": (has_any(profile, RESOLUTION), 20),
            "progression": (has_progression(profile), 25),
            "tension": (has_any(profile, _TENSION), 15),
        }
        missing = [name for name, (present, _) in checks.items() if not present]
        score = 100 - sum(penalty for present, penalty in checks.values() if not present)
        analysis = f"Add more {', '.join(missing)}" if missing else "Conflict builds to a resolution"
        return CategoryScore(clamp_score(score), analysis)


_CLICHES = (
    "once upon a time", "happily ever after", "dark and stormy night",
    "all of a sudden", "it was all a dream", "the end",
)

_CREATIVE_ELEMENTS = {
    "fantasy": _rx("magic", "wizard", "dragon", "fairy", "unicorn", "spell"),
    "unique_setting": _rx("space", "alien", "robot", "future", "time travel", "underwater", "floating"),
    "interesting_characters": _rx("talking animal", "superhero", "inventor", "explorer", "detective"),
    "plot_twist": _rx("surprise", "twist", "unexpected", "reveal", "secret", "hidden"),
}

_GENRE_MARKERS = {
    Genre.FANTASY: _rx("magic", "spell", "kingdom", "dragon", "enchanted", "wizard"),
    Genre.ADVENTURE: _rx("journey", "explore", "map", "treasure", "quest", "expedition"),
    Genre.MYSTERY: _rx("clue", "detective", "secret", "suspect", "mystery", "solve"),
}

_SIMILE = re.compile(r"\b\w+(?:-\w+)*\s+(?:like|as)\s+(?:a|an|the)?\s*\w+", re.I)
_INVENTION = _rx("invent", "invented", "create", "created", "discover", "discovered", "figure out")


def cliche_count(profile: TextProfile) -> int:
    return sum(1 for c in _CLICHES if c in profile.lower)


def creative_elements(profile: TextProfile) -> List[str]:
    return [name for name, pattern in _CREATIVE_ELEMENTS.items() if profile.search(pattern)]


class PlotOriginalityScorer(CategoryScorer):
    name = "plot_originality"

    def score(self, profile, context):
        cliches = cliche_count(profile)
        elements = creative_elements(profile)
        score = 100 - cliches * 10
        score = score * 0.8 + min(100, 60 + len(elements) * 10) * 0.2
        analysis = f"{cliches} cliché(s); creative elements: {', '.join(elements) or 'none'}"
        return CategoryScore(clamp_score(score), analysis)


class CreativityScorer(CategoryScorer):
    name = "creativity"

    def imagination(self, profile: TextProfile) -> int:
        score = 70
        if profile.search(_INVENTION):
            score += 15
        score += min(15, count_matches(_SIMILE, profile.text) * 3)
        return min(100, score)

    def score(self, profile, context):
        originality = max(0, 100 - cliche_count(profile) * 10)
        score = 80 * 0.4 + originality * 0.6
        elements = creative_elements(profile)
        score += min(25, len(elements) * 4)

        genre_pattern = _GENRE_MARKERS.get(context.genre)
        if genre_pattern is not None and profile.search(genre_pattern):
            score += 5

        score = score * 0.8 + self.imagination(profile) * 0.2
        for threshold in (100, 200, 300):
            if profile.word_count > threshold:
                score += 5

        analysis = f"Creative elements: {', '.join(elements) or 'none'}"
        return CategoryScore(clamp_score(max(65, score)), analysis)


# ---------------------------------------------------------------------------
# Descriptive and sensory language
# ---------------------------------------------------------------------------

_ADJECTIVES = {
    "beautiful", "ugly", "bright", "dark", "colorful", "shiny", "dull", "big",
    "small", "huge", "tiny", "enormous", "gigantic", "miniature", "fast",
    "slow", "quick", "rapid", "swift", "sluggish", "loud", "quiet", "noisy",
    "silent", "deafening", "whispered", "gentle", "fierce", "golden", "icy",
}


class DescriptiveWritingScorer(CategoryScorer):
    name = "descriptive_writing"

    def score(self, profile, context):
        words = profile.lower_words
        density = ratio(sum(1 for w in words if w in _ADJECTIVES), len(words))
        score = 100.0
        if density < 0.03:
            score -= 30
        elif density > 0.08:
            score -= 10
        else:
            score = 80 + min(20, density * 500)
        return CategoryScore(clamp_score(score), f"Descriptive word density {density:.1%}")


SENSES: Dict[str, set] = {
    "sight": {"saw", "looked", "watched", "bright", "dark", "colorful", "shiny", "sparkled"},
    "sound": {"heard", "listened", "loud", "quiet", "whispered", "shouted", "music", "noise"},
    "smell": {"smelled", "scent", "fragrant", "stinky", "fresh", "perfume", "aroma"},
    "taste": {"tasted", "sweet", "sour", "bitter", "salty", "delicious", "yummy", "flavor"},
    "touch": {"felt", "touched", "soft", "hard", "rough", "smooth", "warm", "cold", "bumpy"},
}


class SensoryDetailsScorer(CategoryScorer):
    name = "sensory_details"

    def score(self, profile, context):
        words = set(profile.lower_words)
        used = [sense for sense, vocab in SENSES.items() if words & vocab]
        total = sum(len(words & vocab) for vocab in SENSES.values())
        score = len(used) / len(SENSES) * 100
        if total > 5:
            score += min(20, total * 2)
        return CategoryScore(clamp_score(score), f"Senses used: {', '.join(used) or 'none'}")


# ---------------------------------------------------------------------------
# Reasoning in the story
# ---------------------------------------------------------------------------

_CAUSE_EFFECT_PAIRS = [
    (_rx("rain", "raining", "rained"), _rx("wet", "umbrella", "inside")),
    (_rx("hungry"), _rx("eat", "ate", "food", "kitchen")),
    (_rx("tired"), _rx("sleep", "slept", "rest", "bed")),
    (_rx("cold"), _rx("jacket", "warm", "fire")),
    (_rx("dark"), _rx("light", "flashlight", "candle")),
]
CONNECTIVES = ("because", "since", " so ", "therefore", "as a result", "due to")


class CauseEffectScorer(CategoryScorer):
    name = "cause_effect"

    def score(self, profile, context):
        pairs = sum(
            1
            for sentence in profile.sentences
            for cause, effect in _CAUSE_EFFECT_PAIRS
            if cause.search(sentence) and effect.search(sentence)
        )
        connectives = sum(profile.lower.count(c) for c in CONNECTIVES)
        score = pairs * 25 + min(50, connectives * 10)
        return CategoryScore(
            clamp_score(score),
            f"{pairs} cause-effect pair(s), {connectives} causal connective(s)",
        )


_THEMES = {
    "friendship": _rx("friend", "friends", "friendship", "together", "share"),
    "courage": _rx("brave", "courage", "fear", "hero", "stand up"),
    "family": _rx("family", "mom", "dad", "brother", "sister", "love"),
    "growth": _rx("learn", "learned", "grow", "change", "improve", "understand"),
    "adventure": _rx("adventure", "explore", "journey", "travel", "discover"),
    "honesty": _rx("truth", "honest", "lie", "trust"),
    "perseverance": _rx("never give up", "kept trying", "persist", "keep going"),
    "kindness": _rx("kind", "nice", "generous", "caring", "gentle", "helped"),
}


def identify_themes(profile: TextProfile) -> List[str]:
    return [theme for theme, pattern in _THEMES.items() if profile.search(pattern)]


class ThemeRecognitionScorer(CategoryScorer):
    name = "theme_recognition"

    def score(self, profile, context):
        themes = identify_themes(profile)
        return CategoryScore(clamp_score(len(themes) * 30), f"Themes: {', '.join(themes) or 'none'}")


_PROBLEMS = [
    _rx("problem", "trouble", "difficulty", "challenge", "issue", "crisis"),
    _rx("lost", "broken", "missing", "stuck", "trapped", "scared"),
    _rx("can't", "couldn't", "unable", "impossible"),
]
_SOLUTIONS = [
    _rx("solved", "fixed", "found", "discovered", "figured out"),
    _rx("idea", "plan", "strategy", "approach", "method"),
    _rx("decided", "chose", "tried", "attempted"),
]
_CREATIVE_SOLUTIONS = [
    _rx("invent", "create", "build", "built", "make", "design"),
    _rx("clever", "smart", "brilliant", "creative", "unique"),
    _rx("teamwork", "together", "help", "cooperate"),
    _rx("think", "brainstorm", "imagine", "wonder"),
]


def _distinct_hits(profile: TextProfile, patterns) -> set:
    hits = set()
    for pattern in patterns:
        hits.update(m.group(0).lower() for m in pattern.finditer(profile.lower))
    return hits


class ProblemSolvingScorer(CategoryScorer):
    name = "problem_solving"

    def score(self, profile, context):
        problems = _distinct_hits(profile, _PROBLEMS)
        solutions = _distinct_hits(profile, _SOLUTIONS)
        score = 100.0
        if not problems:
            score -= 40
        if not solutions:
            score -= 30
        score *= min(len(solutions) / max(len(problems), 1), 1)
        score += 10 * sum(1 for p in _CREATIVE_SOLUTIONS if profile.search(p))
        return CategoryScore(
            clamp_score(score),
            f"{len(problems)} problem marker(s), {len(solutions)} solution marker(s)",
        )


_INCONSISTENCIES = [
    (("morning", "sunset", "same time"), "Time inconsistency"),
    (("alone", "they talked"), "Character presence inconsistency"),
]


class PlotLogicScorer(CategoryScorer):
    name = "plot_logic"

    def score(self, profile, context):
        found = [label for needles, label in _INCONSISTENCIES if all(n in profile.lower for n in needles)]
        score = 100 - len(found) * 10
        causation = 100 if profile.contains_any(CONNECTIVES) else 80
        score = score * 0.7 + causation * 0.3
        analysis = "; ".join(found) if found else "Events follow logically"
        return CategoryScore(clamp_score(score), analysis)


_UNSUITABLE = [
    _rx("kill", "killed", "death", "murder", "violence", "blood", "gun", "weapon"),
    _rx("hate", "stupid", "dumb", "idiot"),
    _rx("terrifying", "nightmare", "horror"),
]
_EXPECTED_COMPLEXITY = {AgeBracket.EARLY: 0.3, AgeBracket.MIDDLE: 0.5, AgeBracket.TEEN: 0.7}


class AgeAppropriatenessScorer(CategoryScorer):
    name = "age_appropriateness"

    def score(self, profile, context):
        violations = sum(count_matches(p, profile.lower) for p in _UNSUITABLE)
        content = 100 - violations * 20
        fit = max(0.0, 100 - abs(profile.complexity - _EXPECTED_COMPLEXITY[context.age_bracket]) * 100)
        score = max(0, content) * 0.6 + fit * 0.4
        analysis = f"{violations} sensitive word(s); reading level {profile.reading_level}"
        return CategoryScore(clamp_score(score), analysis)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_REGISTRY: Dict[str, CategoryScorer] = {}


def register_scorer(scorer: CategoryScorer, replace: bool = False) -> CategoryScorer:
    """Add a scorer to the default registry. Names must be unique unless `replace`."""
    if not scorer.name:
        raise ValueError("CategoryScorer.name must be set")
    if scorer.name in _REGISTRY and not replace:
        raise ValueError(f"Scorer '{scorer.name}' already registered")
    _REGISTRY[scorer.name] = scorer
    return scorer


def get_scorers(names: Optional[List[str]] = None) -> Dict[str, CategoryScorer]:
    """Registered scorers, optionally restricted to `names` (in that order)."""
    if names is None:
        return dict(_REGISTRY)
    unknown = [n for n in names if n not in _REGISTRY]
    if unknown:
        raise KeyError(f"Unknown categories: {unknown}")
    return {n: _REGISTRY[n] for n in names}


for _scorer_cls in (
    GrammarScorer,
    SpellingScorer,
    VocabularyScorer,
    StructureScorer,
    CharacterDevelopmentScorer,
    PlotOriginalityScorer,
    PlotDevelopmentScorer,
    CreativityScorer,
    DescriptiveWritingScorer,
    SensoryDetailsScorer,
    CauseEffectScorer,
    ThemeRecognitionScorer,
    ProblemSolvingScorer,
    PlotLogicScorer,
    AgeAppropriatenessScorer,
):
    register_scorer(_scorer_cls())
