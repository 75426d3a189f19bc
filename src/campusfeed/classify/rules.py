"""
Classification rules for campus announcements.

Maps free text to one category, a list of interest tags and a list of
department tags using static keyword tables. Matching is plain substring
search over the lower-cased text.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Tuple
from dataclasses import dataclass, field


DEFAULT_CATEGORY = "general-announcements"

# Checked in order; the first category with a matching trigger wins.
CATEGORY_TRIGGERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("academics", ("academic", "class", "exam")),
    ("campus-events", ("event", "activity", "program")),
    ("career-services", ("career", "job", "internship")),
    ("student-life", ("student", "organization", "club")),
)

CATEGORIES: Tuple[str, ...] = tuple(name for name, _ in CATEGORY_TRIGGERS) + (DEFAULT_CATEGORY,)

INTEREST_KEYWORDS = MappingProxyType({
    "technology": (
        "tech", "programming", "coding", "computer", "software",
        "digital", "data", "cyber",
    ),
    "business": (
        "business", "entrepreneurship", "startup", "finance",
        "marketing", "economics", "trade",
    ),
    "arts": (
        "art", "creative", "design", "culture", "music",
        "theater", "literature", "gallery",
    ),
    "science": (
        "science", "research", "laboratory", "experiment",
        "biology", "chemistry", "physics",
    ),
    "sports": (
        "sports", "athletic", "tournament", "competition",
        "game", "fitness", "training",
    ),
    "social-events": (
        "event", "party", "gathering", "celebration",
        "festival", "meeting", "seminar", "workshop",
    ),
})

DEPARTMENT_KEYWORDS = MappingProxyType({
    "rvrcob": ("business", "management", "finance", "marketing", "accounting", "economics"),
    "gcoe": ("engineering", "civil", "mechanical", "electrical", "chemical", "industrial"),
    "cla": ("liberal arts", "literature", "philosophy", "history", "languages", "communication"),
    "ccs": ("computer", "programming", "software", "technology", "coding", "data"),
    "cos": ("science", "biology", "chemistry", "physics", "mathematics", "research"),
    "bagced": ("education", "teaching", "pedagogy", "curriculum", "learning"),
    "soe": ("economics", "economic", "policy", "market", "trade"),
    "tdsol": ("law", "legal", "justice", "court", "legislation", "rights"),
})

DEPARTMENTS: Tuple[str, ...] = tuple(DEPARTMENT_KEYWORDS)


@dataclass
class ClassificationResult:
    """Result of classifying a block of text."""
    category: str
    relevant_interests: List[str]
    relevant_majors: List[str]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category,
            "relevantInterests": list(self.relevant_interests),
            "relevantMajors": list(self.relevant_majors),
            "metadata": self.metadata,
        }


def _matching_keywords(text_lower: str, table) -> Dict[str, List[str]]:
    """Return tag -> keywords found in text_lower, in table order."""
    matches = {}
    for tag, keywords in table.items():
        found = [keyword for keyword in keywords if keyword in text_lower]
        if found:
            matches[tag] = found
    return matches


def classify_category(text: str) -> str:
    """
    Pick the single category for a block of text.

    Categories share vocabulary ("program" reads as both academic and
    event language), so ties are settled by the fixed order of
    CATEGORY_TRIGGERS rather than by scoring.

    Args:
        text: Free text, may be empty

    Returns:
        One of CATEGORIES
    """
    text_lower = (text or "").lower()

    for category, triggers in CATEGORY_TRIGGERS:
        if any(trigger in text_lower for trigger in triggers):
            return category

    return DEFAULT_CATEGORY


def classify_interests(text: str) -> List[str]:
    """
    Interest tags whose keywords appear in the text.

    Zero, one or many tags may match. No match yields an empty list.
    """
    return list(_matching_keywords((text or "").lower(), INTEREST_KEYWORDS))


def classify_departments(text: str) -> List[str]:
    """
    Department tags whose keywords appear in the text.

    Untagged content is treated as relevant to every department, so the
    result is never empty.
    """
    departments = list(_matching_keywords((text or "").lower(), DEPARTMENT_KEYWORDS))
    return departments if departments else list(DEPARTMENTS)


def classify(text: str) -> ClassificationResult:
    """
    Classify text into category, interests and departments.

    Args:
        text: Announcement or post text

    Returns:
        ClassificationResult with matched keywords per tag in metadata
    """
    text_lower = (text or "").lower()

    interest_matches = _matching_keywords(text_lower, INTEREST_KEYWORDS)
    department_matches = _matching_keywords(text_lower, DEPARTMENT_KEYWORDS)

    return ClassificationResult(
        category=classify_category(text),
        relevant_interests=list(interest_matches),
        relevant_majors=list(department_matches) or list(DEPARTMENTS),
        metadata={
            "interest_keywords": interest_matches,
            "department_keywords": department_matches,
            "department_fallback": not department_matches,
        },
    )


def get_keyword_tables() -> Dict[str, Dict[str, List[str]]]:
    """
    Get copies of the keyword tables for reference/tuning.

    Returns:
        Dict with "interests" and "departments" tables as plain lists
    """
    return {
        "interests": {tag: list(words) for tag, words in INTEREST_KEYWORDS.items()},
        "departments": {tag: list(words) for tag, words in DEPARTMENT_KEYWORDS.items()},
    }
