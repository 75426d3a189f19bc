"""
Classification module for campusfeed.

Handles keyword classification of announcement text into a category,
interest tags and department tags.
"""

from .rules import (
    classify,
    classify_category,
    classify_interests,
    classify_departments,
    get_keyword_tables,
    ClassificationResult,
    CATEGORIES,
    DEFAULT_CATEGORY,
    DEPARTMENTS,
    INTEREST_KEYWORDS,
    DEPARTMENT_KEYWORDS,
)

__all__ = [
    "classify",
    "classify_category",
    "classify_interests",
    "classify_departments",
    "get_keyword_tables",
    "ClassificationResult",
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "DEPARTMENTS",
    "INTEREST_KEYWORDS",
    "DEPARTMENT_KEYWORDS",
]
