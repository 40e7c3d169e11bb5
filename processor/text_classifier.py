"""Keyword-based category and tag detection for event text."""
import re
from typing import Optional

from processor.models import Classification, DEFAULT_CATEGORY

CATEGORY_PATTERNS = {
    'career': r'career|job|recruiting|internship|hiring|employer|resume|interview',
    'academic': r'workshop|seminar|lecture|research|conference|symposium|presentation',
    'networking': r'networking|mixer|meetup|meet and greet|coffee chat',
    'entrepreneurship': r'startup|entrepreneur|pitch|venture|founder|innovation|business plan',
    'social': r'social|party|celebration|happy hour|gala|reception',
    'cultural': r'cultural|diversity|heritage|international|multicultural',
    'sports': r'sports|athletic|game|tournament|competition|intramural',
}

TAG_KEYWORDS = (
    'AI', 'artificial intelligence', 'machine learning',
    'consulting', 'strategy',
    'finance', 'investment', 'banking',
    'tech', 'technology', 'software',
    'healthcare', 'medical',
    'sustainability', 'environment', 'climate',
    'diversity', 'equity', 'inclusion',
    'leadership', 'management',
)

_COMPILED_CATEGORIES = {
    name: re.compile(pattern) for name, pattern in CATEGORY_PATTERNS.items()
}


class TextClassifier:
    """Classifies event text into categories and tags."""

    def __init__(self, category_patterns=None, tag_keywords=None):
        if category_patterns is None:
            self._categories = _COMPILED_CATEGORIES
        else:
            self._categories = {
                name: re.compile(pattern)
                for name, pattern in category_patterns.items()
            }
        self._tags = TAG_KEYWORDS if tag_keywords is None else tuple(tag_keywords)

    def classify(self, text: Optional[str]) -> Classification:
        """
        Detect categories and tags in free text.

        Args:
            text: Text to classify, typically "<title> <description>"

        Returns:
            Classification with at least one category
        """
        lowered = (text or '').lower()
        return Classification(
            categories=self.detect_categories(lowered),
            tags=self.extract_tags(lowered),
        )

    def classify_event(self, name: Optional[str], description: Optional[str]) -> Classification:
        return self.classify(f"{name or ''} {description or ''}")

    def detect_categories(self, text: Optional[str]) -> frozenset:
        lowered = (text or '').lower()
        found = frozenset(
            name for name, pattern in self._categories.items()
            if pattern.search(lowered)
        )
        return found or frozenset([DEFAULT_CATEGORY])

    def extract_tags(self, text: Optional[str]) -> frozenset:
        lowered = (text or '').lower()
        return frozenset(
            keyword for keyword in self._tags
            if keyword.lower() in lowered
        )

    def ordered_categories(self, categories) -> list:
        """Order categories as they appear in the pattern table."""
        known = [name for name in self._categories if name in categories]
        extra = sorted(c for c in categories if c not in self._categories)
        return known + extra
