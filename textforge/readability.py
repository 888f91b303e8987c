"""
Readability Metrics
===================
Readability analysis backed by textstat.

Provides the standard grade-level formulas plus a consensus grade,
reading-time estimate and plain-language interpretation.
"""

from typing import List, Dict, Any
from dataclasses import dataclass, field

import textstat

__version__ = "1.0.0"

MIN_TEXT_LENGTH = 20
WORDS_PER_MINUTE = 200.0


@dataclass
class ReadabilityReport:
    """Readability analysis result."""

    flesch_reading_ease: float = 0.0
    flesch_kincaid_grade: float = 0.0
    gunning_fog: float = 0.0
    smog_index: float = 0.0
    coleman_liau: float = 0.0
    automated_readability: float = 0.0

    consensus_grade: float = 0.0
    reading_time_minutes: float = 0.0

    difficult_words: List[str] = field(default_factory=list)
    lexicon_count: int = 0
    sentence_count: int = 0

    grade_level: str = ""
    difficulty_rating: str = ""

    @property
    def is_empty(self) -> bool:
        return self.lexicon_count == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'flesch_reading_ease': self.flesch_reading_ease,
            'flesch_kincaid_grade': self.flesch_kincaid_grade,
            'gunning_fog': self.gunning_fog,
            'smog_index': self.smog_index,
            'coleman_liau': self.coleman_liau,
            'automated_readability': self.automated_readability,
            'consensus_grade': self.consensus_grade,
            'reading_time_minutes': self.reading_time_minutes,
            'difficult_words': self.difficult_words,
            'lexicon_count': self.lexicon_count,
            'sentence_count': self.sentence_count,
            'grade_level': self.grade_level,
            'difficulty_rating': self.difficulty_rating,
        }


class ReadabilityCalculator:
    """Readability analysis using textstat."""

    GRADE_LEVELS = {
        (0, 6): "Elementary (Grade 1-5)",
        (6, 8): "Middle School (Grade 6-8)",
        (8, 12): "High School (Grade 9-12)",
        (12, 14): "College",
        (14, 17): "College Graduate",
        (17, 100): "Professional/Academic"
    }

    DIFFICULTY_RATINGS = {
        (90, 1000): "Very Easy",
        (80, 90): "Easy",
        (70, 80): "Fairly Easy",
        (60, 70): "Standard",
        (50, 60): "Fairly Difficult",
        (30, 50): "Difficult",
        (-1000, 30): "Very Difficult"
    }

    def analyze(self, text: str) -> ReadabilityReport:
        """
        Perform readability analysis.

        Args:
            text: Text to analyze

        Returns:
            ReadabilityReport; empty when the text is too short to score
        """
        if not text or len(text.strip()) < MIN_TEXT_LENGTH:
            return ReadabilityReport()

        flesch_ease = textstat.flesch_reading_ease(text)
        flesch_grade = textstat.flesch_kincaid_grade(text)
        gunning = textstat.gunning_fog(text)
        smog = textstat.smog_index(text)
        coleman = textstat.coleman_liau_index(text)
        ari = textstat.automated_readability_index(text)

        difficult = textstat.difficult_words_list(text)
        word_count = textstat.lexicon_count(text, removepunct=True)
        sentence_count = textstat.sentence_count(text)

        # Consensus is the mean of the positive grade-level scores
        grades = [g for g in (flesch_grade, gunning, coleman, ari) if g > 0]
        consensus = sum(grades) / len(grades) if grades else 0.0

        return ReadabilityReport(
            flesch_reading_ease=round(flesch_ease, 1),
            flesch_kincaid_grade=round(flesch_grade, 1),
            gunning_fog=round(gunning, 1),
            smog_index=round(smog, 1),
            coleman_liau=round(coleman, 1),
            automated_readability=round(ari, 1),
            consensus_grade=round(consensus, 1),
            reading_time_minutes=round(word_count / WORDS_PER_MINUTE, 1),
            difficult_words=sorted(set(difficult))[:20],
            lexicon_count=word_count,
            sentence_count=sentence_count,
            grade_level=self._lookup(self.GRADE_LEVELS, consensus),
            difficulty_rating=self._lookup(self.DIFFICULTY_RATINGS, flesch_ease),
        )

    @staticmethod
    def _lookup(table: Dict, score: float) -> str:
        for (low, high), label in table.items():
            if low <= score < high:
                return label
        return "Unknown"
