#!/usr/bin/env python3
"""
Text Analyzer v1.0.0
====================
Descriptive statistics and naive summarization.

Definitions shared by every analysis:
- word: a non-empty token left after splitting on runs of non-word
  characters (case-folded for frequency counts)
- sentence: a maximal run of characters other than . ! ? followed by one
  or more of those terminators
- paragraph: a non-empty chunk between one or more blank lines (a line of
  only whitespace counts as blank)

Known limitation: summarize() keeps the leading sentences of a document.
It does not rank sentences by importance.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any

from .config_logging import get_logger, get_config, handle_errors
from .document import Document
from .readability import ReadabilityCalculator, ReadabilityReport

__version__ = "1.0.0"

logger = get_logger('textforge.analyzer')

SENTENCE_PATTERN = re.compile(r'[^.!?]+[.!?]+')
WORD_SPLIT_PATTERN = re.compile(r'\W+')
PARAGRAPH_SPLIT_PATTERN = re.compile(r'\n\s*\n')


def split_words(text: str) -> List[str]:
    """Non-empty tokens between runs of non-word characters."""
    return [w for w in WORD_SPLIT_PATTERN.split(text) if w]


def split_sentences(text: str) -> List[str]:
    """Sentences in document order, untrimmed."""
    return SENTENCE_PATTERN.findall(text)


def split_paragraphs(text: str) -> List[str]:
    return [p for p in PARAGRAPH_SPLIT_PATTERN.split(text) if p.strip()]


@dataclass
class TextStatistics:
    """Statistics bundle for one document."""
    total_characters: int = 0
    total_words: int = 0
    total_sentences: int = 0
    total_paragraphs: int = 0
    word_length_distribution: Dict[int, int] = field(default_factory=dict)
    character_frequency: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'total_characters': self.total_characters,
            'total_words': self.total_words,
            'total_sentences': self.total_sentences,
            'total_paragraphs': self.total_paragraphs,
            'word_length_distribution': {str(k): v for k, v in sorted(self.word_length_distribution.items())},
            'character_frequency': dict(self.character_frequency),
        }


@dataclass
class SentenceStructure:
    """Sentence length profile of a document."""
    sentence_count: int = 0
    average_words: float = 0.0
    longest_words: int = 0
    shortest_words: int = 0
    long_sentence_count: int = 0
    long_sentence_threshold: int = 25

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sentence_count': self.sentence_count,
            'average_words': self.average_words,
            'longest_words': self.longest_words,
            'shortest_words': self.shortest_words,
            'long_sentence_count': self.long_sentence_count,
            'long_sentence_threshold': self.long_sentence_threshold,
        }


class TextAnalyzer:
    """
    Computes word, sentence and paragraph statistics for documents.

    Usage:
        analyzer = TextAnalyzer()
        freq = analyzer.word_frequency(doc)
        stats = analyzer.statistics(doc)
        summary = analyzer.summarize(doc, 2)
    """

    def __init__(self, readability: Optional[ReadabilityCalculator] = None,
                 long_sentence_words: int = 25):
        """
        Args:
            readability: Calculator used by readability(); created on first use if omitted
            long_sentence_words: Word count above which a sentence counts as long
        """
        self._readability = readability
        self.long_sentence_words = long_sentence_words

    @handle_errors('word_frequency')
    def word_frequency(self, document: Document) -> Dict[str, int]:
        """Case-folded word counts."""
        logger.debug("Analyzing word frequency", document_id=document.id)
        return dict(Counter(split_words(document.content.lower())))

    def top_words(self, document: Document, limit: int = 10) -> List[Tuple[str, int]]:
        """Most frequent words, highest count first, ties broken by word."""
        freq = self.word_frequency(document)
        ranked = sorted(freq.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:max(0, limit)]

    @handle_errors('statistics')
    def statistics(self, document: Document) -> TextStatistics:
        """Character, word, sentence and paragraph statistics."""
        logger.debug("Getting text statistics", document_id=document.id)
        content = document.content
        words = split_words(content)

        return TextStatistics(
            total_characters=len(content),
            total_words=len(words),
            total_sentences=len(split_sentences(content)),
            total_paragraphs=len(split_paragraphs(content)),
            word_length_distribution=dict(Counter(len(w) for w in words)),
            character_frequency=dict(Counter(ch.lower() for ch in content)),
        )

    @handle_errors('summarize')
    def summarize(self, document: Document, max_sentences: Optional[int] = None) -> str:
        """
        Leading-sentence summary.

        Args:
            document: Document to summarize
            max_sentences: Sentences to keep; defaults to the configured
                summary length. Zero or negative yields an empty string.

        Returns:
            The first sentences, trimmed and joined by single spaces
        """
        if max_sentences is None:
            max_sentences = get_config().summary_sentences
        logger.debug(f"Generating summary with max {max_sentences} sentences", document_id=document.id)
        if max_sentences <= 0:
            return ""
        sentences = split_sentences(document.content)[:max_sentences]
        return " ".join(s.strip() for s in sentences)

    @handle_errors('sentence_structure')
    def sentence_structure(self, document: Document) -> SentenceStructure:
        """Sentence length profile."""
        lengths = [len(split_words(s)) for s in split_sentences(document.content)]
        if not lengths:
            return SentenceStructure(long_sentence_threshold=self.long_sentence_words)

        return SentenceStructure(
            sentence_count=len(lengths),
            average_words=round(sum(lengths) / len(lengths), 2),
            longest_words=max(lengths),
            shortest_words=min(lengths),
            long_sentence_count=sum(1 for n in lengths if n > self.long_sentence_words),
            long_sentence_threshold=self.long_sentence_words,
        )

    @handle_errors('readability')
    def readability(self, document: Document) -> ReadabilityReport:
        """Readability metrics (Flesch, Gunning fog, SMOG, ...)."""
        if self._readability is None:
            self._readability = ReadabilityCalculator()
        return self._readability.analyze(document.content)
