#!/usr/bin/env python3
"""
Pattern Engine v1.0.0
=====================
Regular-expression search, extraction, validation and replacement over
documents.

Matching follows Python's `re` semantics: scanning is left to right, the
leftmost match wins and the next search resumes right after the previous
match. Any pattern that fails to compile surfaces as InvalidPatternError;
matching a compiled pattern never fails.

Replacement strings use the `re` template syntax (\\1, \\g<name>).
"""

import re
import threading
from typing import Dict, List, Union

from .config_logging import get_logger, InvalidPatternError
from .document import Document, text_of

__version__ = "1.0.0"

logger = get_logger('textforge.patterns')

TextSource = Union[Document, str]


class PatternEngine:
    """
    Compiles and applies regular expressions.

    Compiled patterns are cached per engine instance; the cache is bounded
    and cleared wholesale once it reaches `cache_size` entries.
    """

    def __init__(self, cache_size: int = 256):
        self._cache: Dict[str, 're.Pattern'] = {}
        self._cache_size = cache_size
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Compilation
    # -------------------------------------------------------------------------

    def compile(self, pattern: str) -> 're.Pattern':
        """
        Compile a pattern, raising InvalidPatternError on failure.

        Args:
            pattern: Regular expression source

        Returns:
            Compiled pattern
        """
        if not isinstance(pattern, str):
            raise InvalidPatternError(pattern, f"pattern must be a string, got {type(pattern).__name__}")

        with self._lock:
            compiled = self._cache.get(pattern)
        if compiled is not None:
            return compiled

        try:
            compiled = re.compile(pattern)
        except (re.error, RecursionError, OverflowError) as e:
            raise InvalidPatternError(pattern, str(e)) from e

        with self._lock:
            if len(self._cache) >= self._cache_size:
                self._cache.clear()
            self._cache[pattern] = compiled
        return compiled

    def is_valid_pattern(self, pattern: str) -> bool:
        """Return True if the pattern compiles. Never raises."""
        try:
            self.compile(pattern)
            return True
        except InvalidPatternError as e:
            logger.warning(f"Invalid regex pattern: {pattern!r}", reason=e.reason)
            return False

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------

    def search(self, document: Document, pattern: str) -> List[str]:
        """Every non-overlapping match, in scan order."""
        regex = self.compile(pattern)
        logger.debug(f"Searching for pattern {pattern!r}", document_id=document.id)
        return [m.group(0) for m in regex.finditer(document.content)]

    def extract_matches(self, document: Document, pattern: str) -> List[str]:
        """Same matches as search(); kept as a separate entry point."""
        matches = self.search(document, pattern)
        logger.info(f"Extracted {len(matches)} matches", document_id=document.id)
        return matches

    def count_matches(self, document: Document, pattern: str) -> int:
        regex = self.compile(pattern)
        return sum(1 for _ in regex.finditer(document.content))

    def validate(self, document: Document, pattern: str) -> bool:
        """True only if the whole content matches the pattern."""
        regex = self.compile(pattern)
        return regex.fullmatch(document.content) is not None

    def extract_between(self, document: Document, start_pattern: str, end_pattern: str) -> List[str]:
        """
        Extract the text between start and end markers.

        Each start match is handled on its own: the end pattern is searched
        in the text remaining after that start match, and the span up to the
        end match is emitted. A start match with no following end match
        contributes nothing. Regions of different start matches may overlap.

        Args:
            document: Document to scan
            start_pattern: Pattern marking the beginning of a region
            end_pattern: Pattern marking the end of a region

        Returns:
            Extracted spans, markers excluded
        """
        start = self.compile(start_pattern)
        end = self.compile(end_pattern)
        content = document.content
        logger.debug(f"Extracting text between {start_pattern!r} and {end_pattern!r}",
                     document_id=document.id)

        extracted = []
        for start_match in start.finditer(content):
            # Search the remainder as its own string so anchors apply to it
            remainder = content[start_match.end():]
            end_match = end.search(remainder)
            if end_match:
                extracted.append(remainder[:end_match.start()])
        return extracted

    # -------------------------------------------------------------------------
    # Replacement
    # -------------------------------------------------------------------------

    def _substitute(self, source: TextSource, pattern: str, replacement: str, count: int) -> str:
        regex = self.compile(pattern)
        if not isinstance(replacement, str):
            raise InvalidPatternError(pattern, f"replacement must be a string, got {type(replacement).__name__}")
        try:
            return regex.sub(replacement, text_of(source), count=count)
        except (re.error, IndexError) as e:
            raise InvalidPatternError(pattern, f"invalid replacement {replacement!r}: {e}",
                                      replacement=replacement) from e

    def replace_first(self, source: TextSource, pattern: str, replacement: str) -> str:
        """Replace the first match only."""
        return self._substitute(source, pattern, replacement, count=1)

    def replace_all(self, source: TextSource, pattern: str, replacement: str) -> str:
        """Replace every non-overlapping match."""
        result = self._substitute(source, pattern, replacement, count=0)
        if isinstance(source, Document):
            logger.info("Replaced matches", document_id=source.id)
        return result

    def replace_pattern(self, document: Document, pattern: str, replacement: str) -> Document:
        """Derived document with every match replaced."""
        logger.debug(f"Replacing pattern {pattern!r} with {replacement!r}", document_id=document.id)
        return document.derive(self.replace_all(document, pattern, replacement))

    def replace_literal(self, source: TextSource, target: str, replacement: str) -> str:
        """
        Replace literal occurrences of `target`; no regex interpretation.

        An empty target leaves the text unchanged.
        """
        text = text_of(source)
        if not target:
            return text
        return text.replace(target, replacement)
