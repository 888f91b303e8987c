#!/usr/bin/env python3
"""
TextForge Processor
===================
Single entry point bundling the pattern engine, analyzer, transformer and
batch coordinator.

Front ends (CLI, GUI, services) build Documents from text they have read
themselves and call the operations here; the engine never touches files.
"""

import functools
import inspect
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .config_logging import get_logger, ValidationError
from .document import Document
from .patterns import PatternEngine
from .analyzer import TextAnalyzer, TextStatistics, SentenceStructure
from .readability import ReadabilityReport
from .transformer import TextTransformer, CaseMode
from .batch import (
    BatchCoordinator, BatchRun,
    ProgressCallback, CompleteCallback, ErrorCallback,
)

logger = get_logger('textforge.processor')

Operation = Callable[[Document], Document]


class TextProcessor:
    """
    Facade over the engine components.

    Usage:
        processor = TextProcessor()
        doc = processor.create_document('notes.txt', text)
        words = processor.word_frequency(doc)
        op = processor.make_operation('convert_case', mode='snake')
        run = processor.process_batch_async(docs, op, on_error=report)
    """

    # Transforming operations that can be handed to the batch coordinator
    OPERATIONS = (
        'convert_case', 'remove_duplicates', 'sort_lines', 'normalize_whitespace',
        'sanitize', 'format_json', 'format_xml', 'format_sql', 'format_code',
        'replace_pattern',
    )

    def __init__(
        self,
        patterns: Optional[PatternEngine] = None,
        analyzer: Optional[TextAnalyzer] = None,
        transformer: Optional[TextTransformer] = None,
        coordinator: Optional[BatchCoordinator] = None,
    ):
        self.patterns = patterns or PatternEngine()
        self.analyzer = analyzer or TextAnalyzer()
        self.transformer = transformer or TextTransformer()
        self.coordinator = coordinator or BatchCoordinator()

    @staticmethod
    def create_document(name: str, content: str) -> Document:
        return Document(name, content)

    # -------------------------------------------------------------------------
    # Pattern operations
    # -------------------------------------------------------------------------

    def is_valid_pattern(self, pattern: str) -> bool:
        return self.patterns.is_valid_pattern(pattern)

    def search(self, document: Document, pattern: str) -> List[str]:
        return self.patterns.search(document, pattern)

    def extract_matches(self, document: Document, pattern: str) -> List[str]:
        return self.patterns.extract_matches(document, pattern)

    def count_matches(self, document: Document, pattern: str) -> int:
        return self.patterns.count_matches(document, pattern)

    def extract_between(self, document: Document, start_pattern: str, end_pattern: str) -> List[str]:
        return self.patterns.extract_between(document, start_pattern, end_pattern)

    def validate(self, document: Document, pattern: str) -> bool:
        return self.patterns.validate(document, pattern)

    def replace_first(self, source: Union[Document, str], pattern: str, replacement: str) -> str:
        return self.patterns.replace_first(source, pattern, replacement)

    def replace_all(self, source: Union[Document, str], pattern: str, replacement: str) -> str:
        return self.patterns.replace_all(source, pattern, replacement)

    def replace_literal(self, source: Union[Document, str], target: str, replacement: str) -> str:
        return self.patterns.replace_literal(source, target, replacement)

    def replace_pattern(self, document: Document, pattern: str, replacement: str) -> Document:
        return self.patterns.replace_pattern(document, pattern, replacement)

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    def word_frequency(self, document: Document) -> Dict[str, int]:
        return self.analyzer.word_frequency(document)

    def top_words(self, document: Document, limit: int = 10) -> List[Tuple[str, int]]:
        return self.analyzer.top_words(document, limit)

    def statistics(self, document: Document) -> TextStatistics:
        return self.analyzer.statistics(document)

    def summarize(self, document: Document, max_sentences: Optional[int] = None) -> str:
        return self.analyzer.summarize(document, max_sentences)

    def sentence_structure(self, document: Document) -> SentenceStructure:
        return self.analyzer.sentence_structure(document)

    def readability(self, document: Document) -> ReadabilityReport:
        return self.analyzer.readability(document)

    # -------------------------------------------------------------------------
    # Transformation
    # -------------------------------------------------------------------------

    def convert_case(self, document: Document, mode: Union[CaseMode, str]) -> Document:
        return self.transformer.convert_case(document, mode)

    def remove_duplicates(self, document: Document) -> Document:
        return self.transformer.remove_duplicates(document)

    def sort_lines(self, document: Document, ascending: bool = True) -> Document:
        return self.transformer.sort_lines(document, ascending)

    def normalize_whitespace(self, document: Document) -> Document:
        return self.transformer.normalize_whitespace(document)

    def sanitize(self, document: Document) -> Document:
        return self.transformer.sanitize(document)

    def format_json(self, document: Document) -> Document:
        return self.transformer.format_json(document)

    def format_xml(self, document: Document) -> Document:
        return self.transformer.format_xml(document)

    def format_sql(self, document: Document) -> Document:
        return self.transformer.format_sql(document)

    def format_code(self, document: Document, language: str) -> Document:
        return self.transformer.format_code(document, language)

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    def make_operation(self, name: str, **kwargs: Any) -> Operation:
        """
        Bind a transforming operation and its arguments into a
        Document -> Document callable for the batch coordinator.

        Args:
            name: One of OPERATIONS
            **kwargs: Arguments after the document (e.g. mode='snake')

        Raises:
            ValidationError: Unknown operation name, or arguments that do
                not fit the operation (missing or unexpected)
        """
        if name not in self.OPERATIONS:
            raise ValidationError(
                f"Unknown operation: {name!r}. Must be one of {', '.join(self.OPERATIONS)}",
                field='operation'
            )
        method = getattr(self, name)
        try:
            inspect.signature(method).bind(None, **kwargs)
        except TypeError as e:
            raise ValidationError(f"Bad arguments for {name}: {e}", field='kwargs') from e

        if name == 'convert_case':
            # Fail at bind time rather than once per document
            kwargs['mode'] = CaseMode.parse(kwargs['mode'])
        if name == 'replace_pattern':
            self.patterns.compile(kwargs['pattern'])

        operation = functools.partial(method, **kwargs)
        functools.update_wrapper(operation, method)
        return operation

    def process_batch(self, documents: Iterable[Document],
                      operation: Optional[Operation] = None) -> List[Document]:
        """Fail-fast batch; whitespace normalization unless an operation is given."""
        return self.coordinator.run_sync(documents, operation or self.normalize_whitespace)

    def process_batch_async(
        self,
        documents: Iterable[Document],
        operation: Optional[Operation] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> BatchRun:
        """Fail-isolated background batch; see BatchCoordinator.run_async."""
        return self.coordinator.run_async(
            documents, operation or self.normalize_whitespace,
            on_progress=on_progress, on_complete=on_complete, on_error=on_error,
        )
