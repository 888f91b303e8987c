"""
TextForge Text Processing Engine v1.0.0
=======================================
Backend library for pattern search and replacement, text statistics,
naive summarization, case conversion, line cleanup, structural
reformatting and batch processing of text documents.

Features:
- Regex search, extraction, validation and replacement
- Word frequency, text statistics, sentence profile, readability
- Case conversion, deduplication, line sorting, JSON/XML/SQL reindentation
- Synchronous (fail-fast) and background (fail-isolated) batch runs
  with progress and per-document error callbacks

The engine never reads or writes files; callers supply the text.
"""

from .config_logging import (
    EngineConfig,
    get_config,
    reset_config,
    get_logger,
    TextForgeError,
    ValidationError,
    InvalidPatternError,
    ProcessingError,
    BatchItemError,
)
from .document import Document
from .patterns import PatternEngine
from .analyzer import TextAnalyzer, TextStatistics, SentenceStructure
from .readability import ReadabilityCalculator, ReadabilityReport
from .transformer import TextTransformer, CaseMode
from .batch import BatchCoordinator, BatchRun, BatchResult, BatchStatus, BatchProgress
from .processor import TextProcessor

__version__ = "1.0.0"
__all__ = [
    'EngineConfig',
    'get_config',
    'reset_config',
    'get_logger',
    'TextForgeError',
    'ValidationError',
    'InvalidPatternError',
    'ProcessingError',
    'BatchItemError',
    'Document',
    'PatternEngine',
    'TextAnalyzer',
    'TextStatistics',
    'SentenceStructure',
    'ReadabilityCalculator',
    'ReadabilityReport',
    'TextTransformer',
    'CaseMode',
    'BatchCoordinator',
    'BatchRun',
    'BatchResult',
    'BatchStatus',
    'BatchProgress',
    'TextProcessor',
]
