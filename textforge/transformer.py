#!/usr/bin/env python3
"""
Text Transformer v1.0.0
=======================
Case conversion, line deduplication and sorting, whitespace cleanup and
structural reindentation of JSON, XML and SQL.

Every operation returns a derived Document; the input is never modified.

The formatters are structural only. They do not validate their input:
malformed text still produces best-effort output, and indentation depth
never drops below zero (unmatched closers leave it unchanged).
"""

import re
from enum import Enum
from typing import List, Optional, Union

from .config_logging import get_logger, get_config, handle_errors, ValidationError
from .document import Document
from .analyzer import SENTENCE_PATTERN

__version__ = "1.0.0"

logger = get_logger('textforge.transformer')


class CaseMode(Enum):
    """Case conversion modes."""
    UPPER = "upper"
    LOWER = "lower"
    TITLE = "title"
    SENTENCE = "sentence"
    CAMEL = "camel"
    SNAKE = "snake"
    KEBAB = "kebab"

    @classmethod
    def parse(cls, value: Union['CaseMode', str]) -> 'CaseMode':
        """Accept a CaseMode or its name/value in any letter case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for mode in cls:
                if mode.value == key:
                    return mode
        raise ValidationError(
            f"Unknown case mode: {value!r}. Must be one of {', '.join(m.value for m in cls)}",
            field='mode'
        )


# Word boundaries for identifier-style cases
IDENTIFIER_SPLIT_PATTERN = re.compile(r'[\W_]+')
CASE_BOUNDARY_PATTERN = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')
WHITESPACE_PATTERN = re.compile(r'\s+')
UNSAFE_CHARS_PATTERN = re.compile(r'[<>"\'&]')

# SQL clauses that start a new line, longest alternatives first
SQL_CLAUSES = (
    r'LEFT\s+OUTER\s+JOIN', r'RIGHT\s+OUTER\s+JOIN', r'FULL\s+OUTER\s+JOIN',
    r'LEFT\s+JOIN', r'RIGHT\s+JOIN', r'INNER\s+JOIN', r'CROSS\s+JOIN', r'JOIN',
    r'SELECT', r'FROM', r'WHERE', r'GROUP\s+BY', r'ORDER\s+BY', r'HAVING',
    r'LIMIT', r'OFFSET', r'UNION\s+ALL', r'UNION', r'INSERT\s+INTO', r'VALUES',
    r'UPDATE', r'SET', r'DELETE\s+FROM', r'ON',
)
SQL_CLAUSE_PATTERN = re.compile(r'\b(' + '|'.join(SQL_CLAUSES) + r')\b', re.IGNORECASE)
SQL_CONDITION_PATTERN = re.compile(r'\b(AND|OR)\b', re.IGNORECASE)
SQL_LITERAL_PATTERN = re.compile(r"'(?:[^']|'')*'|\"[^\"]*\"")
SQL_PLACEHOLDER_PATTERN = re.compile(r'\x00(\d+)\x00')


def identifier_tokens(text: str) -> List[str]:
    """Split text on non-alphanumeric runs and lower-to-upper case transitions."""
    tokens = []
    for chunk in IDENTIFIER_SPLIT_PATTERN.split(text):
        tokens.extend(part for part in CASE_BOUNDARY_PATTERN.split(chunk) if part)
    return tokens


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


class TextTransformer:
    """
    Produces transformed copies of documents.

    Usage:
        transformer = TextTransformer()
        snake = transformer.convert_case(doc, CaseMode.SNAKE)
        pretty = transformer.format_json(doc)
    """

    FORMATTERS = {
        'json': 'format_json',
        'xml': 'format_xml',
        'html': 'format_xml',
        'sql': 'format_sql',
    }

    def __init__(self, indent_width: Optional[int] = None):
        """
        Args:
            indent_width: Spaces per indentation level for the formatters;
                defaults to the configured width
        """
        if indent_width is None:
            indent_width = get_config().indent_width
        if indent_width < 1:
            raise ValidationError("indent_width must be at least 1", field='indent_width')
        self.indent_width = indent_width

    @property
    def _unit(self) -> str:
        return " " * self.indent_width

    # -------------------------------------------------------------------------
    # Case conversion
    # -------------------------------------------------------------------------

    @handle_errors('convert_case')
    def convert_case(self, document: Document, mode: Union[CaseMode, str]) -> Document:
        """
        Convert the case of a document's content.

        TITLE re-joins whitespace-separated words with single spaces.
        SENTENCE capitalizes the first letter of each sentence and lowers
        the rest of it; text after the last terminator is left alone.
        CAMEL, SNAKE and KEBAB rebuild the content as a single identifier.
        """
        mode = CaseMode.parse(mode)
        logger.debug(f"Converting case to {mode.value}", document_id=document.id)
        content = document.content

        if mode is CaseMode.UPPER:
            converted = content.upper()
        elif mode is CaseMode.LOWER:
            converted = content.lower()
        elif mode is CaseMode.TITLE:
            converted = " ".join(_capitalize(word) for word in content.split())
        elif mode is CaseMode.SENTENCE:
            converted = SENTENCE_PATTERN.sub(self._sentence_case, content)
        else:
            tokens = [t.lower() for t in identifier_tokens(content)]
            if mode is CaseMode.CAMEL:
                converted = "".join(tokens[:1] + [_capitalize(t) for t in tokens[1:]])
            elif mode is CaseMode.SNAKE:
                converted = "_".join(tokens)
            else:
                converted = "-".join(tokens)

        return document.derive(converted)

    @staticmethod
    def _sentence_case(match: 're.Match') -> str:
        sentence = match.group(0)
        body = sentence.lstrip()
        lead = sentence[:len(sentence) - len(body)]
        return lead + body[:1].upper() + body[1:].lower()

    # -------------------------------------------------------------------------
    # Line operations
    # -------------------------------------------------------------------------

    @handle_errors('remove_duplicates')
    def remove_duplicates(self, document: Document) -> Document:
        """Keep the first occurrence of each line, in original order."""
        unique = dict.fromkeys(document.content.split('\n'))
        result = document.derive('\n'.join(unique), suffix='deduplicated')
        logger.info("Removed duplicate lines", document_id=document.id,
                    lines_removed=document.content.count('\n') + 1 - len(unique))
        return result

    @handle_errors('sort_lines')
    def sort_lines(self, document: Document, ascending: bool = True) -> Document:
        """Stable ordinal sort of lines."""
        lines = sorted(document.content.split('\n'), reverse=not ascending)
        result = document.derive('\n'.join(lines), suffix='sorted')
        logger.info("Sorted lines", document_id=document.id, ascending=ascending)
        return result

    @handle_errors('normalize_whitespace')
    def normalize_whitespace(self, document: Document) -> Document:
        """Trim and collapse every whitespace run to a single space."""
        content = WHITESPACE_PATTERN.sub(' ', document.content.strip())
        result = document.derive(content, suffix='processed')
        logger.info("Processed document", document_id=document.id)
        return result

    @handle_errors('sanitize')
    def sanitize(self, document: Document) -> Document:
        """Strip markup-sensitive characters: < > " ' &."""
        return document.derive(UNSAFE_CHARS_PATTERN.sub('', document.content), suffix='sanitized')

    # -------------------------------------------------------------------------
    # Structural formatting
    # -------------------------------------------------------------------------

    @handle_errors('format_json')
    def format_json(self, document: Document) -> Document:
        """
        Reindent JSON-like text.

        Opening brackets raise the depth and break the line, commas break
        the line, closing brackets lower the depth and go on their own line.
        Double-quoted strings are copied verbatim.
        """
        unit = self._unit
        out: List[str] = []
        depth = 0
        pending_break = False
        in_string = False
        escaped = False

        for ch in document.content.strip():
            if in_string:
                out.append(ch)
                if escaped:
                    escaped = False
                elif ch == '\\':
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue

            if ch.isspace():
                if not pending_break:
                    out.append(ch)
                continue

            if ch in '}]':
                depth = max(0, depth - 1)
                if pending_break and out and out[-1] in '{[':
                    # empty container stays on one line
                    out.append(ch)
                else:
                    while out and out[-1].isspace():
                        out.pop()
                    if out:
                        out.append('\n' + unit * depth)
                    out.append(ch)
                pending_break = False
                continue

            if pending_break:
                out.append('\n' + unit * depth)
                pending_break = False
            out.append(ch)

            if ch in '{[':
                depth += 1
                pending_break = True
            elif ch == ',':
                pending_break = True
            elif ch == '"':
                in_string = True

        result = document.derive(''.join(out), suffix='formatted JSON')
        logger.info("Formatted JSON", document_id=document.id)
        return result

    @handle_errors('format_xml')
    def format_xml(self, document: Document) -> Document:
        """
        Reindent XML-like markup.

        Each tag starts on its own line at the current depth. Opening tags
        raise the depth, closing tags lower it first. Text directly inside
        an element stays on the line of its opening tag, as does the
        matching closing tag. Comments, CDATA, declarations and
        self-closing tags do not change the depth.
        """
        content = document.content.strip()
        unit = self._unit
        out: List[str] = []
        depth = 0
        prev = None  # 'open', 'inline', 'close', 'other', 'text'
        pos = 0
        length = len(content)

        def newline():
            if out:
                out.append('\n' + unit * depth)

        while pos < length:
            if content[pos] != '<':
                nxt = content.find('<', pos)
                if nxt == -1:
                    nxt = length
                text = content[pos:nxt].strip()
                if text:
                    if prev == 'open':
                        out.append(text)
                        prev = 'inline'
                    else:
                        newline()
                        out.append(text)
                        prev = 'text'
                pos = nxt
                continue

            end = self._tag_end(content, pos)
            tag = content[pos:end]
            pos = end

            if tag.startswith('</'):
                depth = max(0, depth - 1)
                if prev not in ('open', 'inline'):
                    newline()
                out.append(tag)
                prev = 'close'
            elif tag.startswith(('<?', '<!')) or tag.endswith('/>') or not tag.endswith('>'):
                newline()
                out.append(tag)
                prev = 'other'
            else:
                newline()
                out.append(tag)
                depth += 1
                prev = 'open'

        result = document.derive(''.join(out), suffix='formatted XML')
        logger.info("Formatted XML", document_id=document.id)
        return result

    @staticmethod
    def _tag_end(content: str, pos: int) -> int:
        """Index just past the tag starting at pos (end of text if unterminated)."""
        for opener, closer in (('<!--', '-->'), ('<![CDATA[', ']]>')):
            if content.startswith(opener, pos):
                end = content.find(closer, pos + len(opener))
                return len(content) if end == -1 else end + len(closer)
        end = content.find('>', pos)
        return len(content) if end == -1 else end + 1

    @handle_errors('format_sql')
    def format_sql(self, document: Document) -> Document:
        """
        Put each major SQL clause on its own line.

        Clause keywords are upper-cased and AND/OR conditions are indented
        one level. Quoted literals are left untouched.
        """
        unit = self._unit
        literals: List[str] = []

        def stash(match):
            literals.append(match.group(0))
            return f'\x00{len(literals) - 1}\x00'

        # Literals are swapped out so line cleanup never reaches inside them
        text = SQL_LITERAL_PATTERN.sub(stash, document.content.strip())
        text = WHITESPACE_PATTERN.sub(' ', text)
        text = SQL_CLAUSE_PATTERN.sub(
            lambda m: '\n' + WHITESPACE_PATTERN.sub(' ', m.group(1).upper()), text)
        text = SQL_CONDITION_PATTERN.sub(lambda m: '\n' + unit + m.group(1).upper(), text)

        lines = [line.rstrip() for line in text.split('\n')]
        formatted = '\n'.join(line if line.startswith(unit) else line.lstrip()
                              for line in lines if line.strip())
        formatted = SQL_PLACEHOLDER_PATTERN.sub(lambda m: literals[int(m.group(1))], formatted)
        return document.derive(formatted, suffix='formatted SQL')

    def format_code(self, document: Document, language: str) -> Document:
        """Dispatch to the formatter for `language` (json, xml, html, sql)."""
        if not isinstance(language, str):
            raise ValidationError(
                f"language must be a string, got {type(language).__name__}", field='language'
            )
        method = self.FORMATTERS.get(language.strip().lower())
        if method is None:
            raise ValidationError(
                f"Unsupported language: {language!r}. Supported: {', '.join(sorted(self.FORMATTERS))}",
                field='language'
            )
        return getattr(self, method)(document)
