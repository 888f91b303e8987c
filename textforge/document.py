"""
Document Model
==============
The unit of text every engine operation consumes.

A Document is identified by its id alone: two documents with the same id
compare equal whatever their content. Transforming operations never edit a
document in place, they return a derived document with a fresh id.
"""

import uuid
import threading
from datetime import datetime, timedelta
from typing import Dict, Any, Optional

from .config_logging import ValidationError

_ONE_TICK = timedelta(microseconds=1)


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(
            f"Document {field} must be a string, got {type(value).__name__}", field=field
        )
    return value


class Document:
    """A named, timestamped unit of text content."""

    __slots__ = ('_id', '_name', '_content', '_created_at', '_modified_at', '_lock')

    def __init__(self, name: str, content: str):
        self._id = str(uuid.uuid4())
        self._name = _require_text(name, 'name')
        self._content = _require_text(content, 'content')
        now = datetime.now()
        self._created_at = now
        self._modified_at = now
        self._lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        value = _require_text(value, 'name')
        with self._lock:
            self._name = value
            self._touch()

    @property
    def content(self) -> str:
        return self._content

    @content.setter
    def content(self, value: str):
        value = _require_text(value, 'content')
        with self._lock:
            self._content = value
            self._touch()

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def modified_at(self) -> datetime:
        return self._modified_at

    def _touch(self):
        # modified_at must move forward even when the wall clock stalls or steps back
        now = datetime.now()
        if now <= self._modified_at:
            now = self._modified_at + _ONE_TICK
        self._modified_at = now

    def derive(self, content: str, suffix: Optional[str] = None) -> 'Document':
        """
        Create a new document (fresh id) holding transformed content.

        Args:
            content: Content of the derived document
            suffix: Optional label appended to the name as "name (suffix)"
        """
        name = f"{self._name} ({suffix})" if suffix else self._name
        return Document(name, content)

    def copy(self) -> 'Document':
        """Independent value copy keeping id and timestamps."""
        clone = Document.__new__(Document)
        clone._id = self._id
        clone._name = self._name
        clone._content = self._content
        clone._created_at = self._created_at
        clone._modified_at = self._modified_at
        clone._lock = threading.Lock()
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self._id,
            'name': self._name,
            'content': self._content,
            'created_at': self._created_at.isoformat(),
            'modified_at': self._modified_at.isoformat(),
            'characters': len(self._content),
        }

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Document):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __len__(self) -> int:
        return len(self._content)

    def __repr__(self) -> str:
        return f"Document(id={self._id[:8]!r}, name={self._name!r}, chars={len(self._content)})"


def text_of(source: Any) -> str:
    """Return the text of a Document, or the string itself."""
    if isinstance(source, Document):
        return source.content
    if isinstance(source, str):
        return source
    raise ValidationError(
        f"Expected a Document or str, got {type(source).__name__}", field='document'
    )
