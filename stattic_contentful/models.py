"""
Entries, staged files and the file set shared by the pipeline stages.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from .errors import ConfigurationError, RenderError

_MISSING = object()


@dataclass(frozen=True)
class Entry:
    """One content record as returned by the Content Delivery API."""

    id: str
    content_type: str
    fields: Mapping[str, Any]
    locale: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_raw(cls, record: Mapping[str, Any]) -> 'Entry':
        """
        Normalize a raw API record into an Entry.

        Args:
            record: Mapping with ``sys`` and ``fields`` keys

        Returns:
            The normalized Entry

        Raises:
            ConfigurationError: If the record has no id or content type
        """
        if not isinstance(record, Mapping):
            raise ConfigurationError(f"Entry record must be a mapping, got {type(record).__name__}")

        sys_info = record.get('sys') or {}
        entry_id = sys_info.get('id')
        content_type = ((sys_info.get('contentType') or {}).get('sys') or {}).get('id')
        if not entry_id or not content_type:
            raise ConfigurationError(f"Entry record is missing sys.id or sys.contentType: {dict(sys_info)!r}")

        return cls(
            id=str(entry_id),
            content_type=str(content_type),
            fields=dict(record.get('fields') or {}),
            locale=sys_info.get('locale'),
            raw=record,
        )

    def lookup(self, path: str, default: Any = _MISSING) -> Any:
        """
        Resolve a dotted field path against this entry.

        ``fields.title`` and ``title`` both read the ``title`` field, while
        ``sys.createdAt`` reads from the system block of the raw record.

        Raises:
            RenderError: If the path does not exist and no default was given
        """
        parts = path.split('.')
        if parts[0] == 'sys':
            current = self.raw.get('sys', {})
            parts = parts[1:]
        else:
            current = self.fields
            if parts[0] == 'fields':
                parts = parts[1:]

        for part in parts:
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            else:
                if default is not _MISSING:
                    return default
                raise RenderError(
                    f"Entry {self.id} ({self.content_type}) has no field '{path}'",
                    entry_id=self.id,
                    field=path,
                )
        return current

    def has(self, path: str) -> bool:
        return self.lookup(path, None) is not None


@dataclass
class FileRecord:
    """A virtual output file staged in the pipeline's file set."""

    path: str
    contents: bytes = b''
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def content_type(self) -> Optional[str]:
        return self.metadata.get('contentType')

    @property
    def order(self) -> int:
        return self.metadata.get('order', 0)

    @property
    def entry(self) -> Optional[Entry]:
        return self.metadata.get('entry')

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.path)[1].lstrip('.')

    def text(self, encoding: str = 'utf-8') -> str:
        return self.contents.decode(encoding)


class FileSet:
    """
    Ordered collection of FileRecords keyed by output path.

    Stages receive the same instance by reference. Paths are unique across a
    build; adding a second record under an existing path is an error.
    """

    def __init__(self, records: Iterable[FileRecord] = ()):
        self._records: Dict[str, FileRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: FileRecord) -> FileRecord:
        if record.path in self._records:
            raise ConfigurationError(f"Duplicate output path: {record.path}")
        self._records[record.path] = record
        return record

    def replace(self, record: FileRecord) -> FileRecord:
        self._records[record.path] = record
        return record

    def remove(self, path: str) -> FileRecord:
        return self._records.pop(path)

    def get(self, path: str) -> Optional[FileRecord]:
        return self._records.get(path)

    def of_content_type(self, content_types: Iterable[str]) -> List[FileRecord]:
        """Return the records generated for any of the given content types, in insertion order."""
        wanted = set(content_types)
        return [record for record in self._records.values() if record.content_type in wanted]

    def paths(self) -> List[str]:
        return list(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        return path in self._records

    def __getitem__(self, path: str) -> FileRecord:
        return self._records[path]
