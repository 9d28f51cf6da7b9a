"""
Entry source: remote fetch or entries already staged in the file set.
"""

import logging
import posixpath
from typing import Iterable, List, Optional

from .client import ContentfulClient
from .config import PluginConfig
from .errors import ConfigurationError
from .models import Entry, FileRecord, FileSet

logger = logging.getLogger('StatticContentful.Source')


def create_client(config: PluginConfig) -> ContentfulClient:
    return ContentfulClient(
        config.space_id,
        config.access_token,
        host=config.host,
        environment=config.environment,
        timeout=config.timeout,
    )


def _rendered_path(path):
    """The path a staged file ends up at once the markdown stage converted it."""
    root, extension = posixpath.splitext(path)
    return root + '.html' if extension == '.md' else path


def _unique(values):
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def read_local_entries(config: PluginConfig, files: FileSet) -> List[Entry]:
    """
    Collect entries staged under ``entry_key`` in files with ``entry_extension``.

    Raises:
        ConfigurationError: If no such file exists
    """
    entries = []
    matched = 0
    for record in files:
        if record.extension != config.entry_extension or config.entry_key not in record.metadata:
            continue
        matched += 1
        value = record.metadata[config.entry_key]
        for raw in value if isinstance(value, list) else [value]:
            try:
                entries.append(Entry.from_raw(raw))
            except ConfigurationError as e:
                raise ConfigurationError(f"{record.path}: {e}")

    if not matched:
        raise ConfigurationError(
            f"No '.{config.entry_extension}' files with a '{config.entry_key}' key found "
            f"and no Contentful credentials configured"
        )
    logger.debug(f"Read {len(entries)} local entries from {matched} files")
    return entries


def fetch_entries(config: PluginConfig, files: FileSet, client: Optional[ContentfulClient] = None,
                  content_types: Iterable[str] = ()) -> List[Entry]:
    """
    Produce the entries of this build.

    Without credentials the entries come from the file set. Otherwise one
    query is issued per content type: the configured ``contentful.content_type``
    first, then the types named by entry and listing definitions.

    Raises:
        ConfigurationError: In local mode, when no staged entries are found
        FetchError: When a remote query fails
    """
    if not config.remote:
        return read_local_entries(config, files)

    types = _unique([config.content_type] + list(content_types))
    if not types:
        logger.info("No content types configured, nothing to fetch")
        return []

    query = {k: v for k, v in (config.contentful or {}).items() if k != 'content_type'}
    client = client or create_client(config)

    entries = []
    for content_type in types:
        items = client.entries(content_type, **query)
        logger.info(f"Fetched {len(items)} entries of content type {content_type}")
        entries.extend(Entry.from_raw(item) for item in items)
    return entries


def stage_entries(entries: Iterable[Entry], files: FileSet, config: PluginConfig) -> int:
    """
    Expose fetched entries of ``contentful.content_type`` as files.

    Each becomes ``<id>.<entry_extension>`` holding the raw record under
    ``entry_key``. An entry is skipped when its path, or the ``.html`` path a
    markdown file is rendered to, is already taken, typically by a mapped
    per-entry page.

    Returns:
        Number of files staged
    """
    content_type = config.content_type
    if not content_type:
        return 0

    staged = 0
    for entry in entries:
        if entry.content_type != content_type:
            continue
        path = f"{entry.id}.{config.entry_extension}"
        if path in files or _rendered_path(path) in files:
            logger.debug(f"Not staging entry {entry.id}: {path} or its rendered form already exists")
            continue
        files.add(FileRecord(path=path, metadata={
            config.entry_key: entry.raw,
            'id': entry.id,
        }))
        staged += 1
    return staged
