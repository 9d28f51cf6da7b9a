"""
Entry mapper: turns entries into per-entry FileRecords.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from .config import EntryDefinition, PluginConfig
from .errors import RenderError
from .models import Entry, FileRecord
from .paths import PathStrategy, resolve_path

logger = logging.getLogger('StatticContentful.Mapper')


def order_entries(entries: Sequence[Entry], order: str) -> List[Entry]:
    """
    Stable sort of entries by a field path, descending when prefixed with ``-``.

    Raises:
        RenderError: If an entry lacks the field or values cannot be compared
    """
    reverse = order.startswith('-')
    path = order.lstrip('-')
    keyed = [(entry.lookup(path), entry) for entry in entries]
    try:
        # sorted() keeps ties in input order for reverse=True as well
        return [entry for _, entry in sorted(keyed, key=lambda pair: pair[0], reverse=reverse)]
    except TypeError as e:
        raise RenderError(f"Cannot order entries by '{path}': {e}", field=path)


def map_entries(entries: Iterable[Entry], definition: EntryDefinition, config: PluginConfig,
                strategy: Optional[PathStrategy] = None) -> List[FileRecord]:
    """
    Build one FileRecord per entry of the definition's content type.

    Records come out in their final order; ``metadata['order']`` is the
    position in fetch order, or the rank after sorting by the definition's
    ``order`` field. Entries failing the definition filter still get a file,
    they are only marked ``listed: False`` so listings skip them.

    A fixed ``strategy`` bypasses filename builders, for records that only
    feed listings and are never written.
    """
    matching = [entry for entry in entries if entry.content_type == definition.content_type]
    if definition.order:
        matching = order_entries(matching, definition.order)

    template = definition.template or config.entry_template or definition.content_type
    entry_key = definition.entry_key or config.entry_key

    records = []
    for position, entry in enumerate(matching):
        listed = definition.predicate(entry) if definition.predicate else True
        if strategy:
            path = strategy.resolve(entry, definition.parent_dir, definition.extension)
        else:
            path = resolve_path(entry, definition, config)
        records.append(FileRecord(
            path=path,
            metadata={
                'id': entry.id,
                'contentType': entry.content_type,
                'title': entry.lookup(config.title_field, None),
                'template': template,
                'layout': template,
                'order': position,
                'listed': listed,
                'locale': entry.locale,
                'entry': entry,
                entry_key: entry.raw,
            },
        ))

    logger.debug(f"Mapped {len(records)} entries of {definition.content_type}")
    return records
