"""
Listing assembler: aggregate pages over mapped entry records.
"""

import logging
from typing import Iterable, List, Sequence

from .config import ListingDefinition, PluginConfig
from .errors import RenderError
from .mapper import order_entries
from .models import FileRecord

logger = logging.getLogger('StatticContentful.Listing')


def select_records(records: Iterable[FileRecord], definition: ListingDefinition,
                   paired: Sequence[FileRecord] = ()) -> List[FileRecord]:
    """
    Apply a listing's selection rules to candidate records.

    Steps, in order: content type match (first record per entry wins),
    locale, filter, ordering, limit.

    ``paired`` holds the records of the entry definition declared by the
    listing's own source file. They come first, and only their ``listed``
    flag is honoured; filters of other definitions never hide entries here.
    """
    wanted = set(definition.content_types)
    paired_ids = {id(record) for record in paired}
    selected = []
    seen = set()
    for record in list(paired) + list(records):
        entry = record.entry
        if entry is None or record.content_type not in wanted:
            continue
        key = (entry.content_type, entry.id)
        if key in seen:
            continue
        seen.add(key)
        if id(record) in paired_ids and not record.metadata.get('listed', True):
            continue
        selected.append(record)

    if definition.locale:
        selected = [record for record in selected if record.entry.locale == definition.locale]

    if definition.predicate:
        selected = [record for record in selected if definition.predicate(record.entry)]

    if definition.order:
        by_entry = {id(record.entry): record for record in selected}
        ordered = order_entries([record.entry for record in selected], definition.order)
        selected = [by_entry[id(entry)] for entry in ordered]
    else:
        selected = sorted(selected, key=lambda record: record.order)

    if definition.limit is not None:
        selected = selected[:definition.limit]
    return selected


def assemble_listing(records: Iterable[FileRecord], definition: ListingDefinition,
                     config: PluginConfig, paired: Sequence[FileRecord] = ()) -> FileRecord:
    """
    Build the listing FileRecord for a definition.

    The contents are the titles of the selected entries, concatenated. An
    empty selection is valid and yields an empty body.

    Raises:
        RenderError: If a selected entry has no title
    """
    selected = select_records(records, definition, paired)

    titles = []
    for record in selected:
        title = record.metadata.get('title')
        if title is None:
            raise RenderError(
                f"Listing {definition.path}: entry {record.entry.id} has no '{config.title_field}' field",
                entry_id=record.entry.id,
                field=config.title_field,
            )
        titles.append(str(title))

    if not selected:
        logger.debug(f"Listing {definition.path} has no matching entries")

    metadata = dict(definition.metadata)
    metadata.update({
        'entries': [record.entry for record in selected],
        'files': selected,
        'count': len(selected),
        'contentTypes': list(definition.content_types),
    })
    if definition.body:
        metadata['body'] = definition.body.decode('utf-8')
    if definition.template:
        metadata['template'] = definition.template
    layout = definition.layout or definition.template
    if layout:
        metadata['layout'] = layout

    return FileRecord(path=definition.path, contents=''.join(titles).encode('utf-8'), metadata=metadata)
