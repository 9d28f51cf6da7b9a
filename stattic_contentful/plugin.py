"""
The Contentful pipeline stage.

Runs once per build: collects definitions, fetches entries, stages one file
per entry and one file per listing into the shared file set.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from .client import ContentfulClient
from .config import EntryDefinition, ListingDefinition, PluginConfig, SingleEntryPage
from .listing import assemble_listing
from .mapper import map_entries
from .models import Entry, FileRecord, FileSet
from .paths import DEFAULT
from .source import create_client, fetch_entries, stage_entries


class ContentfulPlugin:
    def __init__(self, options: Union[PluginConfig, Mapping[str, Any], None] = None,
                 client: Optional[ContentfulClient] = None):
        if isinstance(options, PluginConfig):
            self.config = options
        else:
            self.config = PluginConfig.from_options(options)
        self.client = client
        self.logger = logging.getLogger('StatticContentful.Plugin')

    def __call__(self, files: FileSet, pipeline=None):
        self.run(files)

    def collect_definitions(self, files: FileSet):
        """Gather configured definitions plus those declared in front matter."""
        entry_definitions: List[EntryDefinition] = list(self.config.entries)
        listings: List[ListingDefinition] = list(self.config.listings)
        singles: List[SingleEntryPage] = []
        pairs: Dict[str, EntryDefinition] = {}

        for record in files:
            parsed = self.config.parse_front_matter(record.path, record.metadata)
            if parsed is None:
                continue
            if parsed.single:
                singles.append(parsed.single)
                continue
            if parsed.entry:
                entry_definitions.append(parsed.entry)
                pairs[record.path] = parsed.entry
            parsed.listing.body = record.contents
            listings.append(parsed.listing)

        return entry_definitions, listings, singles, pairs

    def run(self, files: FileSet):
        entry_definitions, listings, singles, pairs = self.collect_definitions(files)

        content_types = [definition.content_type for definition in entry_definitions]
        for listing in listings:
            content_types.extend(listing.content_types)

        owns_client = False
        client = self.client
        if client is None and self.config.remote:
            client = create_client(self.config)
            owns_client = True

        try:
            entries = fetch_entries(self.config, files, client, content_types)
            for single in singles:
                self.fill_single_entry(files, client, single)
        finally:
            if owns_client:
                client.close()

        mapped: Dict[int, List[FileRecord]] = {}
        generated = 0
        for definition in entry_definitions:
            records = map_entries(entries, definition, self.config)
            for record in records:
                files.add(record)
            mapped[id(definition)] = records
            generated += len(records)

        # Entries no definition wrote still feed listings; they are never
        # written, so their paths skip the filename builders.
        unstaged: Dict[str, List[FileRecord]] = {}
        for listing in listings:
            paired = pairs.get(listing.path)
            paired_records = mapped.get(id(paired), []) if paired else []
            pool = files.of_content_type(listing.content_types)
            for content_type in listing.content_types:
                if content_type not in unstaged:
                    unstaged[content_type] = map_entries(
                        entries, EntryDefinition(content_type=content_type), self.config, strategy=DEFAULT
                    )
                pool.extend(unstaged[content_type])

            record = assemble_listing(pool, listing, self.config, paired=paired_records)
            existing = files.get(listing.path)
            if existing is not None and existing.metadata.get('contentful') is not None:
                files.replace(record)
            else:
                files.add(record)

        staged = stage_entries(entries, files, self.config)

        self.logger.info(
            f"Contentful: {len(entries)} entries, {generated} entry files, "
            f"{len(listings)} listings, {len(singles)} single pages, {staged} staged"
        )

    def fill_single_entry(self, files: FileSet, client: ContentfulClient, single: SingleEntryPage):
        """Attach one entry, fetched by id, to the page that asked for it."""
        raw = client.entry(single.entry_id)
        entry = Entry.from_raw(raw)
        record = files[single.path]
        record.metadata[single.entry_key] = raw
        record.metadata['entry'] = entry
        record.metadata.setdefault('title', entry.lookup(self.config.title_field, None))
        self.logger.debug(f"Attached entry {entry.id} to {single.path}")


def contentful(options: Union[PluginConfig, Mapping[str, Any], None] = None, **kwargs) -> ContentfulPlugin:
    """Create the plugin from an options mapping or keyword arguments."""
    if options is None:
        options = kwargs
    elif kwargs:
        options = {**options, **kwargs}
    return ContentfulPlugin(options)
