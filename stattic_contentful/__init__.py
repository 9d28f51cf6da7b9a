"""
stattic-contentful - build static pages from Contentful entries.

Fetches entries from the Contentful Delivery API (or reads entries already
present in the source tree), writes one file per entry and assembles listing
pages with filters, locales, ordering and limits.
"""

__version__ = "1.0.0"

from .config import EntryDefinition, ListingDefinition, PluginConfig
from .errors import ConfigurationError, FetchError, PluginError, RenderError
from .models import Entry, FileRecord, FileSet
from .paths import PathStrategy, PathStyle, slug_builder
from .pipeline import Pipeline
from .plugin import ContentfulPlugin, contentful
from .render import layouts, markdown

__all__ = [
    'ContentfulPlugin', 'contentful', 'Pipeline', 'markdown', 'layouts',
    'PluginConfig', 'EntryDefinition', 'ListingDefinition',
    'Entry', 'FileRecord', 'FileSet', 'PathStrategy', 'PathStyle', 'slug_builder',
    'PluginError', 'ConfigurationError', 'FetchError', 'RenderError',
]
