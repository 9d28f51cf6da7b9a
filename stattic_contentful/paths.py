"""
Output path strategies for entry files.

Every entry definition resolves to exactly one strategy, picked in
``strategy_for``:

1. a filename builder named by the definition, or registered under the
   entry's content type (``CUSTOM``),
2. the permalink structure ``<parent>/<id>/index.<ext>`` (``PERMALINK``),
3. the flat default ``<parent>/<id>.<ext>`` (``DEFAULT``).
"""

import posixpath
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional

from slugify import slugify

from .config import DEFAULT_EXTENSION, EntryDefinition, PluginConfig
from .errors import ConfigurationError, PluginError, RenderError
from .models import Entry

Builder = Callable[[Entry], str]


class PathStyle(Enum):
    DEFAULT = 'default'
    PERMALINK = 'permalink'
    CUSTOM = 'custom'


def _clean(path):
    path = posixpath.normpath(path.replace('\\', '/').lstrip('/'))
    if path in ('', '.') or path == '..' or path.startswith('../'):
        raise ConfigurationError(f"Output path escapes the destination directory: {path!r}")
    return path


@dataclass(frozen=True)
class PathStrategy:
    style: PathStyle
    handler: Optional[Builder] = None

    def resolve(self, entry: Entry, parent_dir: str = '', extension: Optional[str] = None) -> str:
        """
        Compute the output path of an entry.

        Args:
            entry: The entry being written
            parent_dir: Directory of the defining source file, relative to the root
            extension: Output extension without a dot, ``html`` when omitted

        Returns:
            Relative POSIX path of the output file
        """
        extension = extension or DEFAULT_EXTENSION

        if self.style is PathStyle.CUSTOM:
            try:
                built = self.handler(entry)
            except PluginError:
                raise
            except (KeyError, AttributeError, TypeError) as e:
                raise RenderError(
                    f"Filename builder failed for entry {entry.id} ({entry.content_type}): {e}",
                    entry_id=entry.id,
                )
            if not isinstance(built, str) or not built.strip():
                raise RenderError(
                    f"Filename builder returned {built!r} for entry {entry.id}",
                    entry_id=entry.id,
                )
            return _clean(built)

        if self.style is PathStyle.PERMALINK:
            return _clean(posixpath.join(parent_dir, entry.id, f'index.{extension}'))

        return _clean(posixpath.join(parent_dir, f'{entry.id}.{extension}'))


DEFAULT = PathStrategy(PathStyle.DEFAULT)
PERMALINK = PathStrategy(PathStyle.PERMALINK)


def strategy_for(definition: EntryDefinition, builders: Mapping[str, Builder],
                 permalink_style: bool = False) -> PathStrategy:
    """Pick the path strategy for an entry definition."""
    if definition.filename_builder:
        return PathStrategy(PathStyle.CUSTOM, builders[definition.filename_builder])
    if definition.content_type in builders:
        return PathStrategy(PathStyle.CUSTOM, builders[definition.content_type])

    permalink = definition.permalink if definition.permalink is not None else permalink_style
    return PERMALINK if permalink else DEFAULT


def resolve_path(entry: Entry, definition: EntryDefinition, config: PluginConfig) -> str:
    strategy = strategy_for(definition, config.filename_builders, config.permalink_style)
    return strategy.resolve(entry, definition.parent_dir, definition.extension)


def slug_builder(field: str = 'title', prefix: str = '', extension: str = DEFAULT_EXTENSION) -> Builder:
    """
    Build a filename builder that names files after a slugified field.

    ``slug_builder('title', prefix='post-')`` maps an entry titled
    "Down the Rabbit Hole" to ``post-down-the-rabbit-hole.html``.
    """
    def build(entry: Entry) -> str:
        return f"{prefix}{slugify(str(entry.lookup(field)))}.{extension.lstrip('.')}"

    return build
