"""
Typed, eagerly validated configuration for the Contentful plugin.

Options arrive either from a settings file (see ``settings.py``), from the
command line, or as a plain dict passed by the caller. They are checked here,
before any request is made, so a broken configuration fails the build
without touching the network.
"""

import importlib
import posixpath
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from .errors import ConfigurationError
from .filters import Predicate, compile_filter

DEFAULT_HOST = 'cdn.contentful.com'
DEFAULT_ENTRY_KEY = 'data'
DEFAULT_EXTENSION = 'html'

FRONT_MATTER_KEY = 'contentful'
FRONT_MATTER_OPTIONS = {
    'content_type', 'entry_template', 'entry_extension', 'permalink_style',
    'filter', 'limit', 'order', 'locale', 'include', 'filename_builder',
    'entry_id', 'entry_key',
}

# Metadata written by the mapper and single-entry pages
RESERVED_METADATA = {'id', 'contentType', 'title', 'template', 'layout', 'order', 'listed', 'locale', 'entry'}


def _require_str(value, name):
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"'{name}' must be a non-empty string")
    return value.strip()


def _optional_str(value, name):
    if value is None:
        return None
    return _require_str(value, name)


def _entry_key(value, name):
    key = _require_str(value, name)
    if key in RESERVED_METADATA:
        raise ConfigurationError(f"'{name}' cannot be '{key}', that metadata key is reserved")
    return key


def _normalize_extension(value):
    if value is None:
        return None
    return _require_str(value, 'extension').lstrip('.')


def _normalize_order(value):
    if value is None:
        return None
    order = _require_str(value, 'order')
    if order.lstrip('-') == '':
        raise ConfigurationError(f"Invalid order field: {value!r}")
    return order


def _as_type_list(value, name):
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(',') if part.strip()]
    if isinstance(value, (list, tuple)):
        return [_require_str(item, name) for item in value]
    raise ConfigurationError(f"'{name}' must be a string or a list of strings")


def _check_keys(data, allowed, what):
    unknown = set(data) - set(allowed)
    if unknown:
        raise ConfigurationError(f"Unknown {what} option(s): {', '.join(sorted(unknown))}")


def resolve_builder(value: Any, name: str) -> Callable:
    """
    Resolve a filename builder given as a callable or a ``module:function`` path.

    Raises:
        ConfigurationError: If the builder cannot be imported or is not callable
    """
    if callable(value):
        return value
    if not isinstance(value, str) or ':' not in value:
        raise ConfigurationError(
            f"Filename builder '{name}' must be a callable or a 'module:function' path, got {value!r}"
        )
    module_name, _, attribute = value.partition(':')
    try:
        builder = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import filename builder '{name}' from {value!r}: {e}")
    if not callable(builder):
        raise ConfigurationError(f"Filename builder '{name}' ({value}) is not callable")
    return builder


@dataclass
class EntryDefinition:
    """How entries of one content type become individual output files."""

    content_type: str
    parent_dir: str = ''
    extension: Optional[str] = None
    permalink: Optional[bool] = None
    template: Optional[str] = None
    order: Optional[str] = None
    filter: Any = None
    filename_builder: Optional[str] = None
    entry_key: Optional[str] = None
    predicate: Optional[Predicate] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.content_type = _require_str(self.content_type, 'content_type')
        self.parent_dir = (self.parent_dir or '').strip('/')
        self.extension = _normalize_extension(self.extension)
        self.template = _optional_str(self.template, 'template')
        self.order = _normalize_order(self.order)
        self.filename_builder = _optional_str(self.filename_builder, 'filename_builder')
        self.entry_key = _entry_key(self.entry_key, 'entry_key') if self.entry_key is not None else None
        if self.permalink is not None and not isinstance(self.permalink, bool):
            raise ConfigurationError("'permalink' must be true or false")
        self.predicate = compile_filter(self.filter)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'EntryDefinition':
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Entry definition must be a mapping, got {data!r}")
        _check_keys(data, {
            'content_type', 'parent_dir', 'extension', 'permalink', 'template',
            'order', 'filter', 'filename_builder', 'entry_key',
        }, 'entry definition')
        if 'content_type' not in data:
            raise ConfigurationError("Entry definition requires 'content_type'")
        return cls(**data)


@dataclass
class ListingDefinition:
    """An aggregate page over the entries of one or more content types."""

    path: str
    content_types: List[str] = field(default_factory=list)
    include: List[str] = field(default_factory=list)
    filter: Any = None
    locale: Optional[str] = None
    order: Optional[str] = None
    limit: Optional[int] = None
    template: Optional[str] = None
    layout: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    body: bytes = b''
    predicate: Optional[Predicate] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.path = _require_str(self.path, 'path').lstrip('/')
        types = _as_type_list(self.content_types, 'content_types')
        for extra in _as_type_list(self.include, 'include'):
            if extra not in types:
                types.append(extra)
        if not types:
            raise ConfigurationError(f"Listing '{self.path}' needs at least one content type")
        self.content_types = types
        self.include = []
        self.locale = _optional_str(self.locale, 'locale')
        self.order = _normalize_order(self.order)
        self.template = _optional_str(self.template, 'template')
        self.layout = _optional_str(self.layout, 'layout')
        if self.limit is not None:
            if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1:
                raise ConfigurationError(f"Listing '{self.path}' limit must be a positive integer, got {self.limit!r}")
        self.predicate = compile_filter(self.filter)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ListingDefinition':
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Listing definition must be a mapping, got {data!r}")
        _check_keys(data, {
            'path', 'content_type', 'content_types', 'include', 'filter', 'locale',
            'order', 'limit', 'template', 'layout',
        }, 'listing definition')
        if 'path' not in data:
            raise ConfigurationError("Listing definition requires 'path'")
        options = dict(data)
        types = _as_type_list(options.pop('content_type', None), 'content_type')
        types += _as_type_list(options.pop('content_types', None), 'content_types')
        return cls(content_types=types, **options)


@dataclass
class SingleEntryPage:
    """A source file that renders exactly one entry, fetched by id."""

    path: str
    entry_id: str
    entry_key: str


@dataclass
class FrontMatterDefinition:
    """The definitions declared by one source file's ``contentful`` block."""

    path: str
    entry: Optional[EntryDefinition] = None
    listing: Optional[ListingDefinition] = None
    single: Optional[SingleEntryPage] = None


@dataclass
class PluginConfig:
    """All options of one plugin run."""

    space_id: Optional[str] = None
    access_token: Optional[str] = None
    host: str = DEFAULT_HOST
    environment: Optional[str] = None
    contentful: Optional[Mapping[str, Any]] = None
    entry_key: str = DEFAULT_ENTRY_KEY
    entry_extension: str = DEFAULT_EXTENSION
    permalink_style: bool = False
    entry_template: Optional[str] = None
    title_field: str = 'title'
    filename_builders: Dict[str, Callable] = field(default_factory=dict)
    entries: List[EntryDefinition] = field(default_factory=list)
    listings: List[ListingDefinition] = field(default_factory=list)
    timeout: Optional[float] = None
    source: Optional[str] = None
    destination: Optional[str] = None

    def __post_init__(self):
        self.space_id = _optional_str(self.space_id, 'space_id')
        self.access_token = _optional_str(self.access_token, 'access_token')
        if bool(self.space_id) != bool(self.access_token):
            raise ConfigurationError("Both 'space_id' and 'access_token' are required to fetch from Contentful")
        if self.contentful is not None:
            if not isinstance(self.contentful, Mapping):
                raise ConfigurationError("'contentful' must be a mapping of query options")
            if not self.remote:
                raise ConfigurationError("'contentful' is set but 'space_id'/'access_token' are missing")
            _optional_str(self.contentful.get('content_type'), 'contentful.content_type')
        self.host = _require_str(self.host, 'host')
        self.environment = _optional_str(self.environment, 'environment')
        self.entry_key = _entry_key(self.entry_key, 'entry_key')
        self.entry_extension = _normalize_extension(self.entry_extension)
        self.entry_template = _optional_str(self.entry_template, 'entry_template')
        self.title_field = _require_str(self.title_field, 'title_field')
        if not isinstance(self.permalink_style, bool):
            raise ConfigurationError("'permalink_style' must be true or false")
        if self.timeout is not None and (isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout <= 0):
            raise ConfigurationError(f"'timeout' must be a positive number, got {self.timeout!r}")

        self.filename_builders = {
            str(name): resolve_builder(builder, name)
            for name, builder in (self.filename_builders or {}).items()
        }
        self.entries = [
            definition if isinstance(definition, EntryDefinition) else EntryDefinition.from_dict(definition)
            for definition in self.entries or []
        ]
        self.listings = [
            definition if isinstance(definition, ListingDefinition) else ListingDefinition.from_dict(definition)
            for definition in self.listings or []
        ]
        for definition in self.entries:
            self._check_builder_name(definition.filename_builder)

    def _check_builder_name(self, name):
        if name is not None and name not in self.filename_builders:
            raise ConfigurationError(f"Unknown filename builder '{name}'")

    @property
    def remote(self) -> bool:
        """True when credentials are present and entries are fetched from the API."""
        return bool(self.space_id and self.access_token)

    @property
    def content_type(self) -> Optional[str]:
        if self.contentful:
            return self.contentful.get('content_type')
        return None

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> 'PluginConfig':
        """
        Build a config from a flat options mapping.

        Accepts the option names used in settings files, including ``src``,
        ``dest`` and ``filenameBuilders``.

        Raises:
            ConfigurationError: On unknown options or invalid values
        """
        options = dict(options or {})
        aliases = {
            'src': 'source',
            'dest': 'destination',
            'filenameBuilders': 'filename_builders',
        }
        for alias, name in aliases.items():
            if alias in options:
                options[name] = options.pop(alias)

        known = {f for f in cls.__dataclass_fields__}
        _check_keys(options, known, 'plugin')
        return cls(**options)

    def parse_front_matter(self, path: str, metadata: Mapping[str, Any]) -> Optional[FrontMatterDefinition]:
        """
        Read the ``contentful`` block of a source file, if it has one.

        A block with ``entry_id`` turns the file into a single-entry page. A
        block with ``content_type`` makes the file a listing, and also an
        entry definition when the block itself names ``entry_template``; the
        global ``entry_template`` never turns a listing into an entry
        definition, so several listings may share a directory.
        """
        block = metadata.get(FRONT_MATTER_KEY)
        if block is None:
            return None
        if not isinstance(block, Mapping):
            raise ConfigurationError(f"{path}: '{FRONT_MATTER_KEY}' front matter must be a mapping")
        try:
            _check_keys(block, FRONT_MATTER_OPTIONS, f"{FRONT_MATTER_KEY} front matter")
            entry_key = _entry_key(block['entry_key'], 'entry_key') if block.get('entry_key') else self.entry_key
        except ConfigurationError as e:
            raise ConfigurationError(f"{path}: {e}")

        parsed = FrontMatterDefinition(path=path)

        if block.get('entry_id') is not None:
            if not self.remote:
                raise ConfigurationError(f"{path}: 'entry_id' requires Contentful credentials")
            parsed.single = SingleEntryPage(path=path, entry_id=str(block['entry_id']), entry_key=entry_key)
            return parsed

        if 'content_type' not in block:
            raise ConfigurationError(f"{path}: front matter needs 'content_type' or 'entry_id'")

        try:
            template = block.get('entry_template')
            if template:
                parsed.entry = EntryDefinition(
                    content_type=block['content_type'],
                    parent_dir=posixpath.dirname(path),
                    extension=block.get('entry_extension'),
                    permalink=block.get('permalink_style'),
                    template=template,
                    order=block.get('order'),
                    filter=block.get('filter'),
                    filename_builder=block.get('filename_builder'),
                    entry_key=entry_key,
                )
                self._check_builder_name(parsed.entry.filename_builder)

            parsed.listing = ListingDefinition(
                path=path,
                content_types=[block['content_type']],
                include=block.get('include'),
                filter=block.get('filter'),
                locale=block.get('locale'),
                order=block.get('order'),
                limit=block.get('limit'),
                layout=metadata.get('layout'),
                template=metadata.get('template'),
                metadata={k: v for k, v in metadata.items() if k != FRONT_MATTER_KEY},
            )
        except ConfigurationError as e:
            raise ConfigurationError(f"{path}: {e}")
        return parsed
