"""Tests for output path resolution."""

import pytest

from stattic_contentful.config import EntryDefinition, PluginConfig
from stattic_contentful.errors import ConfigurationError, RenderError
from stattic_contentful.models import Entry
from stattic_contentful.paths import PathStyle, resolve_path, slug_builder, strategy_for

from conftest import POSTS_TYPE, RABBIT_ID, RABBIT_TITLE, TIPS_ID, TIPS_TITLE, make_raw_entry


@pytest.fixture
def entries():
    return [
        Entry.from_raw(make_raw_entry(RABBIT_ID, RABBIT_TITLE)),
        Entry.from_raw(make_raw_entry(TIPS_ID, TIPS_TITLE)),
    ]


class TestPathResolution:
    """Test cases for default, permalink and custom paths."""

    def test_default_path(self, entries):
        """Test that the default path is <id>.html."""
        definition = EntryDefinition(content_type=POSTS_TYPE)
        config = PluginConfig()

        for entry in entries:
            assert resolve_path(entry, definition, config) == f'{entry.id}.html'

    def test_default_path_with_extension(self, entries):
        definition = EntryDefinition(content_type=POSTS_TYPE, extension='awesome')

        assert resolve_path(entries[0], definition, PluginConfig()) == f'{RABBIT_ID}.awesome'

    def test_default_path_in_parent_dir(self, entries):
        definition = EntryDefinition(content_type=POSTS_TYPE, parent_dir='blog/posts')

        assert resolve_path(entries[0], definition, PluginConfig()) == f'blog/posts/{RABBIT_ID}.html'

    def test_permalink_path(self, entries):
        """Test that permalink definitions produce <id>/index.<ext>."""
        definition = EntryDefinition(content_type=POSTS_TYPE, permalink=True)
        config = PluginConfig()

        for entry in entries:
            assert resolve_path(entry, definition, config) == f'{entry.id}/index.html'

    def test_permalink_with_extension_and_parent(self, entries):
        definition = EntryDefinition(content_type=POSTS_TYPE, permalink=True, extension='awesome', parent_dir='blog')

        assert resolve_path(entries[1], definition, PluginConfig()) == f'blog/{TIPS_ID}/index.awesome'

    def test_global_permalink_style(self, entries):
        """Test that the global permalink option applies unless a definition overrides it."""
        config = PluginConfig(permalink_style=True)

        assert resolve_path(entries[0], EntryDefinition(content_type=POSTS_TYPE), config) == f'{RABBIT_ID}/index.html'
        assert resolve_path(entries[0], EntryDefinition(content_type=POSTS_TYPE, permalink=False), config) == f'{RABBIT_ID}.html'

    def test_builder_by_content_type_wins(self, entries):
        """Test that a filename builder beats both built-in conventions."""
        config = PluginConfig(filename_builders={POSTS_TYPE: lambda entry: f'custom-{entry.id}.txt'})
        definition = EntryDefinition(content_type=POSTS_TYPE, permalink=True, extension='awesome')

        assert strategy_for(definition, config.filename_builders).style is PathStyle.CUSTOM
        assert resolve_path(entries[0], definition, config) == f'custom-{RABBIT_ID}.txt'

    def test_builder_named_by_definition(self, entries):
        config = PluginConfig(filename_builders={'aldente': slug_builder('title', prefix='aldente-')})
        definition = EntryDefinition(content_type=POSTS_TYPE, filename_builder='aldente')

        assert resolve_path(entries[1], definition, config) == \
            'aldente-seven-tips-from-ernest-hemingway-on-how-to-write-fiction.html'

    def test_builder_for_other_content_type_ignored(self, entries):
        config = PluginConfig(filename_builders={'author': lambda entry: 'author.html'})
        definition = EntryDefinition(content_type=POSTS_TYPE)

        assert strategy_for(definition, config.filename_builders).style is PathStyle.DEFAULT
        assert resolve_path(entries[0], definition, config) == f'{RABBIT_ID}.html'

    def test_builder_output_is_normalized(self, entries):
        config = PluginConfig(filename_builders={POSTS_TYPE: lambda entry: f'/posts//{entry.id}.html'})

        assert resolve_path(entries[0], EntryDefinition(content_type=POSTS_TYPE), config) == f'posts/{RABBIT_ID}.html'

    def test_builder_cannot_escape_destination(self, entries):
        config = PluginConfig(filename_builders={POSTS_TYPE: lambda entry: '../outside.html'})

        with pytest.raises(ConfigurationError, match="escapes the destination"):
            resolve_path(entries[0], EntryDefinition(content_type=POSTS_TYPE), config)

    def test_builder_missing_field(self, entries):
        """Test that a builder reading a missing field fails the build."""
        config = PluginConfig(filename_builders={POSTS_TYPE: lambda entry: entry.fields['slug'] + '.html'})

        with pytest.raises(RenderError, match=RABBIT_ID):
            resolve_path(entries[0], EntryDefinition(content_type=POSTS_TYPE), config)

    def test_slug_builder_missing_field(self, entries):
        config = PluginConfig(filename_builders={POSTS_TYPE: slug_builder('headline')})

        with pytest.raises(RenderError, match="headline"):
            resolve_path(entries[0], EntryDefinition(content_type=POSTS_TYPE), config)

    def test_builder_must_return_path(self, entries):
        config = PluginConfig(filename_builders={POSTS_TYPE: lambda entry: None})

        with pytest.raises(RenderError, match="returned None"):
            resolve_path(entries[0], EntryDefinition(content_type=POSTS_TYPE), config)


class TestSlugBuilder:
    """Test cases for slug_builder."""

    def test_slug_builder(self, entries):
        build = slug_builder('title', prefix='post-')

        assert build(entries[0]) == 'post-down-the-rabbit-hole.html'
        assert build(entries[1]) == 'post-seven-tips-from-ernest-hemingway-on-how-to-write-fiction.html'

    def test_slug_builder_extension(self, entries):
        assert slug_builder(extension='.md')(entries[0]) == 'down-the-rabbit-hole.md'
