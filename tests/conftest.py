"""Test configuration and fixtures for stattic-contentful tests."""

import os
import sys
import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from stattic_contentful.client import ContentfulClient

POSTS_TYPE = '2wKn6yEnZewu2SCCkus4as'
RABBIT_ID = '1asN98Ph3mUiCYIYiiqwko'
TIPS_ID = 'A96usFSlY4G0W4kwAqswk'
RABBIT_TITLE = 'Down the Rabbit Hole'
TIPS_TITLE = 'Seven Tips From Ernest Hemingway on How to Write Fiction'


def make_raw_entry(entry_id, title=None, content_type=POSTS_TYPE, locale='en-US', created_at=None, **fields):
    """Build a record shaped like a Delivery API entry."""
    if title is not None:
        fields['title'] = title
    return {
        'sys': {
            'id': entry_id,
            'type': 'Entry',
            'locale': locale,
            'createdAt': created_at or '2013-09-03T00:00:00.000Z',
            'contentType': {'sys': {'type': 'Link', 'linkType': 'ContentType', 'id': content_type}},
        },
        'fields': fields,
    }


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def raw_posts():
    """The two blog posts of the example space, in API order."""
    return [
        make_raw_entry(RABBIT_ID, RABBIT_TITLE, created_at='2013-09-03T12:00:00.000Z', category='fiction'),
        make_raw_entry(TIPS_ID, TIPS_TITLE, created_at='2013-09-04T12:00:00.000Z', category='advice'),
    ]


@pytest.fixture
def mock_client(raw_posts):
    """A ContentfulClient double serving the example posts."""
    client = Mock(spec=ContentfulClient)

    def entries(content_type, **query):
        return [raw for raw in raw_posts if raw['sys']['contentType']['sys']['id'] == content_type]

    def entry(entry_id, **query):
        for raw in raw_posts:
            if raw['sys']['id'] == entry_id:
                return raw
        raise AssertionError(f"unexpected entry id {entry_id}")

    client.entries.side_effect = entries
    client.entry.side_effect = entry
    return client


@pytest.fixture
def site_dir(temp_dir):
    """Create a site with source pages and Jinja2 templates."""
    root = Path(temp_dir)
    src = root / 'src'
    templates = root / 'templates'
    src.mkdir()
    templates.mkdir()

    (templates / 'post.html').write_text("{{ title }}")
    (templates / 'posts.html').write_text(
        "{% for entry in entries %}{{ entry.fields.title }}{% endfor %}\n{{ body }}"
    )
    (templates / 'single.html').write_text("{{ title }} - {{ data.fields.title }}")

    (src / 'posts.html').write_text(f"""---
layout: posts.html
contentful:
  content_type: {POSTS_TYPE}
  entry_template: post.html
---
POSTS-CONTENT
""")
    (src / 'index.html').write_text("Home")
    return root
