"""Tests for the Content Delivery API client."""

import pytest
import requests
from unittest.mock import Mock, patch

from stattic_contentful.client import MAX_PAGE_SIZE, ContentfulClient
from stattic_contentful.errors import FetchError

from conftest import POSTS_TYPE, RABBIT_ID


def make_response(status_code=200, body=None, reason='OK'):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def client():
    client = ContentfulClient('space', 'token')
    yield client
    client.close()


class TestContentfulClient:
    """Test cases for ContentfulClient."""

    def test_session_headers(self, client):
        assert client.session.headers['Authorization'] == 'Bearer token'
        assert client.session.headers['User-Agent'].startswith('StatticContentful/')

    def test_base_url(self):
        assert ContentfulClient('space', 'token').base_url == 'https://cdn.contentful.com/spaces/space'
        preview = ContentfulClient('space', 'token', host='preview.contentful.com', environment='staging')
        assert preview.base_url == 'https://preview.contentful.com/spaces/space/environments/staging'

    def test_entries_single_request(self, client, raw_posts):
        """Test that one content type costs exactly one request."""
        with patch.object(client.session, 'get', return_value=make_response(
            body={'items': raw_posts, 'total': 2}
        )) as mock_get:
            items = client.entries(POSTS_TYPE, locale='en-US')

        assert items == raw_posts
        mock_get.assert_called_once()
        args, kwargs = mock_get.call_args
        assert args[0] == 'https://cdn.contentful.com/spaces/space/entries'
        assert kwargs['params'] == {'limit': MAX_PAGE_SIZE, 'locale': 'en-US', 'content_type': POSTS_TYPE}

    def test_entries_truncated_warning(self, client, raw_posts, caplog):
        with patch.object(client.session, 'get', return_value=make_response(
            body={'items': raw_posts, 'total': 1500}
        )):
            items = client.entries(POSTS_TYPE)

        assert len(items) == 2
        assert 'only the first 2 were fetched' in caplog.text

    def test_entry_by_id(self, client, raw_posts):
        with patch.object(client.session, 'get', return_value=make_response(body=raw_posts[0])) as mock_get:
            assert client.entry(RABBIT_ID) == raw_posts[0]

        assert mock_get.call_args[0][0].endswith(f'/entries/{RABBIT_ID}')

    def test_timeout_passed(self, raw_posts):
        client = ContentfulClient('space', 'token', timeout=5)
        with patch.object(client.session, 'get', return_value=make_response(body={'items': []})) as mock_get:
            client.entries(POSTS_TYPE)

        assert mock_get.call_args[1]['timeout'] == 5

    def test_http_error(self, client):
        """Test that a rejected request raises FetchError with the API message."""
        with patch.object(client.session, 'get', return_value=make_response(
            status_code=401, reason='Unauthorized',
            body={'message': 'The access token you sent could not be found or is invalid.'},
        )):
            with pytest.raises(FetchError, match="401.*access token") as excinfo:
                client.entries(POSTS_TYPE)

        assert excinfo.value.status_code == 401
        assert excinfo.value.url.endswith('/entries')

    def test_http_error_without_json(self, client):
        with patch.object(client.session, 'get', return_value=make_response(
            status_code=503, reason='Service Unavailable', body=ValueError('no json'),
        )):
            with pytest.raises(FetchError, match="503.*Service Unavailable"):
                client.entries(POSTS_TYPE)

    def test_network_error(self, client):
        with patch.object(client.session, 'get', side_effect=requests.exceptions.ConnectionError('unreachable')):
            with pytest.raises(FetchError, match="Request to Contentful failed"):
                client.entries(POSTS_TYPE)

    def test_invalid_json(self, client):
        with patch.object(client.session, 'get', return_value=make_response(body=ValueError('bad'))):
            with pytest.raises(FetchError, match="Invalid JSON"):
                client.entries(POSTS_TYPE)
