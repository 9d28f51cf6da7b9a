"""
Minimal client for the Contentful Content Delivery API.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import FetchError

# Largest page the Delivery API serves in a single response
MAX_PAGE_SIZE = 1000

USER_AGENT = 'StatticContentful/1.0'


class ContentfulClient:
    def __init__(self, space_id: str, access_token: str, host: str = 'cdn.contentful.com',
                 environment: Optional[str] = None, timeout: Optional[float] = None, session=None):
        self.space_id = space_id
        self.host = host
        self.environment = environment
        self.timeout = timeout
        self.logger = logging.getLogger('StatticContentful.Client')

        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {access_token}',
            'User-Agent': USER_AGENT,
        })

        self.base_url = f"https://{host}/spaces/{space_id}"
        if environment:
            self.base_url += f"/environments/{environment}"

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Issue one GET request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        self.logger.debug(f"GET {url} {params or {}}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request to Contentful failed: {e}", url=url)

        if not 200 <= response.status_code < 300:
            message = response.reason or 'error'
            try:
                message = response.json().get('message', message)
            except ValueError:
                pass
            raise FetchError(
                f"Contentful responded {response.status_code} for {url}: {message}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from Contentful at {url}: {e}", status_code=response.status_code, url=url)

    def entries(self, content_type: str, **query) -> List[Dict[str, Any]]:
        """
        Fetch the entries of one content type with a single request.

        Args:
            content_type: Content type id used as the server-side filter
            **query: Extra Delivery API query parameters (``locale``, ...)

        Returns:
            Raw entry records in the order the API returned them
        """
        params = {'limit': MAX_PAGE_SIZE}
        params.update(query)
        params['content_type'] = content_type
        body = self._get('/entries', params)

        items = body.get('items', [])
        total = body.get('total', len(items))
        if total > len(items):
            self.logger.warning(
                f"Content type {content_type} has {total} entries, only the first {len(items)} were fetched"
            )
        return items

    def entry(self, entry_id: str, **query) -> Dict[str, Any]:
        """Fetch a single entry by id."""
        return self._get(f'/entries/{entry_id}', query or None)

    def close(self):
        self.session.close()
