"""HTTP clients for the GitLab and GitHub REST APIs."""

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

USER_AGENT = 'velocity-report-bot'


def encode_id(identifier) -> str:
    """URL-encode an id or namespaced path for use as one path segment."""
    return quote(str(identifier), safe='')


class BaseAPIClient:
    """Shared session setup for token-authenticated REST APIs."""

    def __init__(self, base_url: str, timeout: int = 30, retries: int = 0):
        """Initialize the client.

        Args:
            base_url: API root, without a trailing slash
            timeout: Per-request timeout in seconds
            retries: Transport-level retries for 5xx responses
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()

        # Fan-out runs up to 10 repositories at once, each with up to 3 requests in flight
        adapter = HTTPAdapter(
            pool_connections=50,
            pool_maxsize=50,
            max_retries=Retry(
                total=retries,
                backoff_factor=0.3,
                status_forcelist=[500, 502, 503, 504],
                raise_on_status=False
            )
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

    def url(self, path: str) -> str:
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get_response(self, path: str, params: Dict = None) -> requests.Response:
        url = self.url(path)
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response

    def get(self, path: str, params: Dict = None) -> Any:
        """Make a single GET request and return the decoded JSON body.

        Raises:
            requests.HTTPError: On a non-2xx response
        """
        return self._get_response(path, params).json()


class GitLabAPIClient(BaseAPIClient):
    """GitLab v4 API client with X-Next-Page pagination."""

    def __init__(self, token: str, base_url: str = 'https://gitlab.com/api/v4',
                 timeout: int = 30, retries: int = 0):
        super().__init__(base_url, timeout, retries)
        self.token = token
        self.session.headers.update({'PRIVATE-TOKEN': token})
        logging.info("Initialized GitLab API client with token")

    def get_paginated(self, path: str, params: Dict = None) -> List[Dict]:
        """Fetch all pages of a GitLab list endpoint.

        Args:
            path: Endpoint path relative to the API root
            params: Query parameters

        Returns:
            List of all items from all pages
        """
        results = []
        page = 1
        params = dict(params or {})
        params['per_page'] = 100

        while True:
            params['page'] = page
            logging.debug(f"Fetching page {page} from {path}")
            response = self._get_response(path, params)
            data = response.json()
            if isinstance(data, list):
                results.extend(data)

            next_page = (response.headers.get('X-Next-Page') or '').strip()
            if not next_page or next_page == '0':
                break
            page = int(next_page)

        logging.debug(f"Fetched {len(results)} total items from {path}")
        return results


class GitHubAPIClient(BaseAPIClient):
    """GitHub REST API client with Link-header pagination."""

    def __init__(self, token: str, base_url: str = 'https://api.github.com',
                 timeout: int = 30, retries: int = 0):
        super().__init__(base_url, timeout, retries)
        self.token = token
        self.session.headers.update({
            'Authorization': f'token {token}',
            'Accept': 'application/vnd.github+json',
            'User-Agent': USER_AGENT
        })
        logging.info("Initialized GitHub API client with token")

    def get_paginated(self, path: str, params: Dict = None,
                      should_continue: Optional[Callable[[List[Dict]], bool]] = None) -> List[Dict]:
        """Fetch pages of a GitHub list endpoint.

        Args:
            path: Endpoint path relative to the API root
            params: Query parameters
            should_continue: Optional callback that takes a page of results and returns
                           False to stop pagination early, True to continue

        Returns:
            List of all items from the fetched pages
        """
        results = []
        page = 1
        params = dict(params or {})
        params['per_page'] = 100

        while True:
            params['page'] = page
            logging.debug(f"Fetching page {page} from {path}")
            response = self._get_response(path, params)
            data = response.json()

            if not isinstance(data, list) or not data:
                break

            results.extend(data)

            if 'next' not in (response.links or {}):
                break

            if should_continue and not should_continue(data):
                logging.debug(f"Early termination triggered at page {page}")
                break

            page += 1

        logging.debug(f"Fetched {len(results)} total items from {path}")
        return results


def describe_error(error: Exception):
    """HTTP status code of a failed request, or the error text when there is none."""
    response = getattr(error, 'response', None)
    if response is not None:
        return response.status_code
    return str(error)
