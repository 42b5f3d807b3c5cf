"""API wrapper for the Notion REST API.

This module wraps a requests Session and provides error translation from
HTTP failures to our typed exception hierarchy. Every call goes through
the retry logic.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests
from requests.exceptions import ConnectionError, Timeout

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    BadRequestError,
    InvalidTokenError,
    NotionError,
    PageNotFoundError,
    PermissionDeniedError,
    RateLimitedError,
    ServerError,
)
from .page_records import record_from_page
from .retry_logic import DEFAULT_BASE_DELAY_MS, DEFAULT_MAX_ATTEMPTS, with_retry
from ..page_tree.models import PageRecord

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
PAGE_SIZE = 100
REQUEST_TIMEOUT = 30


class NotionAPI:
    """Thin wrapper around the Notion REST API with error translation.

    This class:
    1. Authenticates with the integration token from the Authenticator
    2. Routes requests through an optional forward proxy
    3. Translates HTTP errors to typed exceptions
    4. Retries every call with exponential backoff

    Example:
        >>> api = NotionAPI(Authenticator())
        >>> records = api.list_pages()
    """

    def __init__(
        self,
        authenticator: Authenticator,
        proxy_url: Optional[str] = None,
        timeout: int = REQUEST_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        base_url: str = NOTION_API_URL,
    ):
        """Initialize the API wrapper.

        Args:
            authenticator: Authenticator providing the integration token
            proxy_url: Optional forward proxy for all requests
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per call (see retry_logic.with_retry)
            base_delay_ms: Initial retry delay in milliseconds
            base_url: API root URL
        """
        self._authenticator = authenticator
        self._proxy_url = proxy_url
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._base_delay_ms = base_delay_ms
        self._base_url = base_url.rstrip('/')
        self._session: Optional[requests.Session] = None

    def _get_session(self) -> requests.Session:
        """Get or lazily create the HTTP session.

        Raises:
            InvalidTokenError: If the token is missing
        """
        if self._session is None:
            session = requests.Session()
            session.headers.update({
                'Authorization': f"Bearer {self._authenticator.get_token()}",
                'Notion-Version': NOTION_VERSION,
                'Content-Type': 'application/json',
            })
            if self._proxy_url:
                session.proxies.update({'http': self._proxy_url, 'https': self._proxy_url})
            self._session = session
        return self._session

    def _translate_error(self, exception: Exception, operation: str) -> NotionError:
        """Translate transport and HTTP exceptions to typed Notion exceptions.

        Args:
            exception: The original exception from requests
            operation: Description of the failing operation, e.g. "retrieve_page(abc)"

        Returns:
            The translated exception
        """
        if isinstance(exception, NotionError):
            return exception

        if isinstance(exception, (Timeout, ConnectionError)):
            return APIUnreachableError(endpoint=self._base_url)

        response = getattr(exception, 'response', None)
        status_code = getattr(response, 'status_code', None)
        message = _error_message(response) or str(exception)

        if status_code == 400:
            return BadRequestError(message)
        if status_code == 401:
            return InvalidTokenError()
        if status_code == 403:
            return PermissionDeniedError(resource=operation)
        if status_code == 404:
            return PageNotFoundError(page_id=_operation_argument(operation))
        if status_code == 429:
            return RateLimitedError(retry_after=_retry_after(response))
        if status_code is not None and status_code >= 500:
            return ServerError(status_code)

        logger.error(f"API operation failed: {operation} - {message}")
        return APIAccessError(f"Notion API failure during {operation}", status_code=status_code)

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Perform one API request with retries and error translation."""
        url = f"{self._base_url}/{path.lstrip('/')}"

        def _call() -> Dict[str, Any]:
            try:
                response = self._get_session().request(
                    method,
                    url,
                    json=json_body,
                    params=params,
                    timeout=self._timeout,
                )
                response.raise_for_status()
                return response.json()
            except Exception as e:
                raise self._translate_error(e, operation) from e

        logger.debug(f"Notion API: {method} /{path.lstrip('/')}")
        return with_retry(_call, max_attempts=self._max_attempts, base_delay_ms=self._base_delay_ms)

    def search_pages(self, start_cursor: Optional[str] = None) -> Dict[str, Any]:
        """Fetch one page of the workspace search listing.

        Args:
            start_cursor: Continuation cursor from the previous response

        Returns:
            Raw response with 'results', 'has_more' and 'next_cursor'
        """
        body: Dict[str, Any] = {'page_size': PAGE_SIZE}
        if start_cursor:
            body['start_cursor'] = start_cursor
        return self._request('POST', 'search', 'search', json_body=body)

    def iter_pages(self) -> Iterator[Dict[str, Any]]:
        """Iterate over every page object shared with the integration."""
        cursor: Optional[str] = None
        while True:
            response = self.search_pages(start_cursor=cursor)
            for item in response.get('results', []):
                if item.get('object') == 'page':
                    yield item
            if not response.get('has_more'):
                break
            cursor = response.get('next_cursor')
            if not cursor:
                break

    def list_pages(self) -> List[PageRecord]:
        """List every page shared with the integration as PageRecords.

        Returns:
            Flat list of PageRecord in listing order

        Raises:
            NotionError: If the listing fails after retries
        """
        records = [record_from_page(page) for page in self.iter_pages()]
        logger.info(f"Listed {len(records)} pages from the workspace")
        return records

    def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        """Fetch a single page object by id."""
        if not page_id or not page_id.strip():
            raise ValueError("page_id cannot be empty")
        return self._request('GET', f"pages/{page_id}", f"retrieve_page({page_id})")

    def list_block_children(self, block_id: str) -> List[Dict[str, Any]]:
        """Fetch all direct children of a block (or page), following cursors.

        Nothing in this package renders blocks itself: this is the entry
        point for exporter plug-ins, which receive the NotionAPI instance
        from load_exporter and render the returned block tree to markdown.
        """
        if not block_id or not block_id.strip():
            raise ValueError("block_id cannot be empty")

        blocks: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            params: Dict[str, Any] = {'page_size': PAGE_SIZE}
            if cursor:
                params['start_cursor'] = cursor
            response = self._request(
                'GET',
                f"blocks/{block_id}/children",
                f"list_block_children({block_id})",
                params=params,
            )
            blocks.extend(response.get('results', []))
            if not response.get('has_more') or not response.get('next_cursor'):
                break
            cursor = response['next_cursor']
        return blocks


def _error_message(response: Optional[requests.Response]) -> Optional[str]:
    """Extract the 'message' field of a Notion error body, if any."""
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get('message')
    return None


def _operation_argument(operation: str) -> str:
    """Return the argument inside 'name(arg)', or 'unknown'."""
    if '(' in operation and operation.endswith(')'):
        return operation[operation.index('(') + 1:-1]
    return "unknown"


def _retry_after(response: Optional[requests.Response]) -> Optional[float]:
    """Seconds from a Retry-After header; None when absent or an HTTP date."""
    if response is None:
        return None
    value = response.headers.get('Retry-After')
    try:
        return float(value) if value else None
    except ValueError:
        return None
