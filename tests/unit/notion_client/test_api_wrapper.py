"""Unit tests for notion_client.api_wrapper module."""

import pytest
from unittest.mock import Mock, patch
from requests.exceptions import ConnectionError, HTTPError, Timeout

from notion_backup.notion_client.api_wrapper import NOTION_VERSION, NotionAPI
from notion_backup.notion_client.errors import (
    APIAccessError,
    APIUnreachableError,
    BadRequestError,
    InvalidTokenError,
    PageNotFoundError,
    PermissionDeniedError,
    RateLimitedError,
    ServerError,
)
from notion_backup.page_tree.models import ParentKind


def create_mock_auth(token="secret_abc"):
    mock_auth = Mock()
    mock_auth.get_token.return_value = token
    return mock_auth


def _response(payload=None, status_code=200, headers=None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload if payload is not None else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    return response


def _page(page_id, title, parent=None):
    return {
        'object': 'page',
        'id': page_id,
        'parent': parent or {'type': 'workspace', 'workspace': True},
        'properties': {'title': {'title': [{'plain_text': title}]}},
    }


@pytest.fixture
def api():
    # Single attempt keeps error tests free of backoff sleeps
    return NotionAPI(create_mock_auth(), max_attempts=1)


class TestSession:
    """Test cases for lazy session creation."""

    def test_session_created_lazily(self):
        auth = create_mock_auth()
        NotionAPI(auth)

        auth.get_token.assert_not_called()

    @patch('notion_backup.notion_client.api_wrapper.requests.Session')
    def test_session_headers_and_proxy(self, mock_session_cls):
        session = Mock()
        session.headers = {}
        session.proxies = {}
        session.request.return_value = _response({'results': [], 'has_more': False})
        mock_session_cls.return_value = session

        api = NotionAPI(create_mock_auth("tok"), proxy_url="http://proxy:3128")
        api.search_pages()

        assert session.headers['Authorization'] == "Bearer tok"
        assert session.headers['Notion-Version'] == NOTION_VERSION
        assert session.proxies == {'http': "http://proxy:3128", 'https': "http://proxy:3128"}


class TestListing:
    """Test cases for search pagination and record conversion."""

    def test_list_pages_follows_cursor_and_skips_databases(self, api):
        session = Mock()
        session.request.side_effect = [
            _response({
                'results': [_page('1', 'One'), {'object': 'database', 'id': 'db'}],
                'has_more': True,
                'next_cursor': 'cur-2',
            }),
            _response({
                'results': [_page('2', 'Two', {'type': 'page_id', 'page_id': '1'})],
                'has_more': False,
                'next_cursor': None,
            }),
        ]
        api._session = session

        records = api.list_pages()

        assert [r.page_id for r in records] == ['1', '2']
        assert records[1].parent.kind == ParentKind.PAGE
        second_body = session.request.call_args_list[1].kwargs['json']
        assert second_body == {'page_size': 100, 'start_cursor': 'cur-2'}

    def test_list_block_children_paginates(self, api):
        session = Mock()
        session.request.side_effect = [
            _response({'results': [{'id': 'b1'}], 'has_more': True, 'next_cursor': 'n'}),
            _response({'results': [{'id': 'b2'}], 'has_more': False}),
        ]
        api._session = session

        blocks = api.list_block_children('page-1')

        assert [b['id'] for b in blocks] == ['b1', 'b2']
        assert session.request.call_args_list[1].kwargs['params'] == {'page_size': 100, 'start_cursor': 'n'}

    def test_retrieve_page_rejects_empty_id(self, api):
        with pytest.raises(ValueError):
            api.retrieve_page('  ')


class TestErrorTranslation:
    """Test cases for HTTP status to exception mapping."""

    @pytest.mark.parametrize("status, error_cls", [
        (400, BadRequestError),
        (401, InvalidTokenError),
        (403, PermissionDeniedError),
        (404, PageNotFoundError),
        (429, RateLimitedError),
        (500, ServerError),
        (503, ServerError),
        (409, APIAccessError),
    ])
    def test_status_codes(self, api, status, error_cls):
        session = Mock()
        session.request.return_value = _response({'message': 'nope'}, status_code=status)
        api._session = session

        with pytest.raises(error_cls):
            api.retrieve_page('abc')

    def test_not_found_carries_page_id(self, api):
        session = Mock()
        session.request.return_value = _response(status_code=404)
        api._session = session

        with pytest.raises(PageNotFoundError) as exc_info:
            api.retrieve_page('abc')

        assert exc_info.value.page_id == 'abc'

    def test_rate_limit_reads_retry_after(self, api):
        session = Mock()
        session.request.return_value = _response(status_code=429, headers={'Retry-After': '2'})
        api._session = session

        with pytest.raises(RateLimitedError) as exc_info:
            api.search_pages()

        assert exc_info.value.retry_after == 2.0

    @pytest.mark.parametrize("exception", [Timeout("slow"), ConnectionError("refused")])
    def test_transport_failures_are_unreachable(self, api, exception):
        session = Mock()
        session.request.side_effect = exception
        api._session = session

        with pytest.raises(APIUnreachableError):
            api.search_pages()

    @patch('time.sleep')
    def test_calls_are_retried(self, mock_sleep):
        api = NotionAPI(create_mock_auth(), max_attempts=3, base_delay_ms=1000)
        session = Mock()
        session.request.side_effect = [
            _response(status_code=502),
            _response({'id': 'abc', 'object': 'page'}),
        ]
        api._session = session

        assert api.retrieve_page('abc')['id'] == 'abc'
        mock_sleep.assert_called_once_with(1.0)
