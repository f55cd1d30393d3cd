from unittest.mock import MagicMock

import pytest
import requests

from onion_monitor.directory import DirectoryClient, DirectoryError, DirectoryResource

LISTING_URL = "https://api.github.com/repos/example/dir/contents/src/data"


def _response(payload=None, *, error=None):
    resp = MagicMock()
    resp.json.return_value = payload
    if error is not None:
        resp.raise_for_status.side_effect = error
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def mock_session():
    return MagicMock()


def test_list_resources_filters_json_files(mock_session):
    mock_session.get.return_value = _response(
        [
            {"name": "wallets.json", "type": "file", "download_url": "https://raw/wallets.json"},
            {"name": "README.md", "type": "file", "download_url": "https://raw/README.md"},
            {"name": "nested", "type": "dir", "download_url": None},
            {"name": "nourl.json", "type": "file", "download_url": None},
        ]
    )

    client = DirectoryClient(LISTING_URL, session=mock_session, timeout=5)
    resources = client.list_resources()

    assert resources == [DirectoryResource(name="wallets.json", download_url="https://raw/wallets.json")]
    args, kwargs = mock_session.get.call_args
    assert args[0] == LISTING_URL
    assert kwargs["timeout"] == 5
    assert kwargs["headers"] == {"User-Agent": "onion-monitoring-tool"}


def test_list_resources_skips_entries_with_mistyped_fields(mock_session):
    mock_session.get.return_value = _response(
        [
            {"name": 42, "type": "file", "download_url": "https://raw/42"},
            {"name": "bad-url.json", "type": "file", "download_url": ["https://raw/x"]},
            {"name": "infra.json", "type": "file", "download_url": "https://raw/infra.json"},
        ]
    )

    client = DirectoryClient(LISTING_URL, session=mock_session)

    assert client.list_resources() == [
        DirectoryResource(name="infra.json", download_url="https://raw/infra.json")
    ]


def test_token_is_sent_as_bearer(mock_session):
    mock_session.get.return_value = _response([])

    DirectoryClient(LISTING_URL, token="secret", session=mock_session).list_resources()

    _, kwargs = mock_session.get.call_args
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


def test_list_resources_raises_directory_error_on_http_failure(mock_session):
    mock_session.get.return_value = _response(error=requests.HTTPError("403 rate limited"))

    with pytest.raises(DirectoryError):
        DirectoryClient(LISTING_URL, session=mock_session).list_resources()


def test_list_resources_rejects_non_list_payload(mock_session):
    mock_session.get.return_value = _response({"message": "Not Found"})

    with pytest.raises(DirectoryError):
        DirectoryClient(LISTING_URL, session=mock_session).list_resources()


def test_fetch_candidates_skips_failed_resources(mock_session):
    listing = _response(
        [
            {"name": "a.json", "type": "file", "download_url": "https://raw/a.json"},
            {"name": "b.json", "type": "file", "download_url": "https://raw/b.json"},
            {"name": "c.json", "type": "file", "download_url": "https://raw/c.json"},
        ]
    )
    good = _response([{"name": "Example Node", "onion": "abc123xyz.onion"}, {"name": "WIP", "onion": ".onion"}])
    broken = MagicMock()
    broken.raise_for_status.return_value = None
    broken.json.side_effect = ValueError("Expecting value")

    def fake_get(url, headers, timeout):
        if url == LISTING_URL:
            return listing
        if url.endswith("a.json"):
            return good
        if url.endswith("b.json"):
            raise requests.ConnectionError("reset")
        return broken

    mock_session.get.side_effect = fake_get

    candidates = DirectoryClient(LISTING_URL, session=mock_session).fetch_candidates()

    assert [c.key for c in candidates] == ["example-node"]
    assert candidates[0].address == "http://abc123xyz.onion"


def test_close_closes_session(mock_session):
    with DirectoryClient(LISTING_URL, session=mock_session):
        pass
    mock_session.close.assert_called_once()
