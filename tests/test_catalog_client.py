# tests/test_catalog_client.py
import asyncio
import json
import pytest
import requests
from unittest.mock import MagicMock

from catalog_app.catalog_client import CatalogClient, should_retry_api_error
from catalog_app.exceptions import CatalogUnavailableError

BASE_URL = "https://catalog.test"


def _response(status_code=200, payload=None, raw=None):
    response = MagicMock(name=f"Response{status_code}")
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    body = raw if raw is not None else (json.dumps(payload).encode() if payload is not None else b"")
    response.content = body
    response.text = body.decode(errors="replace")
    response.json.return_value = payload
    if not response.ok:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error", response=response)
    return response


@pytest.fixture
def session(mocker):
    real_session = requests.Session()
    mocker.patch.object(real_session, 'get')
    return real_session

@pytest.fixture
def client(session):
    return CatalogClient(base_url=BASE_URL, api_key="secret", retry_attempts=3, retry_wait_seconds=0, session=session)


# --- Request building ---

def test_headers_and_url(client, session):
    session.get.return_value = _response(payload={"id": 7, "title": "One Piece", "tmdb_id": "NULL", "year": "1999"})
    series = asyncio.run(client.get_series_by_id(" 7 "))
    session.get.assert_called_once_with(f"{BASE_URL}/series/7", timeout=15.0)
    assert session.headers['X-API-Key'] == "secret"
    assert session.headers['Accept'] == "application/json"
    assert series.id == 7
    assert series.tmdb_id is None
    assert series.year == 1999

def test_no_api_key_header_without_key(session):
    CatalogClient(base_url=BASE_URL + "/", session=session)
    assert 'X-API-Key' not in session.headers

@pytest.mark.parametrize("method", ['get_series_by_id', 'get_seasons_for_series', 'get_episodes_for_season', 'get_actors_for_series'])
@pytest.mark.parametrize("blank_id", [None, "", "   "])
def test_blank_ids_skip_the_request(client, session, method, blank_id):
    result = asyncio.run(getattr(client, method)(blank_id))
    assert result in (None, [])
    session.get.assert_not_called()


# --- "No data" responses ---

def test_404_is_no_data(client, session):
    session.get.return_value = _response(404)
    assert asyncio.run(client.get_series_by_id(123)) is None
    assert asyncio.run(client.get_seasons_for_series(123)) == []
    assert asyncio.run(client.get_all_series()) is None

def test_empty_body_is_no_data(client, session):
    session.get.return_value = _response(200, raw=b"  ")
    assert asyncio.run(client.get_json("series/1")) is None


# --- Listing payloads ---

def test_seasons_envelope_with_mixed_id_encodings(client, session):
    session.get.return_value = _response(payload={"seasons": [
        {"id": 70, "serie_id": "7", "season_number": 1, "title": "East Blue", "tvdb_id": 81797.0},
        {"id": "71", "serie_id": 7, "season_number": "2", "imdb_id": "null"},
        "garbage",
        {"id": "NULL", "title": "No id"},
    ]})
    seasons = asyncio.run(client.get_seasons_for_series(7))
    session.get.assert_called_once_with(f"{BASE_URL}/series/7/seasons", timeout=15.0)
    assert [s.id for s in seasons] == [70, 71]
    assert seasons[0].series_id == 7
    assert seasons[0].tvdb_id == "81797"
    assert seasons[1].season_number == 2
    assert seasons[1].imdb_id is None

def test_episodes_accept_bare_list(client, session):
    session.get.return_value = _response(payload=[
        {"id": 700, "season_id": "70", "episode_number": None, "display_episode": "1", "original_filename": "A.mkv", "duration": "1440"},
    ])
    episodes = asyncio.run(client.get_episodes_for_season(70))
    session.get.assert_called_once_with(f"{BASE_URL}/seasons/70/episodes", timeout=15.0)
    assert episodes[0].season_id == 70
    assert episodes[0].episode_number is None
    assert episodes[0].display_episode == "1"
    assert episodes[0].duration_seconds == 1440

def test_all_series_listing(client, session):
    session.get.return_value = _response(payload=[{"id": 1, "title": "Naruto"}, {"id": 2, "title": "Naruto Shippuden"}])
    listing = asyncio.run(client.get_all_series())
    session.get.assert_called_once_with(f"{BASE_URL}/series?paginate=false", timeout=15.0)
    assert [s.title for s in listing] == ["Naruto", "Naruto Shippuden"]

def test_actors_envelope(client, session):
    session.get.return_value = _response(payload={"actors": [{"id": 1, "name": "Mayumi Tanaka", "role": "Luffy"}]})
    actors = asyncio.run(client.get_actors_for_series(7))
    assert actors[0].name == "Mayumi Tanaka"
    assert actors[0].role == "Luffy"

def test_unexpected_listing_shape(client, session, caplog):
    session.get.return_value = _response(payload={"seasons": "nope"})
    assert asyncio.run(client.get_seasons_for_series(7)) == []
    assert "Unexpected catalog payload" in caplog.text


# --- Retries and failures ---

def test_server_error_is_retried(client, session):
    session.get.side_effect = [_response(503), _response(payload={"id": 1, "title": "Naruto"})]
    series = asyncio.run(client.get_series_by_id(1))
    assert series.title == "Naruto"
    assert session.get.call_count == 2

def test_connection_errors_exhaust_retries(client, session):
    session.get.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(CatalogUnavailableError) as exc_info:
        asyncio.run(client.get_all_series())
    assert session.get.call_count == 3
    assert exc_info.value.request_path == "series?paginate=false"

def test_auth_errors_are_not_retried(client, session):
    session.get.return_value = _response(401, payload={"message": "Unauthorized"})
    with pytest.raises(CatalogUnavailableError):
        asyncio.run(client.get_series_by_id(1))
    assert session.get.call_count == 1

def test_undecodable_json(client, session):
    bad = _response(200, raw=b"<html>")
    bad.json.side_effect = ValueError("Expecting value")
    session.get.return_value = bad
    with pytest.raises(CatalogUnavailableError, match="Undecodable"):
        asyncio.run(client.get_series_by_id(1))
    assert session.get.call_count == 1

@pytest.mark.parametrize("exception, expected", [
    (requests.exceptions.ConnectionError(), True),
    (requests.exceptions.Timeout(), True),
    (requests.exceptions.HTTPError(response=MagicMock(status_code=429)), True),
    (requests.exceptions.HTTPError(response=MagicMock(status_code=502)), True),
    (requests.exceptions.HTTPError(response=MagicMock(status_code=403)), False),
    (requests.exceptions.HTTPError(response=MagicMock(status_code=400)), False),
    (ValueError("bad json"), False),
])
def test_should_retry_api_error(exception, expected):
    assert should_retry_api_error(exception) is expected


# --- Cache ---

def test_cache_serves_second_request(session, tmp_path):
    session.get.return_value = _response(payload={"id": 1, "title": "Naruto"})
    client = CatalogClient(base_url=BASE_URL, retry_wait_seconds=0, session=session, cache_directory=tmp_path / "cache")
    try:
        first = asyncio.run(client.get_series_by_id(1))
        second = asyncio.run(client.get_series_by_id(1))
    finally:
        client.close()
    assert first == second
    assert session.get.call_count == 1

def test_no_data_is_not_cached(session, tmp_path):
    session.get.return_value = _response(404)
    client = CatalogClient(base_url=BASE_URL, session=session, cache_directory=tmp_path / "cache")
    try:
        asyncio.run(client.get_series_by_id(1))
        asyncio.run(client.get_series_by_id(1))
    finally:
        client.close()
    assert session.get.call_count == 2


# --- Construction from configuration ---

def test_from_config_defaults(mock_cfg_helper):
    client = CatalogClient.from_config(mock_cfg_helper)
    assert client.base_url == "https://metadata.fankai.fr/"
    assert client.cache is None
    assert client.max_attempts == 3
    assert 'X-API-Key' not in client.session.headers

def test_from_config_with_cache_and_key(mock_cfg_helper, mocker, tmp_path):
    mock_cfg_helper.manager._mock_values.update({'cache_enabled': True, 'catalog_api_url': "http://localhost:8080/api", 'api_retry_attempts': 5})
    mock_cfg_helper.manager._mock_api_key = "k"
    mocker.patch('catalog_app.catalog_client.platformdirs.user_cache_dir', return_value=str(tmp_path / "user-cache"))
    client = CatalogClient.from_config(mock_cfg_helper)
    try:
        assert client.base_url == "http://localhost:8080/api/"
        assert client.cache is not None
        assert client.max_attempts == 5
        assert client.session.headers['X-API-Key'] == "k"
    finally:
        client.close()
    assert (tmp_path / "user-cache").is_dir()
