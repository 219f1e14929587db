# tests/unit/middleware/test_auth.py
import pytest
from fastapi import HTTPException

from app.middleware import auth
from app.middleware.auth import get_current_user_id, parse_bearer_token


@pytest.fixture(autouse=True)
def clear_jwks_cache():
    auth.reset_jwks_cache()
    yield
    auth.reset_jwks_cache()


@pytest.mark.parametrize("header", [None, "", "token-without-scheme", "Basic abc"])
def test_parse_bearer_token_rejects_bad_headers(header):
    with pytest.raises(HTTPException) as exc_info:
        parse_bearer_token(header)

    assert exc_info.value.status_code == 401


def test_parse_bearer_token_accepts_any_case_scheme():
    assert parse_bearer_token("bearer abc.def") == ("bearer", "abc.def")


@pytest.mark.asyncio
async def test_current_user_id_comes_from_sub(mocker):
    mocker.patch("app.middleware.auth.verify_token", return_value={"sub": "user_2abc"})
    request = mocker.Mock()

    user_id = await get_current_user_id(request, "Bearer abc.def")

    assert user_id == "user_2abc"
    assert request.state.user_id == "user_2abc"
    auth.verify_token.assert_awaited_once_with("abc.def")


@pytest.mark.asyncio
async def test_token_without_sub_is_rejected(mocker):
    mocker.patch("app.middleware.auth.verify_token", return_value={"aud": "authenticated"})

    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_id(mocker.Mock(), "Bearer abc.def")

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_malformed_token_is_401(mocker):
    mocker.patch("app.middleware.auth.get_jwks", return_value={"keys": []})

    with pytest.raises(HTTPException) as exc_info:
        await auth.verify_token("not-a-jwt")

    assert exc_info.value.status_code == 401


def mock_httpx(mocker, responses):
    client = mocker.AsyncMock()
    client.get.side_effect = responses
    client_cm = mocker.AsyncMock()
    client_cm.__aenter__.return_value = client
    mocker.patch("app.middleware.auth.httpx.AsyncClient", return_value=client_cm)
    return client


def jwks_response(mocker, keys):
    response = mocker.Mock()
    response.json.return_value = {"keys": keys}
    return response


@pytest.mark.asyncio
async def test_jwks_is_cached(mocker):
    mocker.patch("app.middleware.auth.SUPABASE_URL", "https://project.supabase.co")
    client = mock_httpx(mocker, [jwks_response(mocker, [{"kid": "k1"}])])

    first = await auth.get_jwks()
    second = await auth.get_jwks()

    assert first == second == {"keys": [{"kid": "k1"}]}
    client.get.assert_awaited_once_with(
        "https://project.supabase.co/auth/v1/.well-known/jwks.json", timeout=10.0
    )


@pytest.mark.asyncio
async def test_stale_jwks_served_when_refresh_fails(mocker):
    mocker.patch("app.middleware.auth.SUPABASE_URL", "https://project.supabase.co")
    mock_httpx(mocker, [jwks_response(mocker, [{"kid": "k1"}]), RuntimeError("network down")])

    await auth.get_jwks()
    auth._jwks_cache_time -= auth.JWKS_CACHE_DURATION + 1

    assert await auth.get_jwks() == {"keys": [{"kid": "k1"}]}


@pytest.mark.asyncio
async def test_jwks_failure_without_cache_is_500(mocker):
    mocker.patch("app.middleware.auth.SUPABASE_URL", "https://project.supabase.co")
    mock_httpx(mocker, [RuntimeError("network down")])

    with pytest.raises(HTTPException) as exc_info:
        await auth.get_jwks()

    assert exc_info.value.status_code == 500
