"""
Tests for core.discord module.

Tests Discord configuration, the REST client and error normalization.
"""
import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from core.discord import (
    DISCORD_API_BASE,
    DiscordApiError,
    DiscordClient,
    DiscordNetworkError,
    DiscordRateLimitError,
    get_discord_config,
    parse_retry_after,
)

from tests.conftest import make_response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestGetDiscordConfig:
    """Test Discord configuration loading."""

    def test_from_config(self, config):
        """Test values taken from the config file."""
        config["discord"]["bot_token"] = "file-token"
        config["discord"]["user_id"] = 1234

        with patch.dict(os.environ, {}, clear=True):
            discord_config = get_discord_config(config)

        assert discord_config["bot_token"] == "file-token"
        assert discord_config["user_id"] == "1234"
        assert discord_config["api_base"] == DISCORD_API_BASE
        assert discord_config["timeout_sec"] == 15.0
        assert discord_config["max_rate_limit_retries"] is None

    def test_env_overrides_config(self, config):
        """Test that environment variables override config file."""
        config["discord"]["bot_token"] = "file-token"
        config["discord"]["user_id"] = "1"
        env_vars = {
            "DISCORD_BOT_TOKEN": "env-token",
            "DISCORD_USER_ID": "2",
            "DISCORD_API_BASE": "http://localhost:8080/api/",
            "DISCORD_TIMEOUT_SEC": "5",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            discord_config = get_discord_config(config)

        assert discord_config["bot_token"] == "env-token"
        assert discord_config["user_id"] == "2"
        assert discord_config["api_base"] == "http://localhost:8080/api"
        assert discord_config["timeout_sec"] == 5.0

    def test_defaults(self):
        """Test default values when no config provided."""
        with patch.dict(os.environ, {}, clear=True):
            discord_config = get_discord_config()

        assert discord_config["bot_token"] == ""
        assert discord_config["user_id"] == ""
        assert discord_config["api_base"] == DISCORD_API_BASE
        assert discord_config["timeout_sec"] == 15.0

    @pytest.mark.parametrize("value", ["0", "-5", "abc", "", "nan"])
    def test_invalid_env_timeout(self, value):
        """Test that a timeout override must be a positive number."""
        with patch.dict(os.environ, {"DISCORD_TIMEOUT_SEC": value}, clear=True):
            with pytest.raises(ValueError, match="timeout"):
                get_discord_config()


class TestParseRetryAfter:
    """Test rate-limit delay parsing."""

    def test_header_in_seconds(self):
        assert parse_retry_after(make_response(429, None, headers={"Retry-After": "2"})) == 2.0

    def test_fractional_header(self):
        assert parse_retry_after(make_response(429, None, headers={"retry-after": "1.5"})) == 1.5

    def test_header_wins_over_body(self):
        response = make_response(429, {"retry_after": 9}, headers={"Retry-After": "3"})

        assert parse_retry_after(response) == 3.0

    def test_body_fallback(self):
        assert parse_retry_after(make_response(429, {"retry_after": 0.75})) == 0.75

    def test_bad_header_falls_back_to_body(self):
        response = make_response(429, {"retry_after": 4}, headers={"Retry-After": "soon"})

        assert parse_retry_after(response) == 4.0

    def test_missing(self):
        assert parse_retry_after(make_response(429, None)) is None
        assert parse_retry_after(make_response(429, {"message": "slow down"})) is None

    def test_negative_clamped(self):
        assert parse_retry_after(make_response(429, None, headers={"Retry-After": "-1"})) == 0.0


class TestDiscordClient:
    """Test REST calls."""

    def test_open_dm_channel_request(self, session):
        """Test URL, headers and body of the channel request."""
        session.post.return_value = make_response(200, {"id": "abc", "type": 1})
        client = DiscordClient("tok", session=session, timeout=12)

        assert client.open_dm_channel("42") == "abc"

        session.post.assert_called_once_with(
            f"{DISCORD_API_BASE}/users/@me/channels",
            json={"recipient_id": "42"},
            headers={"Authorization": "Bot tok", "Content-Type": "application/json"},
            timeout=12
        )

    def test_numeric_channel_id_is_string(self, session):
        session.post.return_value = make_response(201, {"id": 987})

        assert DiscordClient("tok", session=session).open_dm_channel("42") == "987"

    def test_post_message_request(self, session):
        session.post.return_value = make_response(200, {"id": "m1"})
        client = DiscordClient("tok", api_base="http://test/api/", session=session)

        response = client.post_message("abc", "hello")

        assert response is session.post.return_value
        args, kwargs = session.post.call_args
        assert args == ("http://test/api/channels/abc/messages",)
        assert kwargs["json"] == {"content": "hello"}

    def test_channel_requires_200_or_201(self, session):
        """Test that other 2xx statuses are not a resolved channel."""
        session.post.return_value = make_response(204)

        with pytest.raises(DiscordApiError) as exc_info:
            DiscordClient("tok", session=session).open_dm_channel("42")

        assert exc_info.value.status_code == 204

    def test_api_error(self, session):
        session.post.return_value = make_response(401, {"message": "401: Unauthorized"})

        with pytest.raises(DiscordApiError) as exc_info:
            DiscordClient("tok", session=session).post_message("abc", "hi")

        assert exc_info.value.status_code == 401
        assert exc_info.value.description == "401: Unauthorized"
        assert not isinstance(exc_info.value, DiscordRateLimitError)

    def test_rate_limit_error(self, session):
        session.post.return_value = make_response(429, None, headers={"Retry-After": "2"})

        with pytest.raises(DiscordRateLimitError) as exc_info:
            DiscordClient("tok", session=session).open_dm_channel("42")

        assert exc_info.value.retry_after == 2.0
        assert exc_info.value.status_code == 429

    def test_transport_error(self, session):
        session.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(DiscordNetworkError, match="Request failed"):
            DiscordClient("tok", session=session).open_dm_channel("42")

    def test_missing_channel_id(self, session):
        session.post.return_value = make_response(200, {"id": ""})

        with pytest.raises(DiscordNetworkError, match="no channel id"):
            DiscordClient("tok", session=session).open_dm_channel("42")
