"""
Discord REST client for direct-message notifications.

Delivering a DM takes two calls: open (or fetch) the DM channel with the
recipient, then post a message into that channel. Both are authenticated
with a bot token.

Single Responsibility: Discord HTTP calls and error normalization.
"""
import os
from typing import Any, Dict, Optional

import requests

from logger import get_logger

log = get_logger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"
DEFAULT_TIMEOUT_SEC = 15.0


class DiscordError(Exception):
    """Base class for Discord delivery errors."""


class DiscordNetworkError(DiscordError):
    """Transport failure or a response that could not be understood."""


class DiscordApiError(DiscordError):
    """Non-success HTTP status returned by Discord."""

    def __init__(self, status_code: int, description: str = ""):
        self.status_code = status_code
        self.description = description
        super().__init__(f"status code: {status_code}" + (f" ({description})" if description else ""))


class DiscordRateLimitError(DiscordApiError):
    """HTTP 429; retry_after is the server-provided delay in seconds."""

    def __init__(self, retry_after: float, description: str = ""):
        self.retry_after = retry_after
        super().__init__(429, description)


def get_discord_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Get Discord configuration from environment variables or config.

    Environment variables override config file values.

    Args:
        config: Optional configuration dictionary (from config.json)

    Returns:
        Dictionary with Discord configuration:
        - api_base: REST API root (default: https://discord.com/api/v10)
        - bot_token: Bot token used in the Authorization header
        - user_id: Recipient user id
        - timeout_sec: Per-request timeout in seconds (default: 15)
        - max_rate_limit_retries: Optional cap on 429 retries (default: None, unbounded)

    Raises:
        ValueError: If the timeout is not a positive number
    """
    discord_config = {}

    if config and "discord" in config:
        discord_config = dict(config["discord"])

    discord_config["api_base"] = os.getenv("DISCORD_API_BASE", discord_config.get("api_base") or DISCORD_API_BASE).rstrip("/")
    discord_config["bot_token"] = os.getenv("DISCORD_BOT_TOKEN", discord_config.get("bot_token") or "")
    discord_config["user_id"] = os.getenv("DISCORD_USER_ID", str(discord_config.get("user_id") or ""))
    timeout = os.getenv("DISCORD_TIMEOUT_SEC", discord_config.get("timeout_sec", DEFAULT_TIMEOUT_SEC))
    try:
        discord_config["timeout_sec"] = float(timeout)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid Discord timeout: {timeout!r}")
    if not discord_config["timeout_sec"] > 0:
        raise ValueError(f"Discord timeout must be a positive number of seconds, got {timeout!r}")
    discord_config.setdefault("max_rate_limit_retries", None)

    return discord_config


def parse_retry_after(response: requests.Response) -> Optional[float]:
    """
    Read the rate-limit delay in seconds.

    The Retry-After header wins; Discord also repeats the value as
    "retry_after" in the JSON body, which is used when the header is absent.
    """
    header = response.headers.get("Retry-After")
    if header is not None:
        try:
            return max(0.0, float(header))
        except ValueError:
            log.warning(f"Unparseable Retry-After header: {header!r}")
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("retry_after") is not None:
        try:
            return max(0.0, float(body["retry_after"]))
        except (TypeError, ValueError):
            return None
    return None


def _error_description(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""


class DiscordClient:
    """
    Minimal Discord bot client.

    Every call raises DiscordRateLimitError on 429, DiscordApiError on any
    other non-success status and DiscordNetworkError on transport failures.
    """

    def __init__(
        self,
        bot_token: str,
        api_base: str = DISCORD_API_BASE,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        session: Optional[requests.Session] = None
    ):
        self.bot_token = bot_token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bot {self.bot_token}",
            "Content-Type": "application/json"
        }

    def open_dm_channel(self, user_id: str) -> str:
        """
        Create or fetch the DM channel with user_id.

        Returns:
            Channel id
        """
        response = self._post("/users/@me/channels", {"recipient_id": user_id})
        if response.status_code not in (200, 201):
            raise DiscordApiError(response.status_code, _error_description(response))

        try:
            body = response.json()
        except ValueError as e:
            raise DiscordNetworkError(f"Invalid JSON response: {e}") from e

        channel_id = body.get("id") if isinstance(body, dict) else None
        if channel_id is None or channel_id == "":
            raise DiscordNetworkError("Response has no channel id")
        return str(channel_id)

    def post_message(self, channel_id: str, content: str) -> requests.Response:
        """Post content into channel_id; any 2xx counts as delivered."""
        response = self._post(f"/channels/{channel_id}/messages", {"content": content})
        if not 200 <= response.status_code < 300:
            raise DiscordApiError(response.status_code, _error_description(response))
        return response

    def _post(self, path: str, payload: Dict[str, Any]) -> requests.Response:
        url = f"{self.api_base}{path}"
        try:
            response = self.session.post(url, json=payload, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise DiscordNetworkError(f"Request failed: {e}") from e

        if response.status_code == 429:
            retry_after = parse_retry_after(response)
            if retry_after is None:
                raise DiscordApiError(429, "rate limited without a retry delay")
            raise DiscordRateLimitError(retry_after, _error_description(response))

        return response

    def close(self) -> None:
        self.session.close()
