"""
Notification dispatch.

Single Responsibility: Deliver one detection to Discord as a direct
message, waiting out rate limits, and report the outcome.
"""
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional

from logger import get_logger

from .discord import (
    DEFAULT_TIMEOUT_SEC,
    DISCORD_API_BASE,
    DiscordClient,
    DiscordError,
    DiscordRateLimitError,
)
from .settings import DetectorSettings
from .status import STATUS_DELIVERED, StatusReporter

log = get_logger(__name__)

STATUS_MISSING_CREDENTIALS = "Failed to send notification: missing bot token or user id"


def format_message(decibel_level: float) -> str:
    return f"Detected sound with decibel level: {decibel_level:.1f} dB"


@dataclass
class DispatchAttempt:
    """In-flight state of one notification, retries included."""
    decibel_level: float
    channel_id: Optional[str] = None
    rate_limit_retries: int = 0


class RetriesExhausted(DiscordError):
    """Optional rate-limit retry cap reached."""


class NotificationDispatcher:
    """
    Sends each detection notification in its own thread.

    The flow is two explicit retry loops: resolve the DM channel, then post
    the message. A 429 sleeps for the server's Retry-After and repeats the
    same phase. Without max_rate_limit_retries this repeats indefinitely.
    Every other failure ends the attempt.

    Flows are neither serialized nor deduplicated: a flow waiting out a
    rate limit never delays another one, and the status shows whichever
    flow finished last.
    """

    def __init__(
        self,
        settings: DetectorSettings,
        status: StatusReporter,
        api_base: str = DISCORD_API_BASE,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        max_rate_limit_retries: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        client_factory: Optional[Callable[[str], DiscordClient]] = None
    ):
        """
        Initialize dispatcher.

        Args:
            settings: Shared settings; credentials are read when each flow starts
            status: Status reporter receiving the outcome of each flow
            api_base: Discord REST API root
            timeout: Per-request timeout in seconds
            max_rate_limit_retries: Cap on 429 retries per phase, None for no cap
            sleep: Used for Retry-After waits
            client_factory: Builds a DiscordClient from a bot token
        """
        self.settings = settings
        self.status = status
        self.api_base = api_base
        self.timeout = timeout
        self.max_rate_limit_retries = max_rate_limit_retries
        self._sleep = sleep
        self._client_factory = client_factory or self._default_client
        self._lock = threading.Lock()
        self._flows = set()
        self._closed = False

    @classmethod
    def from_config(cls, settings: DetectorSettings, status: StatusReporter, discord_config: dict) -> "NotificationDispatcher":
        return cls(
            settings,
            status,
            api_base=discord_config["api_base"],
            timeout=discord_config["timeout_sec"],
            max_rate_limit_retries=discord_config.get("max_rate_limit_retries")
        )

    def _default_client(self, bot_token: str) -> DiscordClient:
        return DiscordClient(bot_token, api_base=self.api_base, timeout=self.timeout)

    def notify(self, decibel_level: float) -> Future:
        """
        Start a notification flow in a new thread without waiting for it.

        Returns:
            Future resolving to the flow's deliver() result
        """
        future = Future()
        future.set_running_or_notify_cancel()
        thread = threading.Thread(
            target=self._run_flow, args=(future, decibel_level), name="notify", daemon=False
        )
        with self._lock:
            if self._closed:
                raise RuntimeError("Dispatcher has been shut down")
            self._flows.add(thread)
        thread.start()
        return future

    def _run_flow(self, future: Future, decibel_level: float) -> None:
        try:
            future.set_result(self.deliver(decibel_level))
        except Exception as e:
            future.set_exception(e)
        finally:
            with self._lock:
                self._flows.discard(threading.current_thread())

    def deliver(self, decibel_level: float) -> bool:
        """
        Run one notification flow to completion in the calling thread.

        Every outcome, unexpected errors included, ends up in the status.

        Returns:
            True if the message was accepted by Discord
        """
        credentials = self.settings.credentials
        if not credentials.is_complete():
            log.error(STATUS_MISSING_CREDENTIALS)
            self.status.set(STATUS_MISSING_CREDENTIALS)
            return False

        try:
            return self._deliver(credentials, decibel_level)
        except Exception as e:
            log.exception("Unexpected error while sending notification")
            self.status.set(f"Failed to send notification: {e}")
            return False

    def _deliver(self, credentials, decibel_level: float) -> bool:
        attempt = DispatchAttempt(decibel_level=decibel_level)
        client = self._client_factory(credentials.bot_token)
        try:
            try:
                attempt.channel_id = self._with_rate_limit(
                    attempt, "DM channel", lambda: client.open_dm_channel(credentials.user_id)
                )
            except DiscordError as e:
                return self._fail(f"Failed to create DM channel: {e}")

            try:
                self._with_rate_limit(
                    attempt, "message", lambda: client.post_message(attempt.channel_id, format_message(decibel_level))
                )
            except DiscordError as e:
                return self._fail(f"Failed to send message: {e}")
        finally:
            client.close()

        log.info(f"Message sent successfully ({decibel_level:.1f} dB, channel {attempt.channel_id})")
        self.status.set(STATUS_DELIVERED)
        return True

    def _with_rate_limit(self, attempt: DispatchAttempt, what: str, call: Callable):
        retries = 0
        while True:
            try:
                return call()
            except DiscordRateLimitError as e:
                if self.max_rate_limit_retries is not None and retries >= self.max_rate_limit_retries:
                    raise RetriesExhausted(f"rate limit retries exhausted after {retries} attempts") from e
                retries += 1
                attempt.rate_limit_retries += 1
                log.info(f"Rate limited on {what}, retry after {e.retry_after:g} seconds")
                self._sleep(e.retry_after)

    def _fail(self, message: str) -> bool:
        log.error(message)
        self.status.set(message)
        return False

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting flows; with wait, block until in-flight ones finish.

        Flow threads are not daemons, so without wait they still finish
        before the interpreter exits.
        """
        with self._lock:
            self._closed = True
            flows = list(self._flows)
        if wait:
            for thread in flows:
                thread.join()

    def in_flight(self) -> int:
        with self._lock:
            return len(self._flows)
