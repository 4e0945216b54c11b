"""
Operator-editable detector settings.

Single Responsibility: Shared, lock-protected configuration for the
detection loop, the dispatcher and the display surface.
"""
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from .thresholds import SensitivityMode, ThresholdSet, threshold_for


@dataclass(frozen=True)
class Credentials:
    """Discord bot token and recipient user id (opaque strings)."""
    bot_token: str = ""
    user_id: str = ""

    def is_complete(self) -> bool:
        """Only presence is checked; a bad token surfaces as an HTTP failure."""
        return bool(self.bot_token.strip()) and bool(self.user_id.strip())


class DetectorSettings:
    """
    Sensitivity mode, thresholds and credentials behind a single lock.

    One instance is created per process and passed explicitly to every
    component that reads or edits it.
    """

    def __init__(
        self,
        mode: SensitivityMode = SensitivityMode.NORMAL,
        thresholds: Optional[ThresholdSet] = None,
        credentials: Optional[Credentials] = None
    ):
        self._lock = threading.Lock()
        self._mode = mode
        self._thresholds = thresholds if thresholds is not None else ThresholdSet()
        self._credentials = credentials if credentials is not None else Credentials()

    @classmethod
    def from_config(cls, config: Dict[str, Any], discord_config: Optional[Dict[str, Any]] = None) -> "DetectorSettings":
        """
        Build settings from the loaded configuration.

        Args:
            config: Configuration dictionary (see config_loader)
            discord_config: Resolved Discord settings (see core.discord.get_discord_config);
                defaults to the config file's discord section
        """
        detection = config["detection"]
        discord = discord_config if discord_config is not None else config.get("discord", {})
        return cls(
            mode=SensitivityMode.parse(detection["sensitivity"]),
            thresholds=ThresholdSet.from_dict(detection["thresholds"]),
            credentials=Credentials(
                bot_token=str(discord.get("bot_token") or ""),
                user_id=str(discord.get("user_id") or "")
            )
        )

    @property
    def mode(self) -> SensitivityMode:
        with self._lock:
            return self._mode

    @mode.setter
    def mode(self, mode: SensitivityMode) -> None:
        with self._lock:
            self._mode = SensitivityMode.parse(mode)

    @property
    def thresholds(self) -> ThresholdSet:
        """Copy of the current thresholds; edit through set_threshold()."""
        with self._lock:
            return replace(self._thresholds)

    def set_threshold(self, mode: SensitivityMode, value: float) -> None:
        with self._lock:
            self._thresholds.set(mode, value)

    def current_threshold(self) -> Tuple[SensitivityMode, float]:
        """Selected mode and its threshold, read together."""
        with self._lock:
            return self._mode, threshold_for(self._mode, self._thresholds)

    @property
    def credentials(self) -> Credentials:
        with self._lock:
            return self._credentials

    def set_credentials(self, bot_token: Optional[str] = None, user_id: Optional[str] = None) -> None:
        """Replace either credential; None leaves it unchanged."""
        with self._lock:
            self._credentials = Credentials(
                bot_token=self._credentials.bot_token if bot_token is None else bot_token,
                user_id=self._credentials.user_id if user_id is None else user_id
            )
