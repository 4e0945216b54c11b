"""
Core components of the sound detector.

Control flow: SoundDetector samples a SignalSource on a fixed interval,
compares each reading with the threshold of the selected SensitivityMode
and hands detections to the NotificationDispatcher, which delivers them
as Discord direct messages. Every outcome lands in the StatusReporter.
"""

from .thresholds import SensitivityMode, ThresholdSet, threshold_for
from .settings import Credentials, DetectorSettings
from .status import (
    StatusReporter,
    STATUS_DISABLED,
    STATUS_NO_DETECTION,
    STATUS_DELIVERED,
    detection_status,
)
from .audio import SignalSource, ArecordLevelSource
from .detector import DEFAULT_INTERVAL_SEC, DetectionEvent, SoundDetector
from .discord import (
    DISCORD_API_BASE,
    DiscordClient,
    DiscordError,
    DiscordApiError,
    DiscordNetworkError,
    DiscordRateLimitError,
    get_discord_config,
    parse_retry_after,
)
from .notifier import DispatchAttempt, NotificationDispatcher, format_message

__all__ = [
    # Thresholds
    'SensitivityMode',
    'ThresholdSet',
    'threshold_for',
    # Settings
    'Credentials',
    'DetectorSettings',
    # Status
    'StatusReporter',
    'STATUS_DISABLED',
    'STATUS_NO_DETECTION',
    'STATUS_DELIVERED',
    'detection_status',
    # Audio
    'SignalSource',
    'ArecordLevelSource',
    # Detector
    'DEFAULT_INTERVAL_SEC',
    'DetectionEvent',
    'SoundDetector',
    # Discord
    'DISCORD_API_BASE',
    'DiscordClient',
    'DiscordError',
    'DiscordApiError',
    'DiscordNetworkError',
    'DiscordRateLimitError',
    'get_discord_config',
    'parse_retry_after',
    # Notifier
    'DispatchAttempt',
    'NotificationDispatcher',
    'format_message',
]
