"""
Threshold policy.

Single Responsibility: Map a sensitivity mode to its decibel threshold.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class SensitivityMode(Enum):
    """Named threshold profile selected by the operator."""
    SENSITIVE = "Sensitive"
    NORMAL = "Normal"
    SLEEPING = "Sleeping"

    @classmethod
    def parse(cls, text: str) -> "SensitivityMode":
        """Accept a mode value or name, case-insensitively."""
        if isinstance(text, cls):
            return text
        wanted = str(text).strip().lower()
        for mode in cls:
            if wanted in (mode.value.lower(), mode.name.lower()):
                return mode
        raise ValueError(
            f"Unknown sensitivity mode: {text!r}. "
            f"Expected one of {', '.join(m.value for m in cls)}"
        )


@dataclass
class ThresholdSet:
    """
    Decibel threshold per sensitivity mode.

    Each value is independent: nothing requires sensitive < normal < sleeping.
    """
    sensitive: float = -60.0
    normal: float = -40.0
    sleeping: float = -20.0

    def get(self, mode: SensitivityMode) -> float:
        return threshold_for(mode, self)

    def set(self, mode: SensitivityMode, value: float) -> None:
        setattr(self, mode.name.lower(), float(value))

    def as_dict(self) -> Dict[str, float]:
        return {mode.value: self.get(mode) for mode in SensitivityMode}

    @classmethod
    def from_dict(cls, values: Dict[str, float]) -> "ThresholdSet":
        """Build from a {"Sensitive": -60, ...} mapping; missing modes keep defaults."""
        thresholds = cls()
        for key, value in values.items():
            thresholds.set(SensitivityMode.parse(key), value)
        return thresholds


def threshold_for(mode: SensitivityMode, thresholds: ThresholdSet) -> float:
    """Return the configured threshold for mode."""
    if mode is SensitivityMode.SENSITIVE:
        return thresholds.sensitive
    if mode is SensitivityMode.NORMAL:
        return thresholds.normal
    return thresholds.sleeping
