import numpy as np

INT16_FULL_SCALE = 32768.0

# Reported by a signal source that has no reading yet
NO_DATA_DB = -1000.0


def dbfs(value, eps=1e-12):
    return float(20 * np.log10(value + eps))


def rms_dbfs(samples: np.ndarray) -> float:
    """RMS level of normalized float samples in dBFS."""
    if samples.size == 0:
        return NO_DATA_DB
    rms = np.sqrt(np.mean(samples.astype(np.float64) ** 2))
    return dbfs(rms)


def is_no_data(level_db) -> bool:
    """True for the no-data sentinel and for readings that are not finite."""
    return not np.isfinite(level_db) or level_db <= NO_DATA_DB
