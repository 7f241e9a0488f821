# ambient_voice/infrastructure/adapters/audio/vad/functionality/energy_analyzer.py

"""RMS energy of one audio frame."""

import numpy as np

INT16_SCALE = 32768.0


def normalize_frame(frame) -> np.ndarray:
    """
    Convert anything frame-like into a flat float array in [-1, 1].

    - None / empty -> empty array
    - integer PCM (int16 etc.) -> scaled to [-1, 1]
    - NaN -> 0, +/-inf -> +/-1
    - multi-channel -> flattened
    """
    if frame is None:
        return np.zeros(0, dtype=np.float64)

    try:
        samples = np.asarray(frame)
        if samples.size == 0:
            return np.zeros(0, dtype=np.float64)

        if np.issubdtype(samples.dtype, np.integer):
            samples = samples.astype(np.float64) / INT16_SCALE
        else:
            samples = samples.astype(np.float64, copy=False)
    except (TypeError, ValueError):
        # Not numeric at all: treat as silence
        return np.zeros(0, dtype=np.float64)

    samples = np.nan_to_num(samples.ravel(), nan=0.0, posinf=1.0, neginf=-1.0)
    return np.clip(samples, -1.0, 1.0)


def calculate_rms_energy(frame) -> float:
    """
    Calculate RMS energy: sqrt(sum(x^2) / N).

    Never raises; zero-length or malformed frames give 0.0.
    """
    samples = normalize_frame(frame)
    if samples.size == 0:
        return 0.0

    return float(np.sqrt(np.mean(samples ** 2)))
