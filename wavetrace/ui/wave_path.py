"""SVG path geometry for drawing a waveform and its progress marker."""

from typing import Sequence


def _number(value: float) -> str:
    """Shortest text that reads back as ``value``, without a trailing ``.0``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def wave_path(points: Sequence[float], width: float, height: float) -> str:
    """Build a closed SVG path filling the area under a waveform.

    Points are spread evenly over ``width``; an amplitude of 1.0 reaches the
    top edge and 0.0 the bottom edge.

    Returns:
        The path ``d`` attribute, or an empty string for an empty waveform
    """
    if not points:
        return ""

    step = width / len(points)
    parts = [f"M 0 {_number(height / 2)}"]
    for i, amplitude in enumerate(points):
        x = i * step
        y = height - amplitude * height
        parts.append(f"L {x:.2f} {y:.2f}")
    parts.append(f"L {_number(width)} {_number(height)} L 0 {_number(height)} Z")
    return " ".join(parts)


def progress_x(progress: float, width: float) -> float:
    """Horizontal position of the playback marker, rounded to two decimals."""
    clamped = min(max(progress, 0.0), 1.0)
    return round(width * clamped, 2)
