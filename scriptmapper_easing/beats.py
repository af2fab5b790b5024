# (c) 2024 Niels Provos
#
# Conversions between normalized path time, seconds and musical beats.
#

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .path import CameraPath, CameraWaypoint


def calculate_beat_duration(total_duration_ms: float, bpm: float) -> float:
    """
    Number of beats spanned by a duration.

    Args:
        total_duration_ms: Duration in milliseconds
        bpm: Beats per minute, 0 gives 0 (range checks belong to the caller)

    Returns:
        Beat count, e.g. 30000 ms at 120 BPM is 60 beats
    """
    return total_duration_ms / 1000 * bpm / 60


def normalized_to_beat(normalized: float, beat_duration: float, offset: float = 0) -> float:
    """Map normalized time (0-1) to a beat number"""
    return normalized * beat_duration + offset


def beat_to_normalized(beat: float, beat_duration: float, offset: float = 0) -> float:
    """Map a beat number back to normalized time (0-1)"""
    if beat_duration <= 0:
        return 0.0
    return (beat - offset) / beat_duration


def beat_to_seconds(beat: float, bpm: float) -> float:
    if bpm <= 0:
        return 0.0
    return (beat / bpm) * 60


def seconds_to_beat(seconds: float, bpm: float) -> float:
    if bpm <= 0:
        return 0.0
    return (seconds * bpm) / 60


def get_waypoint_beat(waypoint: "CameraWaypoint", path: "CameraPath") -> Optional[float]:
    """
    Beat number of a waypoint, or None when the path has no beat timing.

    An explicit waypoint beat wins over the one derived from its time.
    """
    if not path.bpm or not path.beat_duration:
        return None
    if waypoint.beat is not None:
        return waypoint.beat
    return normalized_to_beat(waypoint.time, path.beat_duration, path.beat_offset or 0)
