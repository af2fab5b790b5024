# (c) 2024 Niels Provos
#
# Camera path data model: waypoints, segments and paths.
#

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple
import numpy as np

from .easing import EaseType, EasingId, ParametricParams

DEFAULT_LOOK_AT_TARGET = (0.0, 1.5, 0.0)


class CoordinateSystem(Enum):
    LEFT_HANDED = "left-handed"
    RIGHT_HANDED = "right-handed"


def _as_vector(value) -> np.ndarray:
    return np.array(value, dtype=np.float64).reshape(3)


@dataclass(eq=False)
class CameraWaypoint:
    """A timed camera pose anchor"""
    id: str
    time: float  # Normalized time (0.0 to 1.0)
    position: np.ndarray
    rotation: Optional[np.ndarray] = None  # (rx, ry, rz) in degrees
    name: Optional[str] = None
    beat: Optional[float] = None
    bookmark_command: Optional[str] = None
    bookmark_commands: Optional[str] = None

    def __post_init__(self):
        self.position = _as_vector(self.position)
        if self.rotation is not None:
            self.rotation = _as_vector(self.rotation)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "time": self.time,
            "position": dict(zip("xyz", self.position.tolist())),
        }
        if self.rotation is not None:
            data["rotation"] = dict(zip(("rx", "ry", "rz"), self.rotation.tolist()))
        for key in ("name", "beat", "bookmark_command", "bookmark_commands"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @staticmethod
    def from_dict(data: dict) -> "CameraWaypoint":
        pos = data["position"]
        rot = data.get("rotation")
        return CameraWaypoint(
            id=data["id"],
            time=data["time"],
            position=(pos["x"], pos["y"], pos["z"]),
            rotation=(rot["rx"], rot["ry"], rot["rz"]) if rot is not None else None,
            name=data.get("name"),
            beat=data.get("beat"),
            bookmark_command=data.get("bookmark_command"),
            bookmark_commands=data.get("bookmark_commands"),
        )


@dataclass
class CameraSegment:
    """Transition between two consecutive waypoints"""
    id: str
    from_waypoint_id: str
    to_waypoint_id: str
    function_id: str = EasingId.QUADRATIC.value
    ease_type: EaseType = EaseType.EASE_BOTH
    easing_enabled: bool = True
    duration: float = 1.0  # Relative weight
    drift_params: Optional[ParametricParams] = None
    # Externally authored easing string, kept verbatim for display and export
    raw_command: Optional[str] = None
    bookmark_commands: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.function_id, EasingId):
            self.function_id = self.function_id.value
        self.ease_type = EaseType.coerce(self.ease_type)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "from_waypoint_id": self.from_waypoint_id,
            "to_waypoint_id": self.to_waypoint_id,
            "function_id": self.function_id,
            "ease_type": self.ease_type.value,
            "easing_enabled": self.easing_enabled,
            "duration": self.duration,
        }
        if self.drift_params is not None:
            data["drift_params"] = self.drift_params.to_dict()
        if self.raw_command is not None:
            data["raw_command"] = self.raw_command
        if self.bookmark_commands is not None:
            data["bookmark_commands"] = self.bookmark_commands
        return data

    @staticmethod
    def from_dict(data: dict) -> "CameraSegment":
        drift = data.get("drift_params")
        return CameraSegment(
            id=data["id"],
            from_waypoint_id=data["from_waypoint_id"],
            to_waypoint_id=data["to_waypoint_id"],
            function_id=data.get("function_id", EasingId.LINEAR.value),
            ease_type=EaseType(data.get("ease_type", "easein")),
            easing_enabled=data.get("easing_enabled", False),
            duration=data.get("duration", 1.0),
            drift_params=ParametricParams.from_dict(drift) if drift is not None else None,
            raw_command=data.get("raw_command"),
            bookmark_commands=data.get("bookmark_commands"),
        )


@dataclass
class CameraPath:
    """Ordered waypoints plus the N-1 segments between them"""
    id: str
    name: str
    waypoints: List[CameraWaypoint] = field(default_factory=list)
    segments: List[CameraSegment] = field(default_factory=list)
    total_duration: float = 4000  # ms
    coordinate_system: CoordinateSystem = CoordinateSystem.LEFT_HANDED
    bpm: Optional[float] = None
    beat_offset: Optional[float] = None
    beat_duration: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "waypoints": [wp.to_dict() for wp in self.waypoints],
            "segments": [seg.to_dict() for seg in self.segments],
            "total_duration": self.total_duration,
            "coordinate_system": self.coordinate_system.value,
            "bpm": self.bpm,
            "beat_offset": self.beat_offset,
            "beat_duration": self.beat_duration,
        }

    @staticmethod
    def from_dict(data: dict) -> "CameraPath":
        return CameraPath(
            id=data["id"],
            name=data["name"],
            waypoints=[CameraWaypoint.from_dict(wp) for wp in data.get("waypoints", [])],
            segments=[CameraSegment.from_dict(seg) for seg in data.get("segments", [])],
            total_duration=data.get("total_duration", 4000),
            coordinate_system=CoordinateSystem(data.get("coordinate_system", "left-handed")),
            bpm=data.get("bpm"),
            beat_offset=data.get("beat_offset"),
            beat_duration=data.get("beat_duration"),
        )


def create_waypoint_id() -> str:
    return f"wp-{uuid.uuid4().hex[:12]}"


def create_segment_id() -> str:
    return f"seg-{uuid.uuid4().hex[:12]}"


def create_waypoint(
    time: float,
    position: Sequence[float] = (0.0, 1.0, 0.0),
    name: Optional[str] = None,
) -> CameraWaypoint:
    """New waypoint with a fresh id, time clamped to [0, 1]"""
    return CameraWaypoint(
        id=create_waypoint_id(),
        time=min(max(time, 0.0), 1.0),
        position=position,
        name=name,
    )


def create_segment(
    from_waypoint_id: str,
    to_waypoint_id: str,
    easing_enabled: bool = True,
    function_id: str = EasingId.QUADRATIC.value,
    ease_type: EaseType = EaseType.EASE_BOTH,
) -> CameraSegment:
    return CameraSegment(
        id=create_segment_id(),
        from_waypoint_id=from_waypoint_id,
        to_waypoint_id=to_waypoint_id,
        function_id=function_id,
        ease_type=ease_type,
        easing_enabled=easing_enabled,
    )


def generate_segments_from_waypoints(waypoints: List[CameraWaypoint]) -> List[CameraSegment]:
    """N-1 segments linking consecutive waypoints with the default InOutQuad easing"""
    prefix = create_segment_id()
    return [
        CameraSegment(
            id=f"{prefix}-{i}",
            from_waypoint_id=waypoints[i].id,
            to_waypoint_id=waypoints[i + 1].id,
        )
        for i in range(len(waypoints) - 1)
    ]


def compute_segments_from_waypoints(
    waypoints: List[CameraWaypoint],
    id_prefix: str = "seg",
) -> List[CameraSegment]:
    """
    Derive segments from the waypoints' bookmark commands.

    Segment i runs from waypoint i to waypoint i+1 and takes its easing from
    waypoint i's bookmark command. Without an easing command it is linear.

    Args:
        waypoints: Waypoints sorted by time
        id_prefix: Prefix for the generated segment ids

    Returns:
        List of len(waypoints) - 1 segments
    """
    from .commands import extract_easing_from_bookmark_command

    segments = []
    for i, (wp, next_wp) in enumerate(zip(waypoints, waypoints[1:])):
        easing = extract_easing_from_bookmark_command(wp.bookmark_command)
        if easing is None:
            segment = CameraSegment(
                id=f"{id_prefix}-{i}",
                from_waypoint_id=wp.id,
                to_waypoint_id=next_wp.id,
                function_id=EasingId.LINEAR.value,
                ease_type=EaseType.EASE_IN,
                easing_enabled=False,
            )
        else:
            segment = CameraSegment(
                id=f"{id_prefix}-{i}",
                from_waypoint_id=wp.id,
                to_waypoint_id=next_wp.id,
                function_id=easing.function_id.value,
                ease_type=easing.ease_type,
                easing_enabled=easing.easing_enabled,
                drift_params=easing.drift_params,
                raw_command=easing.raw_command,
            )
        segment.duration = next_wp.time - wp.time
        segment.bookmark_commands = wp.bookmark_command
        segments.append(segment)
    return segments


def validate_camera_path(path: CameraPath) -> List[str]:
    """
    Check the structural invariants of a path.

    Returns:
        List of human-readable problems, empty when the path is valid
    """
    errors = []
    waypoints = path.waypoints

    if len(waypoints) < 2:
        errors.append("Path must have at least 2 waypoints")
        return errors

    if waypoints[0].time != 0:
        errors.append("First waypoint must be at time 0")
    if waypoints[-1].time != 1:
        errors.append("Last waypoint must be at time 1")

    for i in range(1, len(waypoints)):
        if waypoints[i].time <= waypoints[i - 1].time:
            errors.append(
                f"Waypoint {i} time ({waypoints[i].time}) must be > "
                f"previous time ({waypoints[i - 1].time})"
            )

    if len(path.segments) != len(waypoints) - 1:
        errors.append(f"Expected {len(waypoints) - 1} segments, got {len(path.segments)}")

    waypoint_ids = {wp.id for wp in waypoints}
    for segment in path.segments:
        if segment.from_waypoint_id not in waypoint_ids:
            errors.append(
                f"Segment {segment.id} references invalid from_waypoint_id: {segment.from_waypoint_id}"
            )
        if segment.to_waypoint_id not in waypoint_ids:
            errors.append(
                f"Segment {segment.id} references invalid to_waypoint_id: {segment.to_waypoint_id}"
            )

    for i, segment in enumerate(path.segments):
        expected_from = waypoints[i].id if i < len(waypoints) else None
        expected_to = waypoints[i + 1].id if i + 1 < len(waypoints) else None
        if segment.from_waypoint_id != expected_from:
            errors.append(
                f"Segment {i} from_waypoint_id should be {expected_from}, got {segment.from_waypoint_id}"
            )
        if segment.to_waypoint_id != expected_to:
            errors.append(
                f"Segment {i} to_waypoint_id should be {expected_to}, got {segment.to_waypoint_id}"
            )

    return errors


def calculate_look_at_rotation(
    position: Sequence[float],
    target: Sequence[float] = DEFAULT_LOOK_AT_TARGET,
) -> np.ndarray:
    """
    Rotation that points a camera at position toward target.

    Args:
        position: Camera position (x, y, z)
        target: Point to look at, the avatar head by default

    Returns:
        Array (rx, ry, rz) in degrees: pitch, yaw and zero roll
    """
    dx, dy, dz = np.asarray(target, dtype=np.float64) - np.asarray(position, dtype=np.float64)
    ry = np.degrees(np.arctan2(dx, dz))
    rx = -np.degrees(np.arctan2(dy, np.hypot(dx, dz)))
    return np.array([rx, ry, 0.0], dtype=np.float64)


def waypoint_pose(waypoint: CameraWaypoint) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Effective (position, rotation) of a waypoint.

    A position command in the bookmark command overrides the structured
    fields.
    """
    from .commands import parse_position_command

    if waypoint.bookmark_command:
        parsed = parse_position_command(waypoint.bookmark_command)
        if parsed is not None:
            return parsed.position, parsed.rotation
    return waypoint.position, waypoint.rotation
