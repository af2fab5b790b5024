# (c) 2024 Niels Provos
#
# Built-in ScriptMapper camera path presets.
#
# Each preset waypoint is one bookmark: a position command for the point
# itself, followed by the easing of the transition to the next point. The
# last point usually ends with "stop".
#

import copy
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .commands import parse_position_command
from .path import (
    CameraPath,
    CameraWaypoint,
    CoordinateSystem,
    compute_segments_from_waypoints,
)

# (beat, command, fallback position for commands without a pose)
WaypointSpec = Tuple[float, str, Optional[Sequence[float]]]


class CameraPathPreset(Enum):
    """Predefined camera path presets"""
    BASIC_3POINT = "preset-basic-3point"
    EASEIN_DEMO = "preset-easein-demo"
    EASEOUT_DEMO = "preset-easeout-demo"
    COMPLEX_5POINT = "preset-complex-5point"
    ZIGZAG_QUICK = "preset-zigzag-quick"
    AROUND_BLOCK = "preset-around-block"
    CINEMATIC_SWEEP = "preset-cinematic-sweep"
    SIMPLE_PAN = "preset-simple-pan"


@dataclass(frozen=True)
class PresetDefinition:
    name: str
    beat_duration: float
    total_duration: float  # ms
    waypoints: Tuple[WaypointSpec, ...]


PRESET_DEFINITIONS: Dict[CameraPathPreset, PresetDefinition] = {
    CameraPathPreset.BASIC_3POINT: PresetDefinition(
        "Basic 3-Point Path", 8, 3000, (
            (0, "q_0_1_-5_0_0_0_60,IOSine", None),
            (4, "q_3_1_0_0_15_0_60,IOQuad", None),
            (8, "q_0_3_5_0_0_0_60,stop", None),
        )),
    CameraPathPreset.EASEIN_DEMO: PresetDefinition(
        "EaseIn Demo (HOLD→EASED→HOLD)", 16, 4000, (
            (0, "q_-3_1_-5_0_0_0_60", None),
            (3.2, "q_-3_1_-5_0_0_0_60,OCubic", None),
            (12.8, "q_3_1_5_0_0_0_60", None),
            (16, "q_3_1_5_0_0_0_60,stop", None),
        )),
    CameraPathPreset.EASEOUT_DEMO: PresetDefinition(
        "EaseOut Demo (EASED→HOLD→LINEAR)", 16, 3500, (
            (0, "q_0_1_-5_0_0_0_60,IQuad", None),
            (6.4, "q_0_2_0_0_0_0_60", None),
            (9.6, "q_0_2_0_0_0_0_60", None),
            (16, "q_0_1_5_0_0_0_60,stop", None),
        )),
    CameraPathPreset.COMPLEX_5POINT: PresetDefinition(
        "Complex 5-Point Path", 16, 5000, (
            (0, "q_-4_0.5_-4_0_0_0_60,IOQuad", None),
            (4, "spin45,IOCubic", (0, 3, -2)),
            (8, "spin-30,IOQuart", (4, 1, 0)),
            (12, "spin90,IOQuint", (0, 2, 2)),
            (16, "q_-4_0.5_4_0_0_0_60,stop", None),
        )),
    CameraPathPreset.ZIGZAG_QUICK: PresetDefinition(
        "Zigzag Quick Motion", 16, 3000, (
            (0, "q_-3_1_-3_0_0_0_60,OBack", None),
            (2.24, "q_3_2_-2_0_0_0_60,IBack", None),
            (4.48, "q_-3_1_-1_0_0_0_60,OElastic", None),
            (6.72, "q_3_2_0_0_0_0_60,IElastic", None),
            (9.12, "q_-3_1_1_0_0_0_60,OBounce", None),
            (11.36, "q_3_2_2_0_0_0_60,IBounce", None),
            (13.6, "q_-3_1_3_0_0_0_60,IOExpo", None),
            (16, "q_0_1.5_4_0_0_0_60,stop", None),
        )),
    CameraPathPreset.AROUND_BLOCK: PresetDefinition(
        "Around the Block (4 corners)", 16, 4000, (
            (0, "q_5_1_0_0_0_0_60,IOSine", None),
            (4, "q_0_1_5_0_90_0_60,IOSine", None),
            (8, "q_-5_1_0_0_180_0_60,IOSine", None),
            (12, "q_0_1_-5_0_270_0_60,IOSine", None),
            (16, "q_5_1_0_0_360_0_60,stop", None),
        )),
    CameraPathPreset.CINEMATIC_SWEEP: PresetDefinition(
        "Cinematic Sweep", 16, 4500, (
            (0, "q_-5_2_-5_-10_0_0_45,IOQuint", None),
            (8, "q_0_1_0_0_0_0_60,IOCirc", None),
            (16, "q_5_0.5_5_10_0_0_75,stop", None),
        )),
    CameraPathPreset.SIMPLE_PAN: PresetDefinition(
        "Simple 2-Point Pan", 8, 2000, (
            (0, "q_-3_1.5_-4_0_0_0_60,ease_6_6", None),
            (8, "q_3_1.5_4_0_0_0_60,stop", None),
        )),
}


class CameraPathPresetFactory:
    """Factory for building camera paths from presets"""

    @staticmethod
    def create(preset: CameraPathPreset) -> CameraPath:
        """
        Build the CameraPath for a preset.

        Beat positions are normalized by the preset's beat duration and
        segments are computed from the bookmark commands.

        Args:
            preset: The preset to build

        Returns:
            CameraPath with N waypoints and N-1 segments
        """
        definition = PRESET_DEFINITIONS[preset]
        waypoints = [
            CameraPathPresetFactory._create_waypoint(index, beat / definition.beat_duration,
                                                     command, fallback)
            for index, (beat, command, fallback) in enumerate(definition.waypoints)
        ]
        return CameraPath(
            id=preset.value,
            name=definition.name,
            waypoints=waypoints,
            segments=compute_segments_from_waypoints(waypoints, "preset-seg"),
            total_duration=definition.total_duration,
            coordinate_system=CoordinateSystem.LEFT_HANDED,
            beat_duration=definition.beat_duration,
        )

    @staticmethod
    def _create_waypoint(
        index: int,
        time: float,
        command: str,
        fallback: Optional[Sequence[float]],
    ) -> CameraWaypoint:
        """Waypoint posed by its command, or by the fallback for spin and friends"""
        parsed = parse_position_command(command)
        if parsed is not None:
            position, rotation = parsed.position, parsed.rotation
        else:
            position, rotation = fallback if fallback is not None else (0, 0, 0), None
        return CameraWaypoint(
            id=f"preset-wp-{index}",
            time=time,
            position=position,
            rotation=rotation,
            bookmark_command=command,
        )


CAMERA_PATH_PRESETS: List[CameraPath] = [
    CameraPathPresetFactory.create(preset) for preset in CameraPathPreset
]


def get_preset_by_id(preset_id: str) -> Optional[CameraPath]:
    """Deep copy of a built-in preset, None for unknown ids"""
    for preset in CAMERA_PATH_PRESETS:
        if preset.id == preset_id:
            return copy.deepcopy(preset)
    return None


def clone_preset(preset: CameraPath) -> CameraPath:
    """
    Copy a path for editing.

    Waypoints get fresh ids and the segments are recomputed from the
    bookmark commands, so the copy shares nothing with the original.
    """
    token = uuid.uuid4().hex[:12]
    waypoints = []
    for index, wp in enumerate(preset.waypoints):
        clone = copy.deepcopy(wp)
        clone.id = f"wp-{token}-{index}"
        waypoints.append(clone)

    return CameraPath(
        id=f"path-{token}",
        name=f"{preset.name} (Copy)",
        waypoints=waypoints,
        segments=compute_segments_from_waypoints(waypoints, f"seg-{token}"),
        total_duration=preset.total_duration,
        coordinate_system=preset.coordinate_system,
        bpm=preset.bpm,
        beat_offset=preset.beat_offset,
        beat_duration=preset.beat_duration,
    )


def default_camera_path() -> CameraPath:
    """The Simple 2-Point Pan preset"""
    return CameraPathPresetFactory.create(CameraPathPreset.SIMPLE_PAN)
