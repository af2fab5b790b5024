# (c) 2024 Niels Provos
#
# Easing functions, camera path interpolation and the ScriptMapper command
# codec.
#

from .easing import (
    DEFAULT_REGISTRY,
    EASING_FUNCTIONS,
    EaseType,
    EasingFunction,
    EasingId,
    EasingRegistry,
    ParametricParams,
    apply_easing,
)
from .path import CameraPath, CameraSegment, CameraWaypoint, CoordinateSystem
from .animation import (
    InterpolationResult,
    calculate_segment_output,
    get_segment_boundaries,
    interpolate_camera_path,
)
from .commands import (
    extract_easing_from_bookmark_name,
    format_as_script_mapper_command,
    format_as_script_mapper_short_command,
    parse_position_command,
    parse_script_mapper_command,
    validate_command,
)
from .beats import calculate_beat_duration, normalized_to_beat

__all__ = [
    "DEFAULT_REGISTRY",
    "EASING_FUNCTIONS",
    "EaseType",
    "EasingFunction",
    "EasingId",
    "EasingRegistry",
    "ParametricParams",
    "apply_easing",
    "CameraPath",
    "CameraSegment",
    "CameraWaypoint",
    "CoordinateSystem",
    "InterpolationResult",
    "calculate_segment_output",
    "get_segment_boundaries",
    "interpolate_camera_path",
    "extract_easing_from_bookmark_name",
    "format_as_script_mapper_command",
    "format_as_script_mapper_short_command",
    "parse_position_command",
    "parse_script_mapper_command",
    "validate_command",
    "calculate_beat_duration",
    "normalized_to_beat",
]
