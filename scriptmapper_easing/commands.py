# (c) 2024 Niels Provos
#
# ScriptMapper bookmark command codec.
#
# Converts between (function id, ease type, params) and the compact text
# commands used in ScriptMapper bookmarks ("InOutSine", "IOQuad",
# "ease_6_6"), and parses the q_/dpos_ camera position commands.
#

import logging
import math
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Optional, Tuple, Union
import numpy as np

from .easing import (
    DEFAULT_DRIFT_PARAMS,
    DEFAULT_REGISTRY,
    EaseType,
    EasingId,
    EasingRegistry,
    ParametricParams,
)
from .path import calculate_look_at_rotation

logger = logging.getLogger(__name__)

Q_PREFIX = "q_"
DPOS_PREFIX = "dpos_"
Q_FIELD_COUNT = 7  # X_Y_Z_RX_RY_RZ_FOV
DPOS_FIELD_COUNT = 4  # X_Y_Z_FOV

SCRIPTMAPPER_NAMES = MappingProxyType({
    fn.id.value: fn.script_mapper_name for fn in DEFAULT_REGISTRY.compatible()
})
SCRIPTMAPPER_COMPATIBLE_IDS = frozenset(SCRIPTMAPPER_NAMES)

PREFIXES = {
    EaseType.EASE_IN: "In",
    EaseType.EASE_OUT: "Out",
    EaseType.EASE_BOTH: "InOut",
}
SHORT_PREFIXES = {
    EaseType.EASE_IN: "I",
    EaseType.EASE_OUT: "O",
    EaseType.EASE_BOTH: "IO",
}

# Longest prefixes first, so "InOutSine" is never read as In + "OutSine"
PREFIX_GROUPS: Tuple[Tuple[Tuple[str, ...], EaseType], ...] = (
    (("InOut", "IO"), EaseType.EASE_BOTH),
    (("In", "I"), EaseType.EASE_IN),
    (("Out", "O"), EaseType.EASE_OUT),
)

DRIFT_PATTERN = re.compile(r"^ease_(\d+)_(\d+)$")
EASING_SHORTHAND_PATTERN = re.compile(r"^(In|Out|InOut)[A-Z][a-z]+")

# Preset names and control commands accepted without parameters
VALID_COMMAND_PREFIXES = (
    "spin", "stop", "next", "->", "|", "center", "side", "top",
    "diagf", "diagb", "orbit", "shake", "dolly", "pan", "tilt",
    "Ease", "ease", "Linear", "linear",
)


@dataclass(frozen=True)
class ParsedEasing:
    """Result of parsing an easing command"""
    function_id: EasingId
    ease_type: EaseType
    params: Optional[ParametricParams] = None


@dataclass(frozen=True)
class EasingInfo:
    """Easing settings recovered from a compound bookmark command"""
    function_id: EasingId
    ease_type: EaseType
    easing_enabled: bool
    raw_command: str
    drift_params: Optional[ParametricParams] = None


@dataclass(eq=False)
class PositionCommand:
    """Camera pose carried by a q_ or dpos_ command"""
    mode: str  # "q" or "dpos"
    position: np.ndarray
    rotation: Optional[np.ndarray] = None
    fov: Optional[float] = None


def get_script_mapper_name(
    function_id: Union[EasingId, str],
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> Optional[str]:
    fn = registry.get(function_id)
    return fn.script_mapper_name if fn is not None else None


def is_script_mapper_compatible(
    function_id: Union[EasingId, str],
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> bool:
    return get_script_mapper_name(function_id, registry) is not None


def _format_param(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _format_drift(params: Optional[ParametricParams]) -> str:
    params = params if params is not None else DEFAULT_DRIFT_PARAMS
    return f"ease_{_format_param(params.x)}_{_format_param(params.y)}"


def _format(function_id, ease_type, drift_params, prefixes, registry) -> Optional[str]:
    if EasingId.from_id(function_id) is EasingId.DRIFT:
        return _format_drift(drift_params)

    name = get_script_mapper_name(function_id, registry)
    if name is None:
        return None
    return f"{prefixes[EaseType.coerce(ease_type)]}{name}"


def format_as_script_mapper_command(
    function_id: Union[EasingId, str],
    ease_type: Union[EaseType, str],
    drift_params: Optional[ParametricParams] = None,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> Optional[str]:
    """
    Format an easing configuration as a full ScriptMapper command.

    Args:
        function_id: Easing function id, e.g. "quadratic"
        ease_type: easein, easeout or easeboth
        drift_params: Parameters for drift, the defaults when omitted
        registry: Easing registry providing the ScriptMapper names

    Returns:
        "InQuad", "OutSine", "InOutCubic", "ease_6_6" or None when the
        function has no ScriptMapper equivalent
    """
    return _format(function_id, ease_type, drift_params, PREFIXES, registry)


def format_as_script_mapper_short_command(
    function_id: Union[EasingId, str],
    ease_type: Union[EaseType, str],
    drift_params: Optional[ParametricParams] = None,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> Optional[str]:
    """Same as format_as_script_mapper_command with the I/O/IO prefixes used in bookmarks"""
    return _format(function_id, ease_type, drift_params, SHORT_PREFIXES, registry)


def parse_script_mapper_command(
    command: str,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> Optional[ParsedEasing]:
    """
    Parse an easing command such as "InSine", "IOQuad" or "ease_3_7".

    Returns:
        ParsedEasing, or None for unknown prefixes or base names
    """
    drift_match = DRIFT_PATTERN.match(command)
    if drift_match:
        return ParsedEasing(
            function_id=EasingId.DRIFT,
            ease_type=EaseType.EASE_IN,
            params=ParametricParams(int(drift_match.group(1)), int(drift_match.group(2))),
        )

    for keys, ease_type in PREFIX_GROUPS:
        for key in keys:
            if not command.startswith(key):
                continue
            base_name = command[len(key):]
            fn = registry.by_script_mapper_name(base_name) if base_name else None
            if fn is None:
                return None
            return ParsedEasing(function_id=fn.id, ease_type=ease_type)

    return None


def _split_parts(command: str) -> List[str]:
    return [part.strip() for part in command.split(",")]


def extract_easing_from_bookmark_name(
    bookmark_name: str,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> Optional[str]:
    """
    Find the easing command in a compound bookmark name.

    Parts are scanned from the last one backwards, since easing is
    conventionally written last, e.g. "dpos_-0.5_3_-3,spin60,IBack".

    Returns:
        The easing part ("IBack"), or None when no part parses
    """
    for part in reversed(_split_parts(bookmark_name)):
        if parse_script_mapper_command(part, registry) is not None:
            return part
    return None


def _is_non_easing_command(part: str) -> bool:
    return (
        part.startswith(Q_PREFIX)
        or part.startswith(DPOS_PREFIX)
        or part.startswith("spin")
        or part.startswith("->")
        or part in ("next", "stop")
    )


def extract_easing_from_bookmark_command(
    bookmark_command: Optional[str],
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> Optional[EasingInfo]:
    """
    Recover the easing settings of a waypoint's bookmark command.

    Position and control parts are skipped; the last easing part wins.
    """
    if not bookmark_command:
        return None

    for part in reversed(_split_parts(bookmark_command)):
        if _is_non_easing_command(part):
            continue
        parsed = parse_script_mapper_command(part, registry)
        if parsed is None:
            continue
        return EasingInfo(
            function_id=parsed.function_id,
            ease_type=parsed.ease_type,
            easing_enabled=True,
            raw_command=part,
            drift_params=parsed.params,
        )
    return None


def _to_number(token: str) -> Optional[float]:
    try:
        value = float(token)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _tokenize(command: str) -> List[str]:
    """Fields of the first comma part, prefix included"""
    return command.split(",")[0].strip().split("_")


def parse_position_command(command: str) -> Optional[PositionCommand]:
    """
    Parse the pose of a q_ or dpos_ command.

    q_X_Y_Z_RX_RY_RZ_FOV carries an explicit rotation when the three
    rotation fields are present. dpos_X_Y_Z_FOV looks at the avatar.

    Returns:
        PositionCommand, or None for anything that is not a position command
    """
    if not command:
        return None
    tokens = _tokenize(command)
    head = tokens[0] + "_"

    if head == Q_PREFIX:
        xyz = [_to_number(tok) for tok in tokens[1:4]]
        if len(xyz) < 3 or None in xyz:
            return None
        position = np.array(xyz, dtype=np.float64)
        rotation = None
        rot = [_to_number(tok) for tok in tokens[4:7]]
        if len(rot) == 3 and None not in rot:
            rotation = np.array(rot, dtype=np.float64)
        fov = _to_number(tokens[7]) if len(tokens) > 7 else None
        return PositionCommand("q", position, rotation, fov)

    if head == DPOS_PREFIX:
        xyz = [_to_number(tok) for tok in tokens[1:4]]
        if len(tokens) < 5 or None in xyz:
            return None
        position = np.array(xyz, dtype=np.float64)
        return PositionCommand("dpos", position, calculate_look_at_rotation(position),
                               _to_number(tokens[4]))

    return None


def _convert_parts(command: str, convert) -> str:
    return ",".join(convert(part) for part in command.split(","))


def _q_part_to_dpos(part: str) -> str:
    stripped = part.lstrip()
    if not stripped.startswith(Q_PREFIX):
        return part
    tokens = stripped.split("_")
    if len(tokens) < Q_FIELD_COUNT + 1 or not all(tokens[1:Q_FIELD_COUNT + 1]):
        return part
    leading = part[:len(part) - len(stripped)]
    return leading + "_".join(["dpos"] + tokens[1:4] + tokens[7:])


def _dpos_part_to_q(part: str) -> str:
    stripped = part.lstrip()
    if not stripped.startswith(DPOS_PREFIX):
        return part
    tokens = stripped.split("_")
    if len(tokens) < DPOS_FIELD_COUNT + 1 or not all(tokens[1:DPOS_FIELD_COUNT + 1]):
        return part
    leading = part[:len(part) - len(stripped)]
    return leading + "_".join(["q"] + tokens[1:4] + ["0", "0", "0"] + tokens[4:])


def q_to_dpos(bookmark_command: str) -> str:
    """q_0_1_-5_0_0_0_60 -> dpos_0_1_-5_60, in every comma part"""
    return _convert_parts(bookmark_command, _q_part_to_dpos)


def dpos_to_q(bookmark_command: str) -> str:
    """dpos_0_1_-5_60 -> q_0_1_-5_0_0_0_60 (zero rotation), in every comma part"""
    return _convert_parts(bookmark_command, _dpos_part_to_q)


def detect_command_mode(bookmark_command: Optional[str]) -> str:
    """'dpos' when the first part is a dpos_ command, 'q' otherwise"""
    if not bookmark_command:
        return "q"
    first = bookmark_command.split(",")[0].strip()
    return "dpos" if first.startswith(DPOS_PREFIX) else "q"


def _validate_fields(tokens: List[str], count: int) -> Optional[str]:
    for i in range(1, count + 1):
        if i >= len(tokens) or tokens[i] == "":
            return f"Parameter {i} is missing"
        if _to_number(tokens[i]) is None:
            return f"Parameter {i} must be a number"
    return None


def validate_command(
    command: str,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> Optional[str]:
    """
    Validate the leading part of a bookmark command.

    Returns:
        None when valid, otherwise a reason suitable for display
    """
    if not command or not command.strip():
        return "Command is required"

    first = command.strip().split(",")[0]
    tokens = first.split("_")
    error = None

    if first.startswith(Q_PREFIX):
        if len(tokens) < Q_FIELD_COUNT + 1:
            error = "q_ requires 7 parameters: X_Y_Z_RX_RY_RZ_FOV"
        else:
            error = _validate_fields(tokens, Q_FIELD_COUNT)
    elif first.startswith(DPOS_PREFIX):
        if len(tokens) < DPOS_FIELD_COUNT + 1:
            error = "dpos_ requires 4 parameters: X_Y_Z_FOV"
        else:
            error = _validate_fields(tokens, DPOS_FIELD_COUNT)
    elif first.startswith(VALID_COMMAND_PREFIXES):
        return None
    elif EASING_SHORTHAND_PATTERN.match(first):
        return None
    elif parse_script_mapper_command(first, registry) is not None:
        return None
    else:
        error = "Unknown command. Use q_, dpos_, or preset names"

    if error is not None:
        logger.debug(f"Rejected command {command!r}: {error}")
    return error
