# (c) 2024 Niels Provos
#
# Easing functions for camera path animations.
#

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union
import numpy as np


class EaseType(Enum):
    """Directional transform applied to a base (ease-in) curve"""
    EASE_IN = "easein"
    EASE_OUT = "easeout"
    EASE_BOTH = "easeboth"

    @staticmethod
    def coerce(value: Union["EaseType", str]) -> "EaseType":
        if isinstance(value, EaseType):
            return value
        return EaseType(value)


class EasingId(str, Enum):
    """Known easing function ids. The string value is the wire id."""
    LINEAR = "linear"
    SINE = "sine"
    QUADRATIC = "quadratic"
    CUBIC = "cubic"
    QUARTIC = "quartic"
    QUINTIC = "quintic"
    EXPONENTIAL = "exponential"
    CIRCULAR = "circular"
    SQRT = "sqrt"
    BACK = "back"
    ELASTIC = "elastic"
    BOUNCE = "bounce"
    HERMITE = "hermite"
    BEZIER = "bezier"
    PARABOLIC = "parabolic"
    TRIGONOMETRIC = "trigonometric"
    DRIFT = "drift"
    UNKNOWN = "unknown"

    @staticmethod
    def from_id(value: Union["EasingId", str, None]) -> "EasingId":
        """Map an external id to a member, UNKNOWN if it is not recognised"""
        if isinstance(value, EasingId):
            return value
        try:
            return EasingId(value)
        except ValueError:
            return EasingId.UNKNOWN


@dataclass(frozen=True)
class ParametricParams:
    """Parameters of a parametric curve, nominally in [0, 10]"""
    x: float
    y: float

    PARAM_MIN = 0.0
    PARAM_MAX = 10.0

    def clamped(self) -> "ParametricParams":
        return ParametricParams(
            x=min(max(self.x, self.PARAM_MIN), self.PARAM_MAX),
            y=min(max(self.y, self.PARAM_MIN), self.PARAM_MAX),
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_dict(data: dict) -> "ParametricParams":
        return ParametricParams(x=data["x"], y=data["y"])


DEFAULT_DRIFT_PARAMS = ParametricParams(6, 6)

Shape = Callable[[float], float]


def apply_ease_type(shape: Shape, t: float, ease_type: EaseType) -> float:
    """
    Derive the ease-out and ease-both variants from an ease-in shape.

    Args:
        shape: Canonical ease-in curve f(t)
        t: Normalized time (not clamped)
        ease_type: The transform to apply

    Returns:
        f(t) for ease-in, 1 - f(1 - t) for ease-out, and the mirrored
        halves of f for ease-both
    """
    if ease_type is EaseType.EASE_OUT:
        return 1 - shape(1 - t)
    if ease_type is EaseType.EASE_BOTH:
        if t < 0.5:
            return shape(2 * t) / 2
        return 1 - shape(2 - 2 * t) / 2
    return shape(t)


def linear(t: float) -> float:
    """f(t) = t"""
    return t


def sine(t: float) -> float:
    """f(t) = sin(pi*t/2)"""
    return math.sin(math.pi * t / 2)


def quadratic(t: float) -> float:
    """f(t) = t^2"""
    return t * t


def cubic(t: float) -> float:
    """f(t) = t^3"""
    return t * t * t


def quartic(t: float) -> float:
    """f(t) = t^4"""
    return t * t * t * t


def quintic(t: float) -> float:
    """f(t) = t^5"""
    return t * t * t * t * t


def exponential(t: float) -> float:
    """f(t) = 2^(10(t-1)), pinned to 0 and 1 at the ends"""
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    return 2 ** (10 * (t - 1))


def circular(t: float) -> float:
    """f(t) = 1 - sqrt(1 - t^2)"""
    return 1 - math.sqrt(max(0.0, 1 - t * t))


def square_root(t: float) -> float:
    """f(t) = sqrt(t)"""
    return math.sqrt(max(0.0, t))


BACK_C1 = 1.70158
BACK_C3 = BACK_C1 + 1


def back(t: float) -> float:
    """Overshooting cubic: f(t) = c3*t^3 - c1*t^2"""
    return BACK_C3 * t * t * t - BACK_C1 * t * t


ELASTIC_C4 = (2 * math.pi) / 3


def elastic(t: float) -> float:
    """Damped oscillation: f(t) = -2^(10t-10) * sin((10t - 10.75) * c4)"""
    if t == 0:
        return 0.0
    if t == 1:
        return 1.0
    return -(2 ** (10 * t - 10)) * math.sin((t * 10 - 10.75) * ELASTIC_C4)


BOUNCE_N1 = 7.5625
BOUNCE_D1 = 2.75


def bounce(t: float) -> float:
    """Piecewise parabolic bounce"""
    if t < 1 / BOUNCE_D1:
        return BOUNCE_N1 * t * t
    if t < 2 / BOUNCE_D1:
        t -= 1.5 / BOUNCE_D1
        return BOUNCE_N1 * t * t + 0.75
    if t < 2.5 / BOUNCE_D1:
        t -= 2.25 / BOUNCE_D1
        return BOUNCE_N1 * t * t + 0.9375
    t -= 2.625 / BOUNCE_D1
    return BOUNCE_N1 * t * t + 0.984375


def hermite(t: float) -> float:
    """Smoothstep: f(t) = t^2 (3 - 2t)"""
    return t * t * (3 - 2 * t)


def bezier(t: float) -> float:
    """f(t) = 3t^2 (1-t) + t^3"""
    return 3 * t * t * (1 - t) + t * t * t


def parabolic(t: float) -> float:
    """f(t) = 4t(1-t). Returns to 0 at t=1."""
    return 4 * t * (1 - t)


def trigonometric(t: float) -> float:
    """f(t) = (1 - cos(pi*t)) / 2"""
    return (1 - math.cos(math.pi * t)) / 2


def drift(t: float, params: ParametricParams = DEFAULT_DRIFT_PARAMS) -> float:
    """
    Power-law onset up to a breakpoint, linear tail after it.

    x/10 is the breakpoint time and y/10 the value reached there.
    """
    params = params.clamped()
    xp = params.x / 10
    yp = params.y / 10

    if xp == 0:
        return yp + t * (1 - yp)
    if xp == 1:
        return t * t * yp
    if t < xp:
        return (t / xp) ** 2 * yp
    return yp + ((t - xp) / (1 - xp)) * (1 - yp)


@dataclass(frozen=True)
class EasingFunction:
    """Static catalog entry for one curve shape"""
    id: EasingId
    name: str
    formula: str
    shape: Callable[..., float] = field(repr=False, compare=False)
    is_parametric: bool = False
    default_params: Optional[ParametricParams] = None
    script_mapper_name: Optional[str] = None

    @property
    def script_mapper_compatible(self) -> bool:
        return self.script_mapper_name is not None

    def calculate(
        self,
        t: float,
        ease_type: Union[EaseType, str] = EaseType.EASE_IN,
        params: Optional[ParametricParams] = None,
    ) -> float:
        """
        Evaluate the curve at t under the given ease type.

        Args:
            t: Normalized time. Values outside [0, 1] are extrapolated.
            ease_type: easein, easeout or easeboth
            params: Parameters for parametric curves, defaults when omitted

        Returns:
            Eased value. Overshoot curves may leave [0, 1].
        """
        ease_type = EaseType.coerce(ease_type)
        if self.is_parametric:
            params = params if params is not None else self.default_params
            return float(apply_ease_type(lambda u: self.shape(u, params), t, ease_type))
        return float(apply_ease_type(self.shape, t, ease_type))


EASING_FUNCTIONS: Tuple[EasingFunction, ...] = (
    EasingFunction(EasingId.LINEAR, "Linear", "y = x", linear),
    EasingFunction(EasingId.SINE, "Sine", "y = sin(πx/2)", sine,
                   script_mapper_name="Sine"),
    EasingFunction(EasingId.QUADRATIC, "Quadratic", "y = x²", quadratic,
                   script_mapper_name="Quad"),
    EasingFunction(EasingId.CUBIC, "Cubic", "y = x³", cubic,
                   script_mapper_name="Cubic"),
    EasingFunction(EasingId.QUARTIC, "Quartic", "y = x⁴", quartic,
                   script_mapper_name="Quart"),
    EasingFunction(EasingId.QUINTIC, "Quintic", "y = x⁵", quintic,
                   script_mapper_name="Quint"),
    EasingFunction(EasingId.EXPONENTIAL, "Exponential", "y = 2^(10(x-1))", exponential,
                   script_mapper_name="Expo"),
    EasingFunction(EasingId.CIRCULAR, "Circular", "y = 1 - √(1-x²)", circular,
                   script_mapper_name="Circ"),
    EasingFunction(EasingId.SQRT, "Square Root", "y = √x", square_root),
    EasingFunction(EasingId.BACK, "Back", "y = x²(2.70158x - 1.70158)", back,
                   script_mapper_name="Back"),
    EasingFunction(EasingId.ELASTIC, "Elastic", "y = -2^(10(x-1))sin((x-1.1)×2π/0.4)", elastic,
                   script_mapper_name="Elastic"),
    EasingFunction(EasingId.BOUNCE, "Bounce", "Piecewise bounce function", bounce,
                   script_mapper_name="Bounce"),
    EasingFunction(EasingId.HERMITE, "Hermite", "y = x²(3 - 2x)", hermite),
    EasingFunction(EasingId.BEZIER, "Bezier", "y = 3x²(1-x) + x³", bezier),
    EasingFunction(EasingId.PARABOLIC, "Parabolic", "y = 4x(1-x)", parabolic),
    EasingFunction(EasingId.TRIGONOMETRIC, "Trigonometric", "y = (1 - cos(πx))/2", trigonometric),
    EasingFunction(EasingId.DRIFT, "Drift", "x<a: (x/a)²·b, else b + (x-a)/(1-a)·(1-b)", drift,
                   is_parametric=True, default_params=DEFAULT_DRIFT_PARAMS,
                   script_mapper_name="Drift"),
)


class EasingRegistry:
    """Immutable lookup of easing functions by id"""

    def __init__(self, functions):
        functions = tuple(functions)
        self._functions: Dict[EasingId, EasingFunction] = MappingProxyType(
            {fn.id: fn for fn in functions}
        )
        self._by_script_mapper_name = MappingProxyType({
            fn.script_mapper_name: fn for fn in functions if fn.script_mapper_compatible
        })

    @staticmethod
    def default() -> "EasingRegistry":
        return EasingRegistry(EASING_FUNCTIONS)

    def get(self, function_id: Union[EasingId, str, None]) -> Optional[EasingFunction]:
        """Look up a function, None for unknown ids"""
        return self._functions.get(EasingId.from_id(function_id))

    def by_script_mapper_name(self, name: str) -> Optional[EasingFunction]:
        return self._by_script_mapper_name.get(name)

    def ids(self) -> List[EasingId]:
        return list(self._functions)

    def compatible(self) -> List[EasingFunction]:
        return [fn for fn in self if fn.script_mapper_compatible]

    def __contains__(self, function_id) -> bool:
        return self.get(function_id) is not None

    def __iter__(self) -> Iterator[EasingFunction]:
        return iter(self._functions.values())

    def __len__(self) -> int:
        return len(self._functions)


DEFAULT_REGISTRY = EasingRegistry.default()


def apply_easing(
    t: float,
    function_id: Union[EasingId, str],
    ease_type: Union[EaseType, str] = EaseType.EASE_IN,
    params: Optional[ParametricParams] = None,
    registry: EasingRegistry = DEFAULT_REGISTRY,
) -> float:
    """
    Apply an easing function by id to normalized time t.

    Unknown ids fall back to linear.
    """
    fn = registry.get(function_id)
    if fn is None:
        return float(t)
    return fn.calculate(t, ease_type, params)


def sample_curve(
    function: EasingFunction,
    ease_type: Union[EaseType, str] = EaseType.EASE_IN,
    params: Optional[ParametricParams] = None,
    steps: int = 100,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample a curve on an even grid over [0, 1] for plotting.

    Returns:
        Tuple of (t, y) arrays of length steps + 1
    """
    ts = np.linspace(0.0, 1.0, steps + 1)
    ys = np.fromiter(
        (function.calculate(float(t), ease_type, params) for t in ts),
        dtype=np.float64,
        count=len(ts),
    )
    return ts, ys
