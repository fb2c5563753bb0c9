"""Plane angles in turns, radians and degrees, and their normalization."""
import math
import struct


__all__ = ["Angle", "Deg", "Normalizer", "Rad", "Reduce", "Turn", "TWO_PI", "PI_OVER_TWO"]


TWO_PI = 2 * math.pi
PI_OVER_TWO = 0.5 * math.pi
TURN_TO_DEG = 360.0
RAD_TO_DEG = 180.0 / math.pi
DEG_TO_RAD = math.pi / 180.0

_NAN_BITS = struct.unpack("<q", struct.pack("<d", math.nan))[0]


def _bits(value):
    # Every NaN maps to one pattern; the two zeros stay distinct.
    if math.isnan(value):
        return _NAN_BITS
    return struct.unpack("<q", struct.pack("<d", value))[0]


def _floor(x):
    if not math.isfinite(x):
        return x
    return float(math.floor(x))


class Reduce:
    """Reduce a value to ``[0, period)`` relative to `offset`.

    ``Reduce(offset, period)(x)`` is ``x - offset`` minus the largest
    multiple of `period` not exceeding it. The sign of `period` is ignored.
    """

    def __init__(self, offset, period):
        self.offset = offset
        self.period = abs(period)

    def __call__(self, x):
        x_mo = x - self.offset
        return x_mo - self.period * _floor(x_mo / self.period)


class Normalizer:
    """Map a value into ``[lo, lo + period)``."""

    def __init__(self, lo, period):
        self.lo = lo
        self.hi = lo + period
        self.period = period
        self._reduce = Reduce(lo, period)

    def __call__(self, a):
        if self.lo <= a < self.hi:
            return a
        normalized = self._reduce(a) + self.lo
        if normalized < self.hi or math.isnan(normalized):
            return normalized
        # A value tiny relative to the period can round onto the upper bound.
        return max(self.lo, normalized - self.period)


class Angle:
    """Immutable angle value. Subclasses fix the unit."""

    __slots__ = ("_value",)

    def __init__(self, value):
        object.__setattr__(self, "_value", float(value))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def of(cls, value):
        return cls(value)

    @property
    def value(self):
        return self._value

    def __float__(self):
        return self._value

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return _bits(self._value) == _bits(other._value)

    def __hash__(self):
        return hash((type(self).__name__, _bits(self._value)))

    def __repr__(self):
        return f"{type(self).__name__}({self._value!r})"

    def to_turn(self):
        raise NotImplementedError

    def to_rad(self):
        raise NotImplementedError

    def to_deg(self):
        raise NotImplementedError


class Turn(Angle):
    """Angle in turns; one full circle is ``1``."""

    __slots__ = ()

    def to_turn(self):
        return self

    def to_rad(self):
        return Rad(self._value * TWO_PI)

    def to_deg(self):
        return Deg(self._value * TURN_TO_DEG)

    @staticmethod
    def normalizer(lo):
        return Normalizer(lo, 1.0)


class Rad(Angle):
    """Angle in radians."""

    __slots__ = ()

    def to_turn(self):
        return Turn(self._value / TWO_PI)

    def to_rad(self):
        return self

    def to_deg(self):
        return Deg(self._value * RAD_TO_DEG)

    @staticmethod
    def normalizer(lo):
        return Normalizer(lo, TWO_PI)


class Deg(Angle):
    """Angle in degrees."""

    __slots__ = ()

    def to_turn(self):
        return Turn(self._value / TURN_TO_DEG)

    def to_rad(self):
        return Rad(self._value * DEG_TO_RAD)

    def to_deg(self):
        return self

    @staticmethod
    def normalizer(lo):
        return Normalizer(lo, TURN_TO_DEG)


Turn.ZERO = Turn(0.0)
Turn.WITHIN_0_AND_1 = Turn.normalizer(0.0)

Rad.ZERO = Rad(0.0)
Rad.PI = Rad(math.pi)
Rad.TWO_PI = Rad(TWO_PI)
Rad.WITHIN_0_AND_2PI = Rad.normalizer(0.0)
Rad.WITHIN_MINUS_PI_AND_PI = Rad.normalizer(-math.pi)

Deg.ZERO = Deg(0.0)
Deg.WITHIN_0_AND_360 = Deg.normalizer(0.0)
