"""Small vector and vertex value types used throughout the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, Union


@dataclass(frozen=True)
class Vec2:
    """An immutable two-component float vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: object) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: object) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, other: object) -> Vec2:
        if isinstance(other, Vec2):
            return Vec2(self.x * other.x, self.y * other.y)
        if isinstance(other, (int, float)):
            return Vec2(self.x * other, self.y * other)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, other: object) -> Vec2:
        if isinstance(other, Vec2):
            return Vec2(self.x / other.x, self.y / other.y)
        if isinstance(other, (int, float)):
            return Vec2(self.x / other, self.y / other)
        return NotImplemented

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def length(self) -> float:
        """Euclidean length."""
        return math.hypot(self.x, self.y)

    def normalized(self) -> Vec2:
        """Unit vector in the same direction; NaN components for the zero vector."""
        norm = self.length()
        if norm == 0.0:
            return Vec2(math.nan, math.nan)
        return Vec2(self.x / norm, self.y / norm)

    def dot(self, other: Vec2) -> float:
        """Dot product with another vector."""
        return self.x * other.x + self.y * other.y


Scalar = Union[int, float]


@dataclass(frozen=True)
class ColorRGBA8:
    """An 8-bit-per-channel RGBA colour."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= 255:
                raise ValueError(f"colour channel {name} must be an int in 0..255, got {value!r}")


@dataclass(frozen=True)
class Position:
    """Vertex position in world units."""

    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class UV:
    """Texture coordinates."""

    u: float = 0.0
    v: float = 0.0


@dataclass(frozen=True)
class Vertex:
    """A sprite vertex: position, colour and texture coordinates."""

    position: Position = field(default_factory=Position)
    color: ColorRGBA8 = field(default_factory=ColorRGBA8)
    uv: UV = field(default_factory=UV)