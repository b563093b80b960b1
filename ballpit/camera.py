"""2D orthographic camera."""

from __future__ import annotations

from typing import Tuple

from ballpit.vertex import Vec2

Matrix = Tuple[Tuple[float, float, float, float], ...]

IDENTITY: Matrix = (
    (1.0, 0.0, 0.0, 0.0),
    (0.0, 1.0, 0.0, 0.0),
    (0.0, 0.0, 1.0, 0.0),
    (0.0, 0.0, 0.0, 1.0),
)


def _mat_mul(a: Matrix, b: Matrix) -> Matrix:
    columns = list(zip(*b))
    return tuple(
        tuple(sum(x * y for x, y in zip(row, col)) for col in columns) for row in a
    )


def _ortho(left: float, right: float, bottom: float, top: float) -> Matrix:
    return (
        (2.0 / (right - left), 0.0, 0.0, -(right + left) / (right - left)),
        (0.0, 2.0 / (top - bottom), 0.0, -(top + bottom) / (top - bottom)),
        (0.0, 0.0, -1.0, 0.0),
        (0.0, 0.0, 0.0, 1.0),
    )


def _translation(tx: float, ty: float, tz: float) -> Matrix:
    return (
        (1.0, 0.0, 0.0, tx),
        (0.0, 1.0, 0.0, ty),
        (0.0, 0.0, 1.0, tz),
        (0.0, 0.0, 0.0, 1.0),
    )


def _scaling(sx: float, sy: float, sz: float) -> Matrix:
    return (
        (sx, 0.0, 0.0, 0.0),
        (0.0, sy, 0.0, 0.0),
        (0.0, 0.0, sz, 0.0),
        (0.0, 0.0, 0.0, 1.0),
    )


class Camera:
    """Orthographic camera centred on a world position with a uniform zoom.

    Matrices are row-major: a clip-space point is ``camera_matrix @ (x, y, z, 1)``.
    """

    def __init__(self) -> None:
        self.screen_width = 0
        self.screen_height = 0
        self._position = Vec2(0.0, 0.0)
        self._scale = 1.0
        self._needs_update = True
        self._ortho_matrix: Matrix = IDENTITY
        self.camera_matrix: Matrix = IDENTITY

    def init(self, screen_width: int, screen_height: int) -> None:
        """Set the screen size and build the orthographic projection."""
        self.screen_width = screen_width
        self.screen_height = screen_height
        self._ortho_matrix = _ortho(0.0, float(screen_width), 0.0, float(screen_height))

    @property
    def position(self) -> Vec2:
        return self._position

    @position.setter
    def position(self, value: Vec2) -> None:
        self._position = value
        self._needs_update = True

    @property
    def scale(self) -> float:
        return self._scale

    @scale.setter
    def scale(self, value: float) -> None:
        self._scale = value
        self._needs_update = True

    def update(self) -> None:
        """Rebuild the camera matrix if position or scale changed."""
        if not self._needs_update:
            return
        half_w = self.screen_width // 2
        half_h = self.screen_height // 2
        translated = _mat_mul(
            self._ortho_matrix,
            _translation(-self._position.x + half_w, -self._position.y + half_h, 0.0),
        )
        self.camera_matrix = _mat_mul(_scaling(self._scale, self._scale, 0.0), translated)
        self._needs_update = False

    def world_coords(self, screen_coords: Vec2) -> Vec2:
        """Convert window coordinates (y down) to world coordinates (y up)."""
        flipped = Vec2(screen_coords.x, self.screen_height - screen_coords.y)
        centred = flipped - Vec2(self.screen_width // 2, self.screen_height // 2)
        return centred / self._scale + self._position

    def is_box_in_view(self, position: Vec2, dimensions: Vec2) -> bool:
        """True if an axis-aligned box overlaps the visible area."""
        scaled_screen = Vec2(self.screen_width, self.screen_height) / self._scale
        min_distance_x = dimensions.x / 2.0 + scaled_screen.x / 2.0
        min_distance_y = dimensions.y / 2.0 + scaled_screen.y / 2.0

        centre = position + dimensions / 2.0
        dist = centre - self._position

        x_depth = min_distance_x - abs(dist.x)
        y_depth = min_distance_y - abs(dist.y)
        return x_depth > 0 and y_depth > 0