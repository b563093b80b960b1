"""Ball physics, mouse interaction and colouring strategies."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from ballpit.grid import Cell, Grid
from ballpit.spritebatch import RenderBatch, SpriteBatch
from ballpit.vertex import ColorRGBA8, Vec2

_FRICTION = 0.01
_GRAVITY_FORCE = 0.02
_FULL_UV = (0.0, 0.0, 1.0, 1.0)


class GravityDirection(Enum):
    NONE = "none"
    LEFT = "left"
    UP = "up"
    RIGHT = "right"
    DOWN = "down"


@dataclass(eq=False)
class Ball:
    """A ball with its physical state and grid bookkeeping."""

    radius: float
    mass: float
    position: Vec2
    velocity: Vec2
    texture_id: int = 0
    color: ColorRGBA8 = field(default_factory=ColorRGBA8)
    owner_cell: Optional[Cell] = None
    cell_vector_index: int = -1


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _to_ubyte(value: float) -> int:
    """Convert a float to a colour byte, wrapping like an unsigned byte cast."""
    if not math.isfinite(value):
        return 0
    return int(value) % 256


class BallRenderer:
    """Draws each ball with its own colour."""

    clear_color = (0.1, 0.1, 0.1, 1.0)

    def ball_color(self, ball: Ball) -> ColorRGBA8:
        return ball.color

    def render_balls(self, sprite_batch: SpriteBatch, balls: Sequence[Ball]) -> List[RenderBatch]:
        """Queue every ball into the sprite batch and return the resulting render batches."""
        sprite_batch.begin()
        for ball in balls:
            dest = (
                ball.position.x - ball.radius,
                ball.position.y - ball.radius,
                ball.radius * 2.0,
                ball.radius * 2.0,
            )
            sprite_batch.draw(dest, _FULL_UV, ball.texture_id, 0.0, self.ball_color(ball))
        sprite_batch.end()
        return list(sprite_batch.render_batches)


class MomentumBallRenderer(BallRenderer):
    """Shades balls by their momentum."""

    clear_color = (0.2, 0.0, 0.2, 0.5)

    def ball_color(self, ball: Ball) -> ColorRGBA8:
        value = _to_ubyte(_clamp(ball.velocity.length() * ball.mass * 12.0, 0.0, 255.0))
        return ColorRGBA8(value, value, value, value)


class VelocityBallRenderer(BallRenderer):
    """Shades balls by the positive x component of velocity and by position."""

    clear_color = (0.1, 0.1, 0.0, 0.5)

    def __init__(self, screen_width: int, screen_height: int) -> None:
        self.screen_width = screen_width
        self.screen_height = screen_height

    def ball_color(self, ball: Ball) -> ColorRGBA8:
        alpha = _to_ubyte(_clamp(ball.velocity.x * 100.0, 0.0, 255.0))
        return ColorRGBA8(
            128,
            _to_ubyte(ball.position.x / self.screen_width * 255.0),
            _to_ubyte(ball.position.y / self.screen_height * 255.0),
            alpha,
        )


class TrippyBallRenderer(BallRenderer):
    """Spiral colouring that changes over time."""

    clear_color = (0.0, 0.1, 0.1, 0.7)
    TIME_SPEED = 0.01
    DIVISOR = 4.0
    SPIRAL_INTENSITY = 10.0

    def __init__(self, screen_width: int, screen_height: int) -> None:
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.time = 0.0

    def render_balls(self, sprite_batch: SpriteBatch, balls: Sequence[Ball]) -> List[RenderBatch]:
        """Advance the animation time, then draw the balls."""
        self.time += self.TIME_SPEED
        return super().render_balls(sprite_batch, balls)

    def ball_color(self, ball: Ball) -> ColorRGBA8:
        centre = ball.position - Vec2(self.screen_width // 2, self.screen_height // 2)
        distance = centre.length()
        angle = math.atan2(centre.x, centre.y) / (3.1415926 / self.DIVISOR)
        angle -= self.time
        angle += distance / self.screen_width * self.SPIRAL_INTENSITY
        alpha = _clamp(1.0 - distance / (self.screen_width / 2.0), 0.0, 1.0) * 255.0
        return ColorRGBA8(
            _to_ubyte(angle * 255.0),
            _to_ubyte(angle * 255.0 * math.cos(self.time)),
            _to_ubyte(angle * 255.0 * math.sin(self.time)),
            _to_ubyte(alpha),
        )


def resolve_collision(b1: Ball, b2: Ball) -> None:
    """Separate two overlapping balls and exchange momentum along their centre line."""
    dist_vec = b2.position - b1.position
    dist_dir = dist_vec.normalized()
    dist = dist_vec.length()
    depth = b1.radius + b2.radius - dist
    if depth <= 0:
        return

    b1.position = b1.position - dist_dir * (depth * (b2.mass / b1.mass) * 0.5)
    b2.position = b2.position + dist_dir * (depth * (b1.mass / b2.mass) * 0.5)

    aci = b1.velocity.dot(dist_dir)
    bci = b2.velocity.dot(dist_dir)
    total_mass = b1.mass + b2.mass
    acf = (aci * (b1.mass - b2.mass) + 2 * b2.mass * bci) / total_mass
    bcf = (bci * (b2.mass - b1.mass) + 2 * b1.mass * aci) / total_mass

    b1.velocity = b1.velocity + (acf - aci) * dist_dir
    b2.velocity = b2.velocity + (bcf - bci) * dist_dir

    if (b1.velocity + b2.velocity).length() > 0.5:
        if b1.velocity.length() < b2.velocity.length():
            b2.color = b1.color
        else:
            b1.color = b2.color


def is_mouse_on_ball(ball: Ball, mouse_x: float, mouse_y: float) -> bool:
    """True if the point lies in the ball's bounding square."""
    return (
        ball.position.x - ball.radius <= mouse_x < ball.position.x + ball.radius
        and ball.position.y - ball.radius <= mouse_y < ball.position.y + ball.radius
    )


class BallController:
    """Moves balls, keeps them inside the area, resolves collisions and handles dragging."""

    def __init__(self) -> None:
        self.grabbed_ball: Optional[int] = None
        self.prev_pos = Vec2(0.0, 0.0)
        self.grab_offset = Vec2(0.0, 0.0)
        self.gravity_direction = GravityDirection.NONE

    def gravity_accel(self) -> Vec2:
        """Acceleration for the current gravity direction."""
        return {
            GravityDirection.DOWN: Vec2(0.0, -_GRAVITY_FORCE),
            GravityDirection.LEFT: Vec2(-_GRAVITY_FORCE, 0.0),
            GravityDirection.RIGHT: Vec2(_GRAVITY_FORCE, 0.0),
            GravityDirection.UP: Vec2(0.0, _GRAVITY_FORCE),
        }.get(self.gravity_direction, Vec2(0.0, 0.0))

    def update_balls(
        self, balls: List[Ball], grid: Grid, delta_time: float, max_x: int, max_y: int
    ) -> None:
        """Advance every ball by ``delta_time`` and resolve collisions."""
        if self.grabbed_ball is not None:
            grabbed = balls[self.grabbed_ball]
            grabbed.velocity = grabbed.position - self.prev_pos

        gravity = self.gravity_accel()
        for index, ball in enumerate(balls):
            if index != self.grabbed_ball:
                self._move(ball, gravity, delta_time)
            self._keep_inside(ball, max_x, max_y)

            new_cell = grid.cell_for(ball.position)
            if new_cell is not ball.owner_cell:
                grid.remove_ball_from_cell(ball)
                grid.add_ball(ball, new_cell)

        self._update_collisions(grid)

        if self.grabbed_ball is not None:
            grabbed = balls[self.grabbed_ball]
            grabbed.velocity = grabbed.position - self.prev_pos
            self.prev_pos = grabbed.position

    def on_mouse_down(self, balls: Sequence[Ball], mouse_x: float, mouse_y: float) -> None:
        """Grab the last ball under the cursor, if any."""
        for index, ball in enumerate(balls):
            if is_mouse_on_ball(ball, mouse_x, mouse_y):
                self.grabbed_ball = index
                self.grab_offset = Vec2(mouse_x, mouse_y) - ball.position
                self.prev_pos = ball.position
                ball.velocity = Vec2(0.0, 0.0)

    def on_mouse_up(self, balls: Sequence[Ball]) -> None:
        """Release the grabbed ball, throwing it with its last movement."""
        if self.grabbed_ball is not None:
            ball = balls[self.grabbed_ball]
            ball.velocity = ball.position - self.prev_pos
            self.grabbed_ball = None

    def on_mouse_move(self, balls: Sequence[Ball], mouse_x: float, mouse_y: float) -> None:
        """Drag the grabbed ball with the cursor."""
        if self.grabbed_ball is not None:
            balls[self.grabbed_ball].position = Vec2(mouse_x, mouse_y) - self.grab_offset

    @staticmethod
    def _move(ball: Ball, gravity: Vec2, delta_time: float) -> None:
        ball.position = ball.position + ball.velocity * delta_time
        momentum = ball.velocity * ball.mass
        if momentum.x != 0 or momentum.y != 0:
            if _FRICTION < momentum.length():
                ball.velocity = ball.velocity - (
                    delta_time * _FRICTION * momentum.normalized() / ball.mass
                )
            else:
                ball.velocity = Vec2(0.0, 0.0)
        ball.velocity = ball.velocity + gravity * delta_time

    @staticmethod
    def _keep_inside(ball: Ball, max_x: int, max_y: int) -> None:
        px, py = ball.position
        vx, vy = ball.velocity
        if px < ball.radius:
            px = ball.radius
            if vx < 0:
                vx = -vx
        elif px + ball.radius >= max_x:
            px = max_x - ball.radius - 1
            if vx > 0:
                vx = -vx
        if py < ball.radius:
            py = ball.radius
            if vy < 0:
                vy = -vy
        elif py + ball.radius >= max_y:
            py = max_y - ball.radius - 1
            if vy > 0:
                vy = -vy
        ball.position = Vec2(px, py)
        ball.velocity = Vec2(vx, vy)

    @staticmethod
    def _check_against(ball: Ball, others: Sequence[Ball]) -> None:
        for other in others:
            resolve_collision(ball, other)

    def _update_collisions(self, grid: Grid) -> None:
        for index, cell in enumerate(grid.cells):
            x = index % grid.num_x_cells
            y = index // grid.num_x_cells
            for j, ball in enumerate(cell.balls):
                self._check_against(ball, cell.balls[j + 1:])
                if x > 0:
                    self._check_against(ball, grid.cell_at(x - 1, y).balls)
                    if y > 0:
                        self._check_against(ball, grid.cell_at(x - 1, y - 1).balls)
                    if y < grid.num_y_cells - 1:
                        self._check_against(ball, grid.cell_at(x - 1, y + 1).balls)
                if y > 0:
                    self._check_against(ball, grid.cell_at(x, y - 1).balls)