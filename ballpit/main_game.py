"""The ball pit game: a thousand balls bouncing, colliding and being thrown around."""

from __future__ import annotations

import argparse
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

import pygame

from ballpit.ball_controller import (
    Ball,
    BallController,
    BallRenderer,
    GravityDirection,
    MomentumBallRenderer,
    TrippyBallRenderer,
    VelocityBallRenderer,
)
from ballpit.grid import Grid
from ballpit.input import InputManager
from ballpit.resources import SCREEN_HEIGHT, SCREEN_WIDTH, Images, get_texture
from ballpit.spritebatch import SpriteBatch
from ballpit.timing import FpsLimiter
from ballpit.vertex import ColorRGBA8, Vec2
from ballpit.window import MainWindow

CELL_SIZE = 12
NUM_BALLS = 1000
DESIRED_FPS = 60.0
MAX_PHYSICS_STEPS = 6
MS_PER_SECOND = 1000.0
DESIRED_FRAMETIME = MS_PER_SECOND / DESIRED_FPS
MAX_DELTA_TIME = 1.0

_GRAVITY_KEYS = (
    (pygame.K_LEFT, GravityDirection.LEFT),
    (pygame.K_RIGHT, GravityDirection.RIGHT),
    (pygame.K_UP, GravityDirection.UP),
    (pygame.K_DOWN, GravityDirection.DOWN),
    (pygame.K_SPACE, GravityDirection.NONE),
)


class GameState(Enum):
    RUNNING = "running"
    EXIT = "exit"


@dataclass
class BallSpawn:
    """A kind of ball that may be spawned; ``probability`` is its cumulative weight."""

    color: ColorRGBA8
    radius: float
    mass: float
    min_speed: float
    max_speed: float
    probability: float


def _blend(background: Tuple[int, int, int], color: ColorRGBA8) -> Tuple[int, int, int]:
    alpha = color.a / 255.0
    return tuple(
        int(bg + (fg - bg) * alpha)
        for bg, fg in zip(background, (color.r, color.g, color.b))
    )


class MainGame:
    """Owns the balls, their grid, the renderers and the main loop."""

    def __init__(self, screen_width: int = SCREEN_WIDTH, screen_height: int = SCREEN_HEIGHT) -> None:
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.balls: List[Ball] = []
        self.grid: Optional[Grid] = None
        self.current_renderer = 0
        self.renderers: List[BallRenderer] = [
            BallRenderer(),
            MomentumBallRenderer(),
            VelocityBallRenderer(screen_width, screen_height),
            TrippyBallRenderer(screen_width, screen_height),
        ]
        self.controller = BallController()
        self.window = MainWindow()
        self.sprite_batch = SpriteBatch()
        self.input = InputManager()
        self.fps = 0.0
        self.state = GameState.RUNNING
        self.texture_id = 0
        self.event_source: Callable[[], Iterable[Any]] = pygame.event.get

    def init_balls(self, rng: Optional[random.Random] = None) -> None:
        """Create the grid and spawn NUM_BALLS balls at random places."""
        if rng is None:
            rng = random.Random(int(time.time()))
        self.grid = Grid(self.screen_width, self.screen_height, CELL_SIZE)

        total = 1.0
        spawns = [BallSpawn(ColorRGBA8(255, 255, 255, 255), 30.0, 4.0, 0.0, 0.0, total)]
        for _ in range(NUM_BALLS):
            total += 1.0
            color = ColorRGBA8(rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255), 255)
            radius = rng.uniform(2.0, 8.0)
            mass = rng.uniform(2.0, 8.0)
            spawns.append(BallSpawn(color, radius, mass, 0.0, 0.0, total))

        self.balls = []
        spawn = spawns[0]
        for _ in range(NUM_BALLS):
            roll = rng.uniform(0.0, total)
            spawn = next((s for s in spawns if roll <= s.probability), spawn)

            position = Vec2(rng.uniform(0.0, self.screen_width), rng.uniform(0.0, self.screen_height))
            direction = Vec2(rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0))
            if direction.x != 0.0 or direction.y != 0.0:
                direction = direction.normalized()
            else:
                direction = Vec2(1.0, 0.0)
            speed = rng.uniform(spawn.min_speed, spawn.max_speed)

            ball = Ball(
                spawn.radius, spawn.mass, position, direction * speed,
                self.texture_id, spawn.color,
            )
            self.balls.append(ball)
            self.grid.add_ball(ball)

    def update(self, delta_time: float) -> None:
        """Advance the simulation by one physics step."""
        if self.grid is None:
            raise RuntimeError("init_balls must be called before update")
        self.controller.update_balls(
            self.balls, self.grid, delta_time, self.screen_width, self.screen_height
        )

    def process_input(self) -> None:
        """Handle pending events, then gravity, renderer and quit keys."""
        self.input.update()
        for event in self.event_source():
            self._handle_event(event)

        if self.input.is_key_pressed(pygame.K_ESCAPE):
            self.state = GameState.EXIT
        for key, direction in _GRAVITY_KEYS:
            if self.input.is_key_pressed(key):
                self.controller.gravity_direction = direction
                break
        if self.input.is_key_pressed(pygame.K_1):
            self.current_renderer = (self.current_renderer + 1) % len(self.renderers)

    def _handle_event(self, event: Any) -> None:
        if event.type == pygame.QUIT:
            self.state = GameState.EXIT
        elif event.type == pygame.MOUSEMOTION:
            x, y = event.pos
            self.controller.on_mouse_move(self.balls, float(x), float(self.screen_height - y))
            self.input.set_mouse_coords(x, y)
        elif event.type == pygame.KEYDOWN:
            self.input.press_key(event.key)
        elif event.type == pygame.KEYUP:
            self.input.release_key(event.key)
        elif event.type == pygame.MOUSEBUTTONDOWN:
            x, y = event.pos
            self.controller.on_mouse_down(self.balls, float(x), float(self.screen_height - y))
            self.input.press_key(event.button)
        elif event.type == pygame.MOUSEBUTTONUP:
            self.controller.on_mouse_up(self.balls)
            self.input.release_key(event.button)

    def _draw(self) -> None:
        surface = self.window.surface
        renderer = self.renderers[self.current_renderer]
        background = tuple(int(c * 255) for c in renderer.clear_color[:3])
        surface.fill(background)
        renderer.render_balls(self.sprite_batch, self.balls)
        for ball in self.balls:
            color = _blend(background, renderer.ball_color(ball))
            centre = (ball.position.x, self.screen_height - ball.position.y)
            pygame.draw.circle(surface, color, centre, ball.radius)
        self.window.swap_buffer()

    def run(self) -> None:
        """Open the window and run the game until it is closed."""
        pygame.init()
        try:
            self.window.create("Ball Game", self.screen_width, self.screen_height, 0)
            self.texture_id = get_texture(Images.CIRCLE).id
            self.init_balls()
            limiter = FpsLimiter(DESIRED_FPS, ticks=pygame.time.get_ticks, delay=pygame.time.delay)
            previous = pygame.time.get_ticks()
            while self.state is GameState.RUNNING:
                limiter.begin()
                self.process_input()

                now = pygame.time.get_ticks()
                total_delta = (now - previous) / DESIRED_FRAMETIME
                previous = now
                steps = 0
                while total_delta > 0.0 and steps < MAX_PHYSICS_STEPS:
                    delta = min(total_delta, MAX_DELTA_TIME)
                    self.update(delta)
                    total_delta -= delta
                    steps += 1

                self._draw()
                self.fps = limiter.end()
        finally:
            pygame.quit()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="ballpit", description="Bouncing ball simulation.")
    parser.parse_args(argv)
    print("Game Engine - Ball Game")
    MainGame().run()
    print("Good Bye!")
    return 0