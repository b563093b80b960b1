"""Uniform spatial grid for bucketing balls by position."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from ballpit.vertex import Vec2

if TYPE_CHECKING:
    from ballpit.ball_controller import Ball

_BALLS_TO_RESERVE = 20


@dataclass(eq=False)
class Cell:
    """One grid square and the balls currently inside it."""

    balls: List["Ball"] = field(default_factory=list)


class Grid:
    """Splits a width x height area into square cells of ``cell_size``."""

    def __init__(self, width: int, height: int, cell_size: int) -> None:
        if cell_size <= 0:
            raise ValueError("cell size must be positive")
        self.width = width
        self.height = height
        self.cell_size = cell_size
        self.num_x_cells = math.ceil(width / cell_size)
        self.num_y_cells = math.ceil(height / cell_size)
        self.cells: List[Cell] = [
            Cell() for _ in range(self.num_x_cells * self.num_y_cells)
        ]

    def add_ball(self, ball: "Ball", cell: Optional[Cell] = None) -> None:
        """Put a ball into ``cell``, or into the cell under its position."""
        if cell is None:
            cell = self.cell_for(ball.position)
        cell.balls.append(ball)
        ball.owner_cell = cell
        ball.cell_vector_index = len(cell.balls) - 1

    def cell_at(self, x: int, y: int) -> Cell:
        """The cell at grid coordinates, clamped to the grid."""
        x = min(max(x, 0), self.num_x_cells - 1)
        y = min(max(y, 0), self.num_y_cells - 1)
        return self.cells[y * self.num_x_cells + x]

    def cell_for(self, position: Vec2) -> Cell:
        """The cell containing a world position, clamped to the grid."""
        return self.cell_at(
            int(position.x / self.cell_size), int(position.y / self.cell_size)
        )

    def remove_ball_from_cell(self, ball: "Ball") -> None:
        """Take a ball out of its owning cell by swapping in the cell's last ball."""
        if ball.owner_cell is None:
            raise ValueError("ball is not in any cell")
        balls = ball.owner_cell.balls
        index = ball.cell_vector_index
        balls[index] = balls[-1]
        balls.pop()
        if index < len(balls):
            balls[index].cell_vector_index = index
        ball.cell_vector_index = -1
        ball.owner_cell = None