import pytest

from ballpit.ball_controller import Ball
from ballpit.grid import Grid
from ballpit.vertex import Vec2


def make_ball(x, y):
    return Ball(radius=1.0, mass=1.0, position=Vec2(x, y), velocity=Vec2(0.0, 0.0))


def test_cell_count_matches_dimensions():
    grid = Grid(100, 50, 12)
    assert len(grid.cells) == grid.num_x_cells * grid.num_y_cells
    assert grid.num_x_cells * 12 >= 100
    assert (grid.num_x_cells - 1) * 12 < 100
    assert grid.num_y_cells * 12 >= 50
    assert (grid.num_y_cells - 1) * 12 < 50


def test_exact_division():
    grid = Grid(120, 60, 12)
    assert grid.num_x_cells == 10
    assert grid.num_y_cells == 5


def test_invalid_cell_size():
    with pytest.raises(ValueError):
        Grid(100, 100, 0)


def test_cell_at_clamps():
    grid = Grid(100, 50, 12)
    assert grid.cell_at(-3, -7) is grid.cells[0]
    assert grid.cell_at(1000, 1000) is grid.cells[-1]
    assert grid.cell_at(1, 0) is grid.cells[1]
    assert grid.cell_at(0, 1) is grid.cells[grid.num_x_cells]


def test_cell_for_position():
    grid = Grid(100, 50, 12)
    assert grid.cell_for(Vec2(25.0, 13.0)) is grid.cell_at(2, 1)
    assert grid.cell_for(Vec2(-5.0, -5.0)) is grid.cell_at(0, 0)
    assert grid.cell_for(Vec2(11.9, 0.0)) is grid.cell_at(0, 0)
    assert grid.cell_for(Vec2(500.0, 500.0)) is grid.cells[-1]


def test_add_ball_uses_position():
    grid = Grid(100, 50, 12)
    ball = make_ball(25.0, 13.0)
    grid.add_ball(ball)
    cell = grid.cell_at(2, 1)
    assert ball.owner_cell is cell
    assert cell.balls == [ball]
    assert ball.cell_vector_index == 0


def test_add_ball_to_given_cell():
    grid = Grid(100, 50, 12)
    first, second = make_ball(1.0, 1.0), make_ball(2.0, 2.0)
    target = grid.cell_at(3, 3)
    grid.add_ball(first, target)
    grid.add_ball(second, target)
    assert first.owner_cell is target and second.owner_cell is target
    assert [first.cell_vector_index, second.cell_vector_index] == [0, 1]


def test_remove_swaps_last_ball_into_place():
    grid = Grid(100, 50, 12)
    balls = [make_ball(1.0, 1.0) for _ in range(3)]
    for ball in balls:
        grid.add_ball(ball)
    cell = grid.cell_at(0, 0)
    grid.remove_ball_from_cell(balls[0])
    assert cell.balls == [balls[2], balls[1]]
    assert balls[2].cell_vector_index == 0
    assert balls[1].cell_vector_index == 1
    assert balls[0].owner_cell is None
    assert balls[0].cell_vector_index == -1


def test_remove_last_ball():
    grid = Grid(100, 50, 12)
    ball = make_ball(1.0, 1.0)
    grid.add_ball(ball)
    grid.remove_ball_from_cell(ball)
    assert grid.cell_at(0, 0).balls == []
    assert ball.owner_cell is None


def test_remove_unowned_ball_raises():
    grid = Grid(100, 50, 12)
    with pytest.raises(ValueError):
        grid.remove_ball_from_cell(make_ball(1.0, 1.0))