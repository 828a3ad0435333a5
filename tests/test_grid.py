import pytest

from mazerace.grid import Grid, GridCell, Obstacle


def test_dimensions_use_ceiling_division():
    grid = Grid(10, 9, 4)
    assert (grid.grid_width, grid.grid_height) == (3, 3)
    assert len(grid.blocked) == 9


def test_out_of_bounds_is_blocked_and_invalid():
    grid = Grid(40, 40, 4)
    for x, y in [(-1, 0), (0, -1), (10, 0), (0, 10)]:
        assert grid.is_blocked(x, y)
        assert not grid.is_valid(x, y)
    assert grid.is_valid(0, 0)


def test_zero_size_world_has_no_valid_cells():
    grid = Grid(0, 0, 4)
    assert (grid.grid_width, grid.grid_height) == (0, 0)
    assert not grid.is_valid(0, 0)
    assert grid.neighbors((0, 0)) == []


def test_invalid_configuration_raises():
    with pytest.raises(ValueError):
        Grid(100, 100, 0)
    grid = Grid(100, 100, 4)
    with pytest.raises(ValueError):
        grid.set_cell_size(-2)
    with pytest.raises(ValueError):
        grid.resize(-1, 10)


def test_resize_and_cell_size_clear_the_grid():
    grid = Grid(100, 100, 4)
    grid.add_obstacle(1, 1, 3, 3)
    grid.set_cell_size(5)
    assert (grid.grid_width, grid.grid_height) == (20, 20)
    assert grid.blocked_count() == 0
    assert grid.obstacles == []


def test_add_obstacle_marks_cells_and_records_rectangle():
    grid = Grid(40, 40, 4)
    grid.add_obstacle(2, 3, 2, 2)
    assert grid.obstacles == [Obstacle(2, 3, 2, 2)]
    assert grid.blocked_count() == 4
    assert grid.is_blocked(3, 4)
    assert not grid.is_blocked(4, 4)


def test_fill_rect_clips_to_grid():
    grid = Grid(40, 40, 4)
    grid.fill_rect(-5, 8, 100, 100)
    assert grid.blocked_count() == 20
    assert grid.obstacles == []
    grid.fill_rect(0, 8, 10, 2, False)
    assert grid.blocked_count() == 0


def test_world_grid_conversion():
    grid = Grid(100, 100, 4)
    assert grid.world_to_grid(9.9, 4.0) == GridCell(2, 1)
    assert grid.grid_to_world(2, 1) == (10.0, 6.0)


def test_neighbor_order_on_open_grid():
    grid = Grid(40, 40, 4)
    assert grid.neighbors((5, 5)) == [
        (5, 4), (6, 5), (5, 6), (4, 5),
        (6, 4), (6, 6), (4, 6), (4, 4),
    ]
    assert grid.neighbors((5, 5), allow_diagonal=False) == [(5, 4), (6, 5), (5, 6), (4, 5)]


def test_neighbors_never_cut_corners():
    grid = Grid(40, 40, 4)
    grid.set_blocked(6, 5)
    result = grid.neighbors((5, 5))
    assert (6, 5) not in result
    assert (6, 4) not in result
    assert (6, 6) not in result
    assert (4, 4) in result


def test_corner_neighbors_stay_in_bounds():
    grid = Grid(40, 40, 4)
    assert sorted(grid.neighbors((0, 0))) == [(0, 1), (1, 0), (1, 1)]


def test_line_of_sight():
    grid = Grid(80, 80, 4)
    assert grid.line_of_sight((0, 0), (19, 10))
    grid.add_obstacle(10, 0, 1, 20)
    assert not grid.line_of_sight((0, 5), (19, 5))
    assert grid.line_of_sight((0, 5), (9, 15))
    assert not grid.line_of_sight((10, 3), (10, 3))


def test_copy_is_independent_and_restorable():
    grid = Grid(40, 40, 4)
    grid.add_obstacle(0, 0, 2, 2)
    snapshot = grid.copy()
    grid.clear_obstacles()
    grid.add_obstacle(5, 5, 1, 1)
    assert snapshot.blocked_count() == 4
    grid.restore(snapshot)
    assert grid.blocked == snapshot.blocked
    assert grid.obstacles == [Obstacle(0, 0, 2, 2)]


def test_index_is_row_major():
    grid = Grid(40, 20, 4)
    assert grid.index(0, 0) == 0
    assert grid.index(3, 2) == 2 * 10 + 3
    grid.set_blocked(3, 2)
    assert grid.blocked[grid.index(3, 2)]
    assert grid.blocked_count() == 1


def test_add_obstacle_rect_matches_add_obstacle():
    a = Grid(40, 40, 4)
    b = Grid(40, 40, 4)
    a.add_obstacle(1, 2, 3, 4)
    b.add_obstacle_rect(Obstacle(1, 2, 3, 4))
    assert a.blocked == b.blocked
    assert a.obstacles == b.obstacles
