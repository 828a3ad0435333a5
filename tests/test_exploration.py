from mazerace.exploration import ExplorationArena
from mazerace.grid import Grid, GridCell
from mazerace.solvers import Algorithm


def corridor():
    #5x1 cells
    return Grid(20, 4, 4)


def claim_all(arena, algorithm, grid, limit=1000):
    claimed = []
    for _ in range(limit):
        arena.begin_tick()
        cell = arena.claim(algorithm, grid)
        if cell is None:
            break
        claimed.append(cell)
    return claimed


def test_claims_are_rate_limited_per_tick():
    grid = Grid(40, 40, 4)
    arena = ExplorationArena(max_claims_per_frame=2)
    arena.seed(Algorithm.DIJKSTRA, GridCell(0, 0), GridCell(9, 9))
    assert arena.claim(Algorithm.DIJKSTRA, grid) is not None
    assert arena.claim(Algorithm.DIJKSTRA, grid) is not None
    assert arena.claim(Algorithm.DIJKSTRA, grid) is None
    arena.begin_tick()
    assert arena.claim(Algorithm.DIJKSTRA, grid) is not None


def test_breadth_first_wave_reaches_goal():
    grid = corridor()
    arena = ExplorationArena()
    arena.seed(Algorithm.DIJKSTRA, GridCell(0, 0), GridCell(4, 0))
    claimed = claim_all(arena, Algorithm.DIJKSTRA, grid)
    state = arena.state_for(Algorithm.DIJKSTRA)
    assert claimed == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]
    assert state.found_goal
    assert state.path_to(GridCell(4, 0)) == [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)]
    assert state.path_to(GridCell(9, 9)) == []


def test_dfs_wave_takes_newest_cell_first():
    grid = Grid(40, 40, 4)
    arena = ExplorationArena()
    arena.seed(Algorithm.DFS, GridCell(5, 5), GridCell(0, 0))
    arena.seed(Algorithm.DIJKSTRA, GridCell(5, 5), GridCell(0, 0))
    for algorithm in (Algorithm.DFS, Algorithm.DIJKSTRA):
        arena.begin_tick()
        arena.claim(algorithm, grid)
    arena.begin_tick()
    #neighbors go in N, E, S, W, NE, SE, SW, NW
    assert arena.claim(Algorithm.DFS, grid) == (4, 4)
    assert arena.claim(Algorithm.DIJKSTRA, grid) == (5, 4)


def test_lanes_keep_separate_state():
    grid = corridor()
    arena = ExplorationArena()
    arena.seed(Algorithm.DFS, GridCell(0, 0), GridCell(4, 0))
    arena.seed(Algorithm.DIJKSTRA, GridCell(0, 0), GridCell(4, 0))
    claim_all(arena, Algorithm.DIJKSTRA, grid)
    assert arena.state_for(Algorithm.DIJKSTRA).found_goal
    assert not arena.state_for(Algorithm.DFS).found_goal
    assert set(arena.states()) == {Algorithm.DFS, Algorithm.DIJKSTRA}


def test_claim_stops_after_goal_and_on_empty_frontier():
    grid = corridor()
    arena = ExplorationArena()
    arena.seed(Algorithm.DIJKSTRA, GridCell(0, 0), GridCell(4, 0))
    claim_all(arena, Algorithm.DIJKSTRA, grid)
    arena.begin_tick()
    assert arena.claim(Algorithm.DIJKSTRA, grid) is None
    #unseeded lane has nothing to claim
    assert arena.claim(Algorithm.DFS, grid) is None


def test_seed_on_goal_is_already_found():
    arena = ExplorationArena()
    arena.seed(Algorithm.DFS, GridCell(2, 0), GridCell(2, 0))
    assert arena.state_for(Algorithm.DFS).found_goal


def test_bidirectional_waves_meet_in_the_middle():
    grid = corridor()
    arena = ExplorationArena(max_claims_per_frame=10)
    arena.seed_bidirectional(GridCell(0, 0), GridCell(4, 0))
    state = arena.bidirectional
    assert state.seeded
    assert not state.waves_met

    forward = True
    for _ in range(10):
        arena.begin_tick()
        arena.claim_bidirectional(grid, forward)
        forward = not forward
        if state.waves_met:
            break
    assert state.waves_met
    assert state.meeting_point == (2, 0)
    arena.begin_tick()
    assert arena.claim_bidirectional(grid, True) is None


def test_bidirectional_waves_each_get_a_claim_per_tick():
    grid = Grid(40, 40, 4)
    arena = ExplorationArena(max_claims_per_frame=1)
    arena.seed_bidirectional(GridCell(0, 0), GridCell(9, 9))
    state = arena.bidirectional
    arena.begin_tick()
    assert arena.claim_bidirectional(grid, True) == (0, 0)
    assert arena.claim_bidirectional(grid, True) is None
    assert arena.claim_bidirectional(grid, False) == (9, 9)
    assert arena.claim_bidirectional(grid, False) is None
    assert len(state.forward_visited) > 1
    assert len(state.backward_visited) > 1

    arena.begin_tick()
    assert arena.claim_bidirectional(grid, True) is not None
    assert arena.claim_bidirectional(grid, False) is not None


def test_bidirectional_waves_meet_with_default_limit():
    grid = Grid(80, 4, 4)
    arena = ExplorationArena()
    arena.seed_bidirectional(GridCell(0, 0), GridCell(19, 0))
    state = arena.bidirectional
    #forward agents claim first every tick, the backward wave still advances
    for _ in range(20):
        arena.begin_tick()
        arena.claim_bidirectional(grid, True)
        arena.claim_bidirectional(grid, True)
        arena.claim_bidirectional(grid, False)
        if state.waves_met:
            break
    assert state.waves_met
    assert 8 <= state.meeting_point.x <= 11


def test_clear_resets_everything():
    grid = corridor()
    arena = ExplorationArena()
    arena.seed(Algorithm.DIJKSTRA, GridCell(0, 0), GridCell(4, 0))
    arena.seed_bidirectional(GridCell(0, 0), GridCell(4, 0))
    claim_all(arena, Algorithm.DIJKSTRA, grid)
    arena.clear()
    assert arena.states() == {}
    assert not arena.bidirectional.seeded
    assert not arena.state_for(Algorithm.DIJKSTRA).found_goal
