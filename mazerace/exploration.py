#Shared exploration state for the blind-search lanes of a race
#Many agents expand one frontier together, a per-tick claim limit keeps the wave visible
#Every mutation goes through ExplorationArena.claim / claim_bidirectional under the state's lock

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Set

from .grid import Grid, GridCell
from .solvers import Algorithm

log = logging.getLogger(__name__)


@dataclass
class SharedExplorationState:
    frontier: Deque[GridCell] = field(default_factory=deque)
    visited: Set[GridCell] = field(default_factory=set)
    parents: Dict[GridCell, GridCell] = field(default_factory=dict)
    found_goal: bool = False
    goal_cell: Optional[GridCell] = None
    claims_this_frame: int = 0
    max_claims_per_frame: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def clear(self) -> None:
        self.frontier.clear()
        self.visited.clear()
        self.parents.clear()
        self.found_goal = False
        self.goal_cell = None
        self.claims_this_frame = 0

    def reset_frame_claims(self) -> None:
        self.claims_this_frame = 0

    def can_claim_cell(self) -> bool:
        if self.claims_this_frame < self.max_claims_per_frame:
            self.claims_this_frame += 1
            return True
        return False

    @property
    def seeded(self) -> bool:
        return bool(self.parents)

    def path_to(self, cell: GridCell) -> List[GridCell]:
        if cell not in self.parents:
            return []
        path = [cell]
        while self.parents[path[-1]] != path[-1]:
            path.append(self.parents[path[-1]])
        path.reverse()
        return path


@dataclass
class BidirectionalState:
    #Forward wave grows from the start, backward wave from the goal
    forward_visited: Set[GridCell] = field(default_factory=set)
    backward_visited: Set[GridCell] = field(default_factory=set)
    forward_frontier: Deque[GridCell] = field(default_factory=deque)
    backward_frontier: Deque[GridCell] = field(default_factory=deque)
    waves_met: bool = False
    meeting_point: Optional[GridCell] = None
    #each wave has its own per-tick budget
    forward_claims: int = 0
    backward_claims: int = 0
    max_claims_per_frame: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def clear(self) -> None:
        self.forward_visited.clear()
        self.backward_visited.clear()
        self.forward_frontier.clear()
        self.backward_frontier.clear()
        self.waves_met = False
        self.meeting_point = None
        self.reset_frame_claims()

    def reset_frame_claims(self) -> None:
        self.forward_claims = 0
        self.backward_claims = 0

    def can_claim_cell(self, forward: bool) -> bool:
        if forward:
            if self.forward_claims < self.max_claims_per_frame:
                self.forward_claims += 1
                return True
        elif self.backward_claims < self.max_claims_per_frame:
            self.backward_claims += 1
            return True
        return False

    def check_meeting(self, cell: GridCell, forward: bool) -> bool:
        if self.waves_met:
            return True
        other = self.backward_visited if forward else self.forward_visited
        if cell in other:
            self.waves_met = True
            self.meeting_point = cell
            return True
        return False

    def mark_visited(self, cell: GridCell, forward: bool) -> None:
        if forward:
            self.forward_visited.add(cell)
        else:
            self.backward_visited.add(cell)

    @property
    def seeded(self) -> bool:
        return bool(self.forward_visited) and bool(self.backward_visited)


class ExplorationArena:
    #Owns one SharedExplorationState per explorer algorithm plus the bidirectional waves

    def __init__(self, max_claims_per_frame: int = 1):
        self.max_claims_per_frame = max_claims_per_frame
        self._states: Dict[Algorithm, SharedExplorationState] = {}
        self.bidirectional = BidirectionalState(max_claims_per_frame=max_claims_per_frame)

    def state_for(self, algorithm: Algorithm) -> SharedExplorationState:
        state = self._states.get(algorithm)
        if state is None:
            state = SharedExplorationState(max_claims_per_frame=self.max_claims_per_frame)
            self._states[algorithm] = state
        return state

    def states(self) -> Dict[Algorithm, SharedExplorationState]:
        return dict(self._states)

    def seed(self, algorithm: Algorithm, start: GridCell, goal: GridCell) -> None:
        state = self.state_for(algorithm)
        with state.lock:
            state.clear()
            state.goal_cell = goal
            state.frontier.append(start)
            state.visited.add(start)
            state.parents[start] = start
            state.found_goal = start == goal

    def seed_bidirectional(self, start: GridCell, goal: GridCell) -> None:
        state = self.bidirectional
        with state.lock:
            state.clear()
            state.forward_frontier.append(start)
            state.backward_frontier.append(goal)
            state.mark_visited(start, True)
            state.mark_visited(goal, False)
            state.check_meeting(start, True)

    def begin_tick(self) -> None:
        #exactly once per simulation tick, before any agent claims
        for state in self._states.values():
            with state.lock:
                state.reset_frame_claims()
        with self.bidirectional.lock:
            self.bidirectional.reset_frame_claims()

    def claim(self, algorithm: Algorithm, grid: Grid) -> Optional[GridCell]:
        #Expands one frontier cell for the lane, DFS pops newest first, the rest oldest first
        state = self.state_for(algorithm)
        with state.lock:
            if state.found_goal or not state.frontier:
                return None
            if not state.can_claim_cell():
                return None
            if algorithm is Algorithm.DFS:
                cell = state.frontier.pop()
            else:
                cell = state.frontier.popleft()
            if cell == state.goal_cell:
                state.found_goal = True
                log.debug("%s wave reached goal %s", algorithm.value, cell)
                return cell
            for nxt in grid.neighbors(cell):
                if nxt in state.visited:
                    continue
                state.visited.add(nxt)
                state.parents[nxt] = cell
                state.frontier.append(nxt)
            return cell

    def claim_bidirectional(self, grid: Grid, forward: bool) -> Optional[GridCell]:
        state = self.bidirectional
        with state.lock:
            frontier = state.forward_frontier if forward else state.backward_frontier
            if state.waves_met or not frontier:
                return None
            if not state.can_claim_cell(forward):
                return None
            cell = frontier.popleft()
            own = state.forward_visited if forward else state.backward_visited
            for nxt in grid.neighbors(cell):
                if nxt in own:
                    continue
                state.mark_visited(nxt, forward)
                if state.check_meeting(nxt, forward):
                    log.debug("bidirectional waves met at %s", nxt)
                    break
                frontier.append(nxt)
            return cell

    def clear(self) -> None:
        for state in self._states.values():
            with state.lock:
                state.clear()
        self._states.clear()
        with self.bidirectional.lock:
            self.bidirectional.clear()
