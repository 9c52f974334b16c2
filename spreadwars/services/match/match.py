import enum
import logging
import threading
import time
from typing import Callable, Dict, Optional

from .grid import Cell, Grid, GridError, Position

logger = logging.getLogger(__name__)

DEFAULT_TURN_SECONDS = 2.0


class MatchState(enum.Enum):
    AWAITING_PLAYERS = 'awaiting_players'
    IN_PROGRESS = 'in_progress'
    FINISHED = 'finished'


class Match:
    """One game: a grid, two seats and a turn clock.

    Every public method runs as a single critical section on the match's
    own lock, so the elapsed-time check, the generation advance and claim
    acceptance never interleave between request threads.
    """

    def __init__(self, grid: Grid, match_id: int = 0, turn_seconds: float = DEFAULT_TURN_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.match_id = match_id
        self.grid = grid
        self.turn_seconds = float(turn_seconds)
        self.clock = clock
        self.red_connected = False
        self.blue_connected = False
        self.turn_owner = Cell.RED
        self.turn_start = clock()
        self.cell_claimed_this_turn = False
        self.generation = 0
        self.closed = False
        self.lock = threading.RLock()

    @property
    def state(self) -> MatchState:
        """Derived from seats and the board.

        FINISHED as soon as no empty cell is left, whether a generation or
        an accepted claim filled the last one.
        """
        if self.grid.is_finished():
            return MatchState.FINISHED
        if self.red_connected and self.blue_connected:
            return MatchState.IN_PROGRESS
        return MatchState.AWAITING_PLAYERS

    def is_full(self) -> bool:
        return self.red_connected and self.blue_connected

    def assign_seat(self) -> Optional[Cell]:
        """Hand out RED, then BLUE; None once both seats are taken."""
        with self.lock:
            if not self.red_connected:
                self.red_connected = True
                seat = Cell.RED
            elif not self.blue_connected:
                self.blue_connected = True
                seat = Cell.BLUE
                # Both players present: the turn clock starts now.
                self.turn_start = self.clock()
            else:
                return None
            logger.info(f"[seat] match={self.match_id} color={seat.value}")
            return seat

    def tick(self, now: Optional[float] = None) -> bool:
        """Run one generation if the current turn has outlived its duration.

        Only advances a match that is in progress. Returns True when a
        generation ran.
        """
        with self.lock:
            if self.state is not MatchState.IN_PROGRESS:
                return False
            now = self.clock() if now is None else now
            if now - self.turn_start <= self.turn_seconds:
                return False
            claimed = self.grid.step()
            self.generation += 1
            self.turn_start = now
            self.cell_claimed_this_turn = False
            self.turn_owner = Cell.BLUE if self.turn_owner is Cell.RED else Cell.RED
            logger.debug(
                f"[generation] match={self.match_id} gen={self.generation} claimed={claimed} "
                f"next={self.turn_owner.value} empty={self.grid.empty}"
            )
            if self.grid.is_finished():
                logger.info(f"[finish] match={self.match_id} red={self.grid.red} blue={self.grid.blue}")
            return True

    def attempt_claim(self, color: Cell, position: Position) -> bool:
        """Claim ``position`` for ``color`` if it is that color's turn.

        The turn's single claim is spent as soon as the owner asks, even if
        the target turns out to be taken or off the board. Out-of-turn and
        repeated attempts are dropped without error. Returns True when the
        grid changed.
        """
        if color not in (Cell.RED, Cell.BLUE):
            raise GridError(f"{color!r} cannot take a turn")
        with self.lock:
            if self.closed or color is not self.turn_owner or self.cell_claimed_this_turn:
                return False
            self.cell_claimed_this_turn = True
            claimed = self.grid.claim(color, position)
            logger.debug(f"[claim] match={self.match_id} color={color.value} pos={tuple(position)} ok={claimed}")
            return claimed

    def elapsed(self, now: Optional[float] = None) -> float:
        now = self.clock() if now is None else now
        return max(0.0, now - self.turn_start)

    def snapshot(self, now: Optional[float] = None) -> Grid:
        """Copy of the grid with ``timer`` set to the elapsed turn time."""
        with self.lock:
            grid = self.grid.copy()
            grid.timer = self.elapsed(now)
            return grid

    def to_dict(self, now: Optional[float] = None) -> Dict:
        with self.lock:
            payload = self.snapshot(now).to_dict()
            payload.update({
                'match_id': self.match_id,
                'state': self.state.value,
                'turn_owner': self.turn_owner.value,
                'generation': self.generation,
                'seats': {'red': self.red_connected, 'blue': self.blue_connected},
            })
            return payload
