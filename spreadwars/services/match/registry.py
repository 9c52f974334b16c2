import logging
import random
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .grid import DEFAULT_HEIGHT, DEFAULT_WIDTH, Cell, Grid
from .match import DEFAULT_TURN_SECONDS, Match

logger = logging.getLogger(__name__)

DEFAULT_NEUTRAL_CELLS = 50
DEFAULT_LOCK_TIMEOUT = 1.0


class MatchNotFound(KeyError):
    """No live match under the requested id (never created or torn down)."""


class RegistryBusy(RuntimeError):
    """A registry or match lock could not be acquired in time."""


class MatchRegistry:
    """Process-wide collection of matches keyed by an integer id.

    Exactly one match is open for seat assignment at a time. Once it fills
    up the cursor moves to a freshly generated match; full matches stay
    reachable by id for their two players until removed.

    The id map and the cursor share one lock that is held only for the
    duration of a single operation. Each match carries its own lock, so
    separate matches never contend.
    """

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                 neutral_cells: int = DEFAULT_NEUTRAL_CELLS, turn_seconds: float = DEFAULT_TURN_SECONDS,
                 lock_timeout: float = DEFAULT_LOCK_TIMEOUT, rng: Optional[random.Random] = None,
                 grid_factory: Optional[Callable[[], Grid]] = None):
        self.width = width
        self.height = height
        self.neutral_cells = neutral_cells
        self.turn_seconds = turn_seconds
        self.lock_timeout = lock_timeout
        self.rng = rng or random.Random()
        self.grid_factory = grid_factory
        self._lock = threading.Lock()
        self._matches: Dict[int, Match] = {}
        self._next_id = 0
        self._open_id = 0
        self.reset()

    def init_app(self, app) -> None:
        """Reconfigure from a Flask app's config and start from a clean slate."""
        cfg = app.config
        self.width = int(cfg.get('GRID_WIDTH', DEFAULT_WIDTH))
        self.height = int(cfg.get('GRID_HEIGHT', DEFAULT_HEIGHT))
        self.neutral_cells = int(cfg.get('NEUTRAL_CELLS', DEFAULT_NEUTRAL_CELLS))
        self.turn_seconds = float(cfg.get('TURN_DURATION_SEC', DEFAULT_TURN_SECONDS))
        self.lock_timeout = float(cfg.get('LOCK_TIMEOUT_SEC', DEFAULT_LOCK_TIMEOUT))
        self.reset()
        app.extensions['match_registry'] = self

    @contextmanager
    def _registry_lock(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise RegistryBusy('match registry is busy')
        try:
            yield
        finally:
            self._lock.release()

    def _new_grid(self) -> Grid:
        if self.grid_factory is not None:
            return self.grid_factory()
        return Grid.new_random(self.neutral_cells, self.width, self.height, rng=self.rng)

    def _create_locked(self) -> Match:
        match_id = self._next_id
        self._next_id += 1
        match = Match(self._new_grid(), match_id=match_id, turn_seconds=self.turn_seconds)
        self._matches[match_id] = match
        self._open_id = match_id
        logger.info(f"[match-new] match={match_id} neutral={match.grid.neutral}")
        return match

    def reset(self) -> None:
        """Drop every match and seed a single open one."""
        with self._registry_lock():
            for match in self._matches.values():
                match.closed = True
            self._matches = {}
            self._next_id = 0
            self._create_locked()

    @property
    def open_match_id(self) -> int:
        return self._open_id

    def assign_seat(self) -> Tuple[int, Cell]:
        """Seat a new player on the open match, opening another if it is full.

        Returns ``(match_id, color)``.
        """
        with self._registry_lock():
            match = self._matches.get(self._open_id)
            if match is None or match.closed:
                match = self._create_locked()
            color = match.assign_seat()
            if color is None:
                match = self._create_locked()
                color = match.assign_seat()
            return match.match_id, color

    def get(self, match_id: int) -> Match:
        with self._registry_lock():
            match = self._matches.get(int(match_id))
        if match is None:
            raise MatchNotFound(match_id)
        return match

    @contextmanager
    def locked(self, match_id: int) -> Iterator[Match]:
        """Yield the match with its lock held for one operation."""
        match = self.get(match_id)
        if not match.lock.acquire(timeout=self.lock_timeout):
            raise RegistryBusy(f'match {match_id} is busy')
        try:
            if match.closed:
                raise MatchNotFound(match_id)
            yield match
        finally:
            match.lock.release()

    def remove(self, match_id: int) -> bool:
        """Tear a match down for good. Returns False if it was already gone."""
        with self._registry_lock():
            match = self._matches.pop(int(match_id), None)
            if match is None:
                return False
            # Holders of the match lock finish their operation; later
            # lookups and lock acquisitions see the match as gone.
            match.closed = True
            if match.match_id == self._open_id:
                self._create_locked()
        logger.info(f"[teardown] match={match_id}")
        return True

    def ids(self) -> List[int]:
        with self._registry_lock():
            return sorted(self._matches)

    def __len__(self) -> int:
        with self._registry_lock():
            return len(self._matches)

    def __contains__(self, match_id) -> bool:
        with self._registry_lock():
            return match_id in self._matches
