import enum
import random
from typing import Dict, List, Optional, Tuple

Position = Tuple[int, int]  # (row, col)

DEFAULT_WIDTH = 32
DEFAULT_HEIGHT = 32

# up, down, left, right
_DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class GridError(Exception):
    """Raised for invalid grid construction or an invalid cell kind."""


class InvalidCellError(GridError):
    pass


class Cell(enum.Enum):
    EMPTY = 'empty'
    NEUTRAL = 'neutral'
    RED = 'red'
    BLUE = 'blue'

    @classmethod
    def from_color(cls, value: str) -> 'Cell':
        """Map a session color string ('red' / 'blue') onto a player cell."""
        try:
            cell = cls(str(value).lower())
        except ValueError:
            cell = None
        if cell not in (cls.RED, cls.BLUE):
            raise InvalidCellError(f"{value!r} is not a player color")
        return cell


class Grid:
    """Fixed-size board of cells that fills outward from claimed cells.

    Cells are stored row-major. Every claimed cell that still touches an
    empty neighbour sits in the frontier; ``step`` claims all empty
    neighbours of the frontier with the frontier cell's value, one layer
    per call.
    """

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT):
        if width <= 0 or height <= 0:
            raise GridError(f"grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.cells: List[Cell] = [Cell.EMPTY] * (width * height)
        self.frontier: List[Tuple[Cell, Position]] = []
        self.empty = width * height
        self.neutral = 0
        self.red = 0
        self.blue = 0
        self.finished = False
        self.timer = 0.0

    @classmethod
    def new_random(cls, neutral_count: int, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                   rng: Optional[random.Random] = None, max_rerolls: int = 8) -> 'Grid':
        """Build a grid with ``neutral_count`` neutral blocks at random positions.

        A collision is re-rolled up to ``max_rerolls`` times, after which the
        block is skipped, so the result may hold fewer neutral cells than
        requested. Neutral blocks never join the frontier.
        """
        grid = cls(width, height)
        size = width * height
        if neutral_count < 0 or neutral_count >= size:
            raise GridError(f"neutral_count must be in [0, {size}), got {neutral_count}")
        rng = rng or random.Random()
        for _ in range(neutral_count):
            for _attempt in range(max_rerolls + 1):
                idx = rng.randrange(size)
                if grid.cells[idx] is Cell.EMPTY:
                    grid.cells[idx] = Cell.NEUTRAL
                    grid.empty -= 1
                    grid.neutral += 1
                    break
        return grid

    # ---- geometry ----

    def in_bounds(self, position: Position) -> bool:
        row, col = position
        return 0 <= row < self.height and 0 <= col < self.width

    def index(self, position: Position) -> int:
        row, col = position
        return row * self.width + col

    def at(self, position: Position) -> Cell:
        if not self.in_bounds(position):
            raise GridError(f"position {position} is outside the {self.height}x{self.width} grid")
        return self.cells[self.index(position)]

    def neighbours(self, position: Position) -> List[Position]:
        row, col = position
        out = []
        for dr, dc in _DIRECTIONS:
            p = (row + dr, col + dc)
            if self.in_bounds(p):
                out.append(p)
        return out

    def _touches_empty(self, position: Position) -> bool:
        return any(self.cells[self.index(n)] is Cell.EMPTY for n in self.neighbours(position))

    # ---- mutation ----

    def _set(self, cell: Cell, position: Position) -> bool:
        if not isinstance(cell, Cell) or cell is Cell.EMPTY:
            raise InvalidCellError(f"cannot claim a cell as {cell!r}")
        if not self.in_bounds(position):
            return False
        idx = self.index(position)
        if self.cells[idx] is not Cell.EMPTY:
            return False
        self.cells[idx] = cell
        self.empty -= 1
        if cell is Cell.RED:
            self.red += 1
        elif cell is Cell.BLUE:
            self.blue += 1
        else:
            self.neutral += 1
        return True

    def claim(self, cell: Cell, position: Position) -> bool:
        """Set the empty cell at ``position`` to ``cell``.

        Returns False when the position is off the board or already taken.
        Claiming with ``Cell.EMPTY`` raises InvalidCellError.
        """
        position = (int(position[0]), int(position[1]))
        if not self._set(cell, position):
            return False
        if self._touches_empty(position):
            self.frontier.append((cell, position))
        self.finished = self.empty == 0
        return True

    def step(self) -> int:
        """Advance one generation and return how many cells were claimed.

        The frontier is walked in claim order and the first claim on a
        contested cell wins. Cells claimed here only spread on the next call.
        """
        if not self.frontier:
            return 0
        next_frontier: List[Tuple[Cell, Position]] = []
        claimed = 0
        for cell, position in self.frontier:
            for n in self.neighbours(position):
                if self._set(cell, n):
                    next_frontier.append((cell, n))
                    claimed += 1
        self.frontier = [(c, p) for c, p in next_frontier if self._touches_empty(p)]
        self.finished = self.empty == 0
        return claimed

    # ---- queries ----

    def cell_counts(self) -> Tuple[int, int, int, int]:
        return (self.empty, self.red, self.blue, self.neutral)

    def is_finished(self) -> bool:
        return self.empty == 0

    def copy(self) -> 'Grid':
        other = Grid.__new__(Grid)
        other.__dict__.update(self.__dict__)
        other.cells = list(self.cells)
        other.frontier = list(self.frontier)
        return other

    def to_dict(self) -> Dict:
        return {
            'width': self.width,
            'height': self.height,
            'cells': [c.value for c in self.cells],
            'n_empty': self.empty,
            'n_neutral': self.neutral,
            'n_red': self.red,
            'n_blue': self.blue,
            'finished': self.is_finished(),
            'timer': round(self.timer, 3),
        }
