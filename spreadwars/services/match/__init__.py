"""Match domain services: grid, spreading, turn clock and match registry.

This package holds the pure game mechanics. HTTP routes and socket
handlers import from here and keep transport concerns out of it.
"""

from .grid import Cell, Grid, GridError, InvalidCellError, Position
from .match import Match, MatchState
from .registry import MatchNotFound, MatchRegistry, RegistryBusy

__all__ = [
    'Cell',
    'Grid',
    'GridError',
    'InvalidCellError',
    'Position',
    'Match',
    'MatchState',
    'MatchNotFound',
    'MatchRegistry',
    'RegistryBusy',
]
