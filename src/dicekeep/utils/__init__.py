"""Utility functions for the Dicekeep game server."""

from dicekeep.utils.grid import (
    GridCoord,
    are_adjacent,
    grid_neighbors,
    in_bounds,
    manhattan_distance,
)
from dicekeep.utils.rng import generate_seed, roll_dice, room_rng

__all__ = [
    "GridCoord",
    "are_adjacent",
    "generate_seed",
    "grid_neighbors",
    "in_bounds",
    "manhattan_distance",
    "roll_dice",
    "room_rng",
]
