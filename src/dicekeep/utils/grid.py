"""
Square grid mathematics for the Dicekeep map.

The map is a fixed ``size x size`` board of square tiles addressed by
``(x, y)`` with both axes in ``[0, size)``.

Adjacency is 4-directional: two tiles touch when their Manhattan distance is
exactly 1. Diagonal tiles do not touch, which is what makes roads the only way
to link two castles.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GridCoord:
    """
    A square tile coordinate.

    Attributes:
        x: Column, growing to the right
        y: Row, growing downwards

    Example:
        >>> origin = GridCoord(x=0, y=0)
        >>> manhattan_distance(origin, GridCoord(x=1, y=0))
        1
    """

    x: int
    y: int


def manhattan_distance(a: GridCoord, b: GridCoord) -> int:
    """
    Calculate the number of orthogonal steps between two tiles.

    Args:
        a: First tile
        b: Second tile

    Returns:
        ``|ax - bx| + |ay - by|``

    Example:
        >>> manhattan_distance(GridCoord(0, 0), GridCoord(2, 3))
        5
    """
    return abs(a.x - b.x) + abs(a.y - b.y)


def are_adjacent(a: GridCoord, b: GridCoord) -> bool:
    """
    Return True when the two tiles share an edge.

    Example:
        >>> are_adjacent(GridCoord(4, 4), GridCoord(4, 5))
        True
        >>> are_adjacent(GridCoord(4, 4), GridCoord(5, 5))
        False
    """
    return manhattan_distance(a, b) == 1


# North, east, south, west
_NEIGHBOR_DIRECTIONS: list[tuple[int, int]] = [
    (0, -1),
    (1, 0),
    (0, 1),
    (-1, 0),
]


def grid_neighbors(coord: GridCoord, size: int | None = None) -> list[GridCoord]:
    """
    Find the edge-sharing neighbors of a tile.

    Args:
        coord: The center tile
        size: When given, neighbors falling off a ``size x size`` board are
            dropped

    Returns:
        Up to four GridCoord objects

    Example:
        >>> len(grid_neighbors(GridCoord(0, 0), size=10))
        2
    """
    neighbors = []
    for dx, dy in _NEIGHBOR_DIRECTIONS:
        neighbor = GridCoord(x=coord.x + dx, y=coord.y + dy)
        if size is None or in_bounds(neighbor, size):
            neighbors.append(neighbor)
    return neighbors


def in_bounds(coord: GridCoord, size: int) -> bool:
    """
    Check that a tile lies on a ``size x size`` board.

    Raises:
        ValueError: If size is not positive
    """
    if size <= 0:
        msg = f"Board size must be positive, got {size}"
        raise ValueError(msg)
    return 0 <= coord.x < size and 0 <= coord.y < size
