"""Dice rolling for Dicekeep rooms.

Each room owns its own :class:`random.Random` instance. By default it is
seeded from system entropy; when a base seed is configured the generator is
derived from ``"base_seed:room_code"`` so that a whole game can be replayed
for bug reports and tests.

Examples:
    >>> rng = room_rng("ABC123", base_seed=7)
    >>> result = roll_dice(rng, "2d6")
    >>> len(result["rolls"])
    2
    >>> result["total"] == sum(result["rolls"])
    True
"""

import hashlib
import random
import re
from typing import Any


def generate_seed(base_seed: int, room_code: str) -> str:
    """Generate the seed string for a room.

    Format: "base_seed:room_code"

    Raises:
        ValueError: If base_seed is negative
    """
    if base_seed < 0:
        raise ValueError(f"base_seed must be non-negative, got {base_seed}")

    return f"{base_seed}:{room_code}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


def room_rng(room_code: str, base_seed: int | None = None) -> random.Random:
    """Build the dice generator for a room.

    Args:
        room_code: Normalized room code
        base_seed: Optional configured seed; None means system randomness

    Returns:
        A dedicated random.Random instance
    """
    if base_seed is None:
        return random.Random()
    return random.Random(_seed_to_int(generate_seed(base_seed, room_code)))


def _parse_dice_notation(notation: str) -> tuple[int, int]:
    """Parse dice notation like '2d6' into (num_dice, num_sides).

    Raises:
        ValueError: If notation is invalid or values are non-positive

    Examples:
        >>> _parse_dice_notation("3d6")
        (3, 6)
    """
    match = re.match(r"^(\d+)d(\d+)$", notation.lower())
    if not match:
        raise ValueError(
            f"Invalid dice notation: '{notation}'. Expected format: NdM (e.g., '2d6', '3d6')"
        )

    num_dice = int(match.group(1))
    num_sides = int(match.group(2))

    if num_dice <= 0:
        raise ValueError(f"Number of dice must be positive, got {num_dice}")
    if num_sides <= 0:
        raise ValueError(f"Number of sides must be positive, got {num_sides}")

    return num_dice, num_sides


def roll_dice(rng: random.Random, notation: str = "2d6") -> dict[str, Any]:
    """Roll dice with the given generator.

    Args:
        rng: Generator owned by the room
        notation: Dice notation (e.g., "2d6", "3d6")

    Returns:
        Dictionary containing:
            - notation: The dice notation used
            - rolls: List of individual die rolls
            - total: Sum of all rolls
            - max: Highest single die

    Raises:
        ValueError: If dice notation is invalid
    """
    num_dice, num_sides = _parse_dice_notation(notation)

    rolls = [rng.randint(1, num_sides) for _ in range(num_dice)]

    return {
        "notation": notation,
        "rolls": rolls,
        "total": sum(rolls),
        "max": max(rolls),
    }
