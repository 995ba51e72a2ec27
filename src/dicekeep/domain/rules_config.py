"""Declarative rule configuration for the game domain."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dicekeep.domain.enums import BuildingType

if TYPE_CHECKING:
    from dicekeep.config import Settings


@dataclass(frozen=True, slots=True)
class BuildingSpec:
    """Catalog entry for a purchasable building."""

    type: BuildingType
    name: str
    icon: str
    wood: int
    stone: int
    bricks: int
    points: int
    attackable: bool = False


DEFAULT_CATALOG: dict[BuildingType, BuildingSpec] = {
    BuildingType.CASTLE: BuildingSpec(
        type=BuildingType.CASTLE,
        name="Castle",
        icon="🏰",
        wood=200,
        stone=150,
        bricks=100,
        points=30,
        attackable=True,
    ),
    BuildingType.ROAD: BuildingSpec(
        type=BuildingType.ROAD,
        name="Road",
        icon="🛣️",
        wood=50,
        stone=30,
        bricks=20,
        points=0,
    ),
}


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Dice economy constants."""

    die_sides: int = 6
    wood_per_pip: int = 10
    stone_per_pip: int = 5
    bricks_per_pip: int = 2
    double_sixes_bonus: float = 3.0
    doubles_bonus: float = 2.0
    high_roll_threshold: int = 10
    high_roll_bonus: float = 1.5
    low_roll_threshold: int = 4
    low_roll_bonus: float = 0.8
    resource_cap: int = 100
    starting_wood: int = 1000
    starting_stone: int = 1000
    starting_bricks: int = 1000


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Attack dice pools and timing."""

    attacker_dice: str = "3d6"
    defender_dice: str = "2d6"
    resolution_delay_seconds: float = 2.0


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    win_points: int = 200
    map_size: int = 10
    economy: EconomyRules = EconomyRules()
    combat: CombatRules = CombatRules()
    buildings: dict[BuildingType, BuildingSpec] = field(
        default_factory=lambda: dict(DEFAULT_CATALOG)
    )

    def building(self, building_type: str) -> BuildingSpec | None:
        """Look up a catalog entry, returning None for unknown types."""

        try:
            return self.buildings.get(BuildingType(building_type))
        except ValueError:
            return None


DEFAULT_RULES = RulesConfig()


def rules_from_settings(settings: Settings) -> RulesConfig:
    """Build a rules configuration honouring the tunable settings."""

    return RulesConfig(
        win_points=settings.win_points,
        map_size=settings.map_size,
        economy=EconomyRules(
            resource_cap=settings.resource_cap,
            starting_wood=settings.starting_wood,
            starting_stone=settings.starting_stone,
            starting_bricks=settings.starting_bricks,
        ),
        combat=CombatRules(resolution_delay_seconds=settings.attack_resolution_delay_seconds),
    )
