"""Game rules for Dicekeep rooms.

The domain layer is synchronous and transport-agnostic. It exposes:

* Dataclasses describing rooms, players, economies and buildings
  (see :mod:`models`).
* Enumerations for building types, actions and outbound events.
* Rule configuration objects (see :mod:`rules_config`).
* Rule functions for each subsystem: membership (:mod:`lobby`), turn order
  (:mod:`turns`), dice economy (:mod:`economy`), building placement
  (:mod:`placement`), attacks (:mod:`combat`) and the win condition
  (:mod:`victory`).

Rule functions mutate the room in place and return a result object, or None
when the action is silently rejected. Rejections that the requester should
hear about are raised as :class:`errors.GameRuleError` subclasses.
"""

from . import (
    combat,
    economy,
    enums,
    errors,
    lobby,
    models,
    placement,
    rules_config,
    serialize,
    turns,
    victory,
)

__all__ = [
    "combat",
    "economy",
    "enums",
    "errors",
    "lobby",
    "models",
    "placement",
    "rules_config",
    "serialize",
    "turns",
    "victory",
]
