"""Game rules for civhex.

This package holds the whole simulation engine:

* Dataclasses describing maps, cells, units and results (see :mod:`models`).
* Enumerations used across the rules layer (see :mod:`enums`).
* Rule configuration objects (see :mod:`rules_config`).
* Geometry over a decoded map (see :mod:`grid`).
* Pure rule functions for movement and combat.
* The turn controller, the only component that mutates game state.
"""

from . import combat, enums, grid, models, movement, rules_config, turn

__all__ = [
    "combat",
    "enums",
    "grid",
    "models",
    "movement",
    "rules_config",
    "turn",
]
