"""Deterministic Random Number Generator (RNG) helpers for civhex.

Combat is deterministic by default. When a ruleset enables combat variance,
every draw is seeded from game state (game_id, turn, side, context) so that:
- Reproducibility: Same seed always produces same results
- Fairness: No hidden randomness
- Bug reproduction: Exact game state replay

Examples:
    >>> seed = generate_seed(game_id=1, turn=4, side="player", context="combat_3_vs_7")
    >>> seed
    '1:4:player:combat_3_vs_7'
    >>> random_int(seed, -10, 10)["value"] == random_int(seed, -10, 10)["value"]
    True
"""

import hashlib
import random
from typing import Any


def generate_seed(game_id: int, turn: int, side: str, context: str) -> str:
    """Generate deterministic seed from game state.

    Format: "game_id:turn:side:context"

    Args:
        game_id: Identifier of the game the roll belongs to
        turn: Current turn number
        side: Side taking the action ('player' or 'enemy')
        context: What the roll is for (e.g., 'combat_3_vs_7_attacker')

    Returns:
        Seed string for RNG

    Raises:
        ValueError: If game_id or turn is negative
    """
    if game_id < 0:
        raise ValueError(f"game_id must be non-negative, got {game_id}")
    if turn < 0:
        raise ValueError(f"turn must be non-negative, got {turn}")

    return f"{game_id}:{turn}:{side}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


def random_int(seed: str, min_val: int, max_val: int) -> dict[str, Any]:
    """Generate random integer in range with deterministic seed.

    Generates a random integer between min_val and max_val (inclusive) using
    the seed. The same seed and range will always produce the same value.

    Args:
        seed: Deterministic seed string
        min_val: Minimum value (inclusive)
        max_val: Maximum value (inclusive)

    Returns:
        Dictionary containing:
            - value: The random integer
            - min: The minimum value
            - max: The maximum value
            - seed: The seed used

    Raises:
        ValueError: If min_val > max_val
    """
    if min_val > max_val:
        raise ValueError(f"min_val ({min_val}) cannot be greater than max_val ({max_val})")

    rng = random.Random(_seed_to_int(seed))
    value = rng.randint(min_val, max_val)

    return {
        "value": value,
        "min": min_val,
        "max": max_val,
        "seed": seed,
    }
