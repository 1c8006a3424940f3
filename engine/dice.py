"""Random rolls used by combat, morale, and map generation."""

import random

from config import DAMAGE_RANDOM_BASE, DAMAGE_RANDOM_VARIANCE


def damage_factor(rng: random.Random | None = None) -> float:
    """Roll the multiplier applied to every damage instance.

    Args:
        rng: Optional Random instance for seeded/testing rolls.

    Returns:
        A factor in [DAMAGE_RANDOM_BASE, DAMAGE_RANDOM_BASE + DAMAGE_RANDOM_VARIANCE).
    """
    rng = rng or random.Random()
    return DAMAGE_RANDOM_BASE + rng.random() * DAMAGE_RANDOM_VARIANCE


def chance(probability: float, rng: random.Random | None = None) -> bool:
    """Return True with the given probability.

    Probabilities at or above 1 always succeed; at or below 0 never do.
    """
    rng = rng or random.Random()
    return rng.random() < probability


def roll_count(base_min: int, base_var: int, rng: random.Random | None = None) -> int:
    """Roll an integer in [base_min, base_min + base_var).

    Args:
        base_min: Smallest possible result.
        base_var: Number of distinct results. Values below 1 yield base_min.
        rng: Optional Random instance for seeded/testing rolls.
    """
    rng = rng or random.Random()
    if base_var < 1:
        return base_min
    return base_min + int(rng.random() * base_var)
