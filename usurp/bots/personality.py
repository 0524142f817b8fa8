"""
Personalities - Play styles for heuristic seats.

Personalities adjust:
- Bluffing (claiming roles the bot does not hold)
- Suspicion (how readily the bot challenges)
- Aggression (attacking opponents vs building coins)
- Noise (an occasional uniformly random legal move)
"""

from __future__ import annotations
from dataclasses import dataclass
import random


@dataclass
class Personality:
    """
    Tendencies of a heuristic seat.

    All rates are probabilities in [0, 1].
    """
    name: str
    description: str = ""

    bluff_rate: float = 0.2  # Chance of claiming an unheld role
    challenge_rate: float = 0.15  # Baseline chance of challenging a claim
    aggression: float = 0.5  # 0 = economy, 1 = attack
    risk_tolerance: float = 0.5  # 0 = never block/challenge on a bluff, 1 = often
    randomness: float = 0.05  # Probability of a uniformly random legal move


# ============================================================================
# Predefined Personalities
# ============================================================================

BALANCED = Personality(
    name="Balanced",
    description="Plays mostly honest, challenges when the odds favour it",
)


AGGRESSIVE = Personality(
    name="Aggressive",
    description="Attacks early with Assassinate and Steal, bluffs freely",
    bluff_rate=0.4,
    challenge_rate=0.2,
    aggression=0.85,
    risk_tolerance=0.7,
)


CAUTIOUS = Personality(
    name="Cautious",
    description="Builds coins, never bluffs, rarely disputes anything",
    bluff_rate=0.0,
    challenge_rate=0.05,
    aggression=0.2,
    risk_tolerance=0.2,
    randomness=0.0,
)


SKEPTIC = Personality(
    name="Skeptic",
    description="Trusts nobody and challenges often",
    bluff_rate=0.1,
    challenge_rate=0.45,
    aggression=0.5,
    risk_tolerance=0.6,
)


CHAOTIC = Personality(
    name="Chaotic",
    description="Bluffs wildly and often acts on a whim",
    bluff_rate=0.5,
    challenge_rate=0.3,
    aggression=0.6,
    risk_tolerance=0.9,
    randomness=0.4,
)


# Lookup by lowercase name
PERSONALITIES: dict[str, Personality] = {
    "balanced": BALANCED,
    "aggressive": AGGRESSIVE,
    "cautious": CAUTIOUS,
    "skeptic": SKEPTIC,
    "chaotic": CHAOTIC,
}


def get_personality(name: str) -> Personality:
    """Look up a predefined personality by (case-insensitive) name."""
    try:
        return PERSONALITIES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown personality {name!r}; choose from {sorted(PERSONALITIES)}")


def create_random_personality(
    name: str = "Random",
    base: Personality | None = None,
    variance: float = 0.3,
    seed: int | None = None,
) -> Personality:
    """
    Jitter every rate of a base personality.

    Args:
        name: Name for the personality
        base: Base personality to vary from (default: BALANCED)
        variance: How much to vary (0-1)
        seed: Random seed for reproducibility
    """
    rng = random.Random(seed)
    base = base or BALANCED

    def vary(value: float) -> float:
        delta = value * variance * (rng.random() * 2 - 1)
        return min(1.0, max(0.0, value + delta))

    return Personality(
        name=name,
        description=f"Random variation of {base.name}",
        bluff_rate=vary(base.bluff_rate),
        challenge_rate=vary(base.challenge_rate),
        aggression=vary(base.aggression),
        risk_tolerance=vary(base.risk_tolerance),
        randomness=vary(base.randomness),
    )
