import random
from typing import Optional

from pong.models import MatchState, Side
from .ai import AIController, get_profile
from .match import Match


def run_duel(left_level: str, right_level: str, ticks: int = 3600, tick_rate: int = 60,
             seed: Optional[int] = None, mistake_chance: float = 0.05):
    """Play two AI controllers against each other without timers or sockets.

    Each controller perceives every ``refresh_period * tick_rate`` ticks,
    which is what its timer would do in a live match.
    """
    left_profile = get_profile(left_level)
    right_profile = get_profile(right_level)
    if left_profile is None or right_profile is None:
        raise ValueError(f"unknown difficulty: {left_level if left_profile is None else right_level}")

    rng = random.Random(seed)
    match = Match('duel', difficulty=right_profile.name, rng=rng)
    controllers = [
        AIController(match, Side.LEFT, left_profile, rng=rng, mistake_chance=mistake_chance),
        AIController(match, Side.RIGHT, right_profile, rng=rng, mistake_chance=mistake_chance),
    ]
    periods = [max(1, round(c.profile.refresh_period * tick_rate)) for c in controllers]
    match.state = MatchState.READY

    for tick in range(ticks):
        for controller, period in zip(controllers, periods):
            if tick % period == 0:
                controller.perceive_and_act()
            controller.actuate()
        match.advance()

    return {
        'ticks': ticks,
        'left': {'difficulty': left_profile.name, 'score': match.left.score},
        'right': {'difficulty': right_profile.name, 'score': match.right.score},
    }
