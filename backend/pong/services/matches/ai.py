"""Computer opponent.

The controller thinks on its own timer: it copies the match state, plays the
ball forward to the point where it reaches its paddle, adds a difficulty
dependent aiming error and then holds "up", "down" or nothing, like a player
on a keyboard. The physics tick turns the held key into paddle velocity.
"""

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Dict, Optional

from pong.models import Actuation, MatchSnapshot, Side
from . import physics

DEAD_ZONE = 8.0
MISTAKE_CHANCE = 0.05
MAX_PREDICTION_STEPS = 2000


@dataclass(frozen=True)
class DifficultyProfile:
    name: str
    paddle_speed: float    # units per tick
    error_range: float     # width of the uniform aiming error
    refresh_period: float  # seconds between perceptions

    def to_dict(self):
        return {
            'name': self.name,
            'paddle_speed': self.paddle_speed,
            'error_range': self.error_range,
            'refresh_period': self.refresh_period,
        }


DIFFICULTY_PROFILES: Dict[str, DifficultyProfile] = {
    'easy': DifficultyProfile('easy', paddle_speed=3, error_range=40, refresh_period=1.5),
    'medium': DifficultyProfile('medium', paddle_speed=5, error_range=20, refresh_period=1.0),
    'hard': DifficultyProfile('hard', paddle_speed=8, error_range=5, refresh_period=0.5),
}


def get_profile(level) -> Optional[DifficultyProfile]:
    if not isinstance(level, str):
        return None
    return DIFFICULTY_PROFILES.get(level.lower())


def predict_intercept(snapshot: MatchSnapshot, side: Side, max_steps: int = MAX_PREDICTION_STEPS) -> float:
    """Ball centre y when it next reaches the face of the paddle on ``side``.

    A ball travelling away is bounced off the opponent's paddle face and
    followed back, so the AI keeps anticipating instead of idling.
    """
    ball = snapshot.ball
    x, y, vx, vy, r = ball.x, ball.y, ball.vx, ball.vy, ball.radius
    if vx == 0:
        return y

    own = snapshot.paddle(side)
    other = snapshot.paddle(side.opposite)
    own_face = physics.paddle_face_x(own.x, own.width, side is Side.LEFT)
    other_face = physics.paddle_face_x(other.x, other.width, side is Side.RIGHT)
    towards_own = 1 if side is Side.RIGHT else -1

    for _ in range(max_steps):
        if vx * towards_own > 0:
            if towards_own > 0 and x + r >= own_face:
                return y
            if towards_own < 0 and x - r <= own_face:
                return y
        else:
            if towards_own > 0 and x - r <= other_face:
                vx = abs(vx)
            elif towards_own < 0 and x + r >= other_face:
                vx = -abs(vx)
        x += vx
        y += vy
        vy = physics.wall_bounce(y, vy, r)
    return y


class AIController:
    """Drives the paddle on ``side`` of ``match``.

    The match owns the controller; the controller only keeps a back
    reference. ``task`` is the repeating refresh timer, assigned by the
    registry, and doubles as the cancellation token.
    """

    def __init__(self, match, side: Side, profile: DifficultyProfile, rng: Optional[random.Random] = None,
                 dead_zone: float = DEAD_ZONE, mistake_chance: float = MISTAKE_CHANCE, logger=None):
        self.match = match
        self.side = side
        self.profile = profile
        self.rng = rng or random.Random()
        self.dead_zone = dead_zone
        self.mistake_chance = mistake_chance
        self.logger = logger or logging.getLogger(__name__)
        self.target_y: Optional[float] = None
        self.state = Actuation.IDLE
        # Recent press/release trail, served with the match state for diagnostics
        self.transitions = deque(maxlen=32)
        self.task = None
        self.detached = False

    @property
    def paddle(self):
        return self.match.paddles[self.side]

    # ---- perception ----

    def perceive_and_act(self) -> None:
        if self.detached:
            return
        snapshot = self.match.snapshot()
        predicted = predict_intercept(snapshot, self.side)
        predicted = physics.clamp(predicted, 0, physics.BOARD_HEIGHT)
        half = self.profile.error_range / 2
        self.target_y = predicted + self.rng.uniform(-half, half)

        delta = self.target_y - snapshot.paddle(self.side).center_y
        if abs(delta) <= self.dead_zone:
            self.release()
        elif delta < -self.dead_zone:
            self.press(Actuation.PRESSING_UP)
        else:
            self.press(Actuation.PRESSING_DOWN)

        if self.rng.random() < self.mistake_chance:
            self.logger.debug(f"[ai-mistake] match={self.match.id} side={self.side.value} state={self.state.value}")
            self.release()

    # ---- actuation ----

    def press(self, direction: Actuation) -> None:
        if self.state is direction:
            return
        if self.state is not Actuation.IDLE:
            self.release()
        self.state = direction
        self._record(direction)

    def release(self) -> None:
        if self.state is Actuation.IDLE:
            return
        self.state = Actuation.IDLE
        self._record(Actuation.IDLE)

    def _record(self, actuation: Actuation) -> None:
        self.transitions.append(actuation)
        self.logger.debug(f"[ai-actuation] match={self.match.id} side={self.side.value} state={actuation.value}")

    def actuate(self) -> None:
        """Turn the held key into paddle velocity for the coming tick.

        A held key is let go once the paddle centre sits inside the dead-zone
        around the last target; the next press waits for the next perception.
        """
        if self.detached:
            return
        paddle = self.paddle
        if self.state is not Actuation.IDLE and self.target_y is not None:
            if abs(self.target_y - paddle.center_y) <= self.dead_zone:
                self.release()
        if self.state is Actuation.PRESSING_UP:
            paddle.vy = -self.profile.paddle_speed
        elif self.state is Actuation.PRESSING_DOWN:
            paddle.vy = self.profile.paddle_speed
        else:
            paddle.vy = 0.0

    # ---- lifecycle ----

    def set_profile(self, profile: DifficultyProfile) -> None:
        self.profile = profile

    def stop(self) -> None:
        """Detach from the match. Synchronous and idempotent."""
        if self.detached:
            return
        self.detached = True
        self.release()
        self.paddle.vy = 0.0
        self.cancel_task()

    def cancel_task(self) -> None:
        task, self.task = self.task, None
        if task is None:
            return
        try:
            task.cancel()
        except Exception:
            self.logger.exception(f"[timer-cancel-failed] match={self.match.id} task={task!r}")

    def to_dict(self):
        return {
            'side': self.side.value,
            'difficulty': self.profile.name,
            'state': self.state.value,
            'target_y': self.target_y,
            'recent': [a.value for a in self.transitions],
        }
