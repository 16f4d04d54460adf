import random
from typing import Dict, Optional

from pong.models import (
    Ball,
    BallSnapshot,
    MatchSnapshot,
    MatchState,
    Paddle,
    PaddleSnapshot,
    Side,
)
from . import physics


class Match:
    """One game: ball, two paddles, scores and who occupies each side.

    ``advance`` is the only place the ball moves. Callers serialize access
    through the registry lock, so a step never overlaps input handling or an
    AI perception on the same match.
    """

    def __init__(self, match_id: str, difficulty: str = 'medium', rng: Optional[random.Random] = None,
                 max_ball_speed: float = physics.BALL_MAX_SPEED):
        self.id = match_id
        self.difficulty = difficulty
        self.rng = rng or random.Random()
        self.max_ball_speed = max_ball_speed
        self.ball = Ball(
            x=physics.BOARD_WIDTH / 2,
            y=physics.BOARD_HEIGHT / 2,
            vx=physics.BALL_BASE_SPEED,
            vy=physics.BALL_BASE_SPEED,
            radius=physics.BALL_RADIUS,
        )
        self.paddles: Dict[Side, Paddle] = {
            Side.LEFT: Paddle(Side.LEFT, physics.LEFT_PADDLE_X, physics.PADDLE_START_Y,
                              physics.PADDLE_WIDTH, physics.PADDLE_HEIGHT),
            Side.RIGHT: Paddle(Side.RIGHT, physics.RIGHT_PADDLE_X, physics.PADDLE_START_Y,
                               physics.PADDLE_WIDTH, physics.PADDLE_HEIGHT),
        }
        # side -> connection id of the human on that side
        self.participants: Dict[Side, str] = {}
        self.state = MatchState.WAITING
        self.ai = None
        # True when the AI filled a slot a human vacated
        self.ai_is_standin = False

    @property
    def left(self) -> Paddle:
        return self.paddles[Side.LEFT]

    @property
    def right(self) -> Paddle:
        return self.paddles[Side.RIGHT]

    @property
    def is_ready(self) -> bool:
        return self.state is MatchState.READY

    @property
    def is_destroyed(self) -> bool:
        return self.state is MatchState.DESTROYED

    @property
    def has_humans(self) -> bool:
        return bool(self.participants)

    def occupied_sides(self):
        sides = set(self.participants)
        if self.ai is not None:
            sides.add(self.ai.side)
        return sides

    def free_side(self) -> Optional[Side]:
        occupied = self.occupied_sides()
        for side in (Side.LEFT, Side.RIGHT):
            if side not in occupied:
                return side
        return None

    def side_of(self, sid: str) -> Optional[Side]:
        for side, owner in self.participants.items():
            if owner == sid:
                return side
        return None

    def refresh_readiness(self) -> MatchState:
        """Move between WAITING and READY according to the occupied slots."""
        if self.is_destroyed:
            return self.state
        self.state = MatchState.READY if len(self.occupied_sides()) == 2 else MatchState.WAITING
        return self.state

    # ---- input ----

    def set_paddle_y(self, side: Side, y: float) -> None:
        self.paddles[side].y = physics.clamp_paddle_y(y)

    def set_paddle_intent(self, side: Side, vy: float) -> None:
        self.paddles[side].vy = vy

    # ---- simulation ----

    def advance(self) -> None:
        for paddle in self.paddles.values():
            paddle.y = physics.clamp_paddle_y(paddle.y + paddle.vy)

        ball = self.ball
        ball.x += ball.vx
        ball.y += ball.vy
        ball.vy = physics.wall_bounce(ball.y, ball.vy, ball.radius)

        for paddle in self.paddles.values():
            left_side = paddle.side is Side.LEFT
            if physics.touches_paddle(ball.x, ball.y, ball.radius, ball.vx,
                                      paddle.x, paddle.y, paddle.width, paddle.height, left_side):
                ball.vx = abs(ball.vx) if left_side else -abs(ball.vx)
                ball.vy += self.rng.uniform(-physics.BOUNCE_JITTER, physics.BOUNCE_JITTER)
                ball.vx = physics.clamp_speed(ball.vx, self.max_ball_speed)
                ball.vy = physics.clamp_speed(ball.vy, self.max_ball_speed)
                break

        if ball.x < 0:
            self.right.score += 1
            self.reset_ball()
        elif ball.x > physics.BOARD_WIDTH:
            self.left.score += 1
            self.reset_ball()

    def reset_ball(self) -> None:
        ball = self.ball
        ball.x = physics.BOARD_WIDTH / 2
        ball.y = physics.BOARD_HEIGHT / 2
        ball.vx = physics.BALL_BASE_SPEED * self.rng.choice((-1, 1))
        ball.vy = physics.BALL_BASE_SPEED * self.rng.choice((-1, 1))

    # ---- views ----

    def snapshot(self) -> MatchSnapshot:
        b = self.ball
        return MatchSnapshot(
            ball=BallSnapshot(b.x, b.y, b.vx, b.vy, b.radius),
            left=self._paddle_snapshot(self.left),
            right=self._paddle_snapshot(self.right),
        )

    @staticmethod
    def _paddle_snapshot(p: Paddle) -> PaddleSnapshot:
        return PaddleSnapshot(p.side, p.x, p.y, p.width, p.height)

    def to_dict(self):
        return {
            'ball': self.ball.to_dict(),
            'player1': self.left.to_dict(),
            'player2': self.right.to_dict(),
        }

    def summary(self):
        return {
            'id': self.id,
            'state': self.state.value,
            'players': len(self.participants),
            'ai': self.ai.to_dict() if self.ai else None,
            'difficulty': self.difficulty,
            'score': {'left': self.left.score, 'right': self.right.score},
        }
