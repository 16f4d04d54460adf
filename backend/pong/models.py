from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Side(str, Enum):
    LEFT = 'left'
    RIGHT = 'right'

    @property
    def opposite(self) -> 'Side':
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


class MatchState(str, Enum):
    WAITING = 'waiting'
    READY = 'ready'
    DESTROYED = 'destroyed'


class Actuation(str, Enum):
    IDLE = 'idle'
    PRESSING_UP = 'pressing_up'
    PRESSING_DOWN = 'pressing_down'


@dataclass
class Ball:
    x: float
    y: float
    vx: float
    vy: float
    radius: float

    def to_dict(self):
        return {
            'x': self.x,
            'y': self.y,
            'vx': self.vx,
            'vy': self.vy,
            'radius': self.radius,
        }


@dataclass
class Paddle:
    side: Side
    x: float
    y: float
    width: float
    height: float
    score: int = 0
    vy: float = 0.0

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def to_dict(self):
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'height': self.height,
            'score': self.score,
        }


@dataclass(frozen=True)
class BallSnapshot:
    x: float
    y: float
    vx: float
    vy: float
    radius: float


@dataclass(frozen=True)
class PaddleSnapshot:
    side: Side
    x: float
    y: float
    width: float
    height: float

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class MatchSnapshot:
    """Read-only copy of the match state the AI needs for a prediction."""
    ball: BallSnapshot
    left: PaddleSnapshot
    right: PaddleSnapshot

    def paddle(self, side: Side) -> PaddleSnapshot:
        return self.left if side is Side.LEFT else self.right


@dataclass
class Session:
    """Per-connection record kept by the socket gateway."""
    sid: str
    match_id: Optional[str] = None
    side: Optional[Side] = None
    held_keys: set = field(default_factory=set)

    @property
    def is_assigned(self) -> bool:
        return self.match_id is not None and self.side is not None
