"""Board constants and the geometry shared by the match step and the AI."""

BOARD_WIDTH = 800
BOARD_HEIGHT = 400
PADDLE_WIDTH = 10
PADDLE_HEIGHT = 100
LEFT_PADDLE_X = 10
RIGHT_PADDLE_X = BOARD_WIDTH - PADDLE_WIDTH
PADDLE_MIN_Y = 0
PADDLE_MAX_Y = BOARD_HEIGHT - PADDLE_HEIGHT
PADDLE_START_Y = (BOARD_HEIGHT - PADDLE_HEIGHT) / 2
BALL_RADIUS = 10
BALL_BASE_SPEED = 2
BALL_MAX_SPEED = 8
BOUNCE_JITTER = 0.25


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_paddle_y(y: float) -> float:
    return clamp(y, PADDLE_MIN_Y, PADDLE_MAX_Y)


def clamp_speed(v: float, max_speed: float = BALL_MAX_SPEED) -> float:
    return clamp(v, -max_speed, max_speed)


def wall_bounce(y: float, vy: float, radius: float, height: float = BOARD_HEIGHT) -> float:
    """Return vy after a radius-inclusive wall contact check.

    The sign is forced rather than flipped so a ball that is still touching
    the wall on the next step keeps heading back into the board.
    """
    if y - radius <= 0:
        return abs(vy)
    if y + radius >= height:
        return -abs(vy)
    return vy


def paddle_face_x(paddle_x: float, paddle_width: float, left_side: bool) -> float:
    """x-coordinate of the paddle edge that faces the board centre."""
    return paddle_x + paddle_width if left_side else paddle_x


def touches_paddle(bx, by, radius, vx, px, py, width, height, left_side) -> bool:
    """Interval collision between a ball and a paddle.

    The ball's leading edge has to be inside the paddle's x-span while the
    ball's vertical extent overlaps the paddle, and the ball has to be moving
    toward the paddle.
    """
    if left_side:
        if vx >= 0:
            return False
        leading = bx - radius
    else:
        if vx <= 0:
            return False
        leading = bx + radius
    if not (px <= leading <= px + width):
        return False
    return by + radius >= py and by - radius <= py + height
