import os


def _flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Physics ticks per second
    TICK_RATE = int(os.environ.get('TICK_RATE', '60'))
    DEFAULT_AI_DIFFICULTY = os.environ.get('DEFAULT_AI_DIFFICULTY', 'medium')
    # Put an AI in the vacated slot when one of two humans leaves
    AI_AUTO_ATTACH = _flag('AI_AUTO_ATTACH', '1')
    # Let a PvP join take over the slot of a stand-in AI
    AI_STANDIN_YIELDS = _flag('AI_STANDIN_YIELDS', '0')
    AI_MISTAKE_CHANCE = float(os.environ.get('AI_MISTAKE_CHANCE', '0.05'))
    AI_DEAD_ZONE = float(os.environ.get('AI_DEAD_ZONE', '8'))
    PADDLE_KEY_SPEED = float(os.environ.get('PADDLE_KEY_SPEED', '5'))
    BALL_MAX_SPEED = float(os.environ.get('BALL_MAX_SPEED', '8'))
    # Optional: seed for reproducible matches. Unset means system entropy.
    RANDOM_SEED = int(os.environ['RANDOM_SEED']) if os.environ.get('RANDOM_SEED') else None
    # Background loops stay off under TESTING unless this is set
    ENABLE_LOOPS_IN_TESTS = _flag('ENABLE_LOOPS_IN_TESTS', '0')
