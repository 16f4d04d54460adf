import random

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from pong.services.matches import MatchRegistry, PhysicsScheduler
    from pong.socketio_events import SessionGateway, register_socketio_handlers

    cfg = flask_app.config
    testing = cfg.get('TESTING', False)
    loops_enabled = not testing or cfg.get('ENABLE_LOOPS_IN_TESTS', False)
    namespace = cfg.get('SOCKETIO_NAMESPACE', '/')
    seed = cfg.get('RANDOM_SEED')

    registry = MatchRegistry(
        socketio=socketio,
        logger=flask_app.logger,
        rng=random.Random(seed) if seed is not None else None,
        default_difficulty=cfg.get('DEFAULT_AI_DIFFICULTY', 'medium'),
        auto_attach_ai=cfg.get('AI_AUTO_ATTACH', True),
        standin_yields=cfg.get('AI_STANDIN_YIELDS', False),
        timers_enabled=loops_enabled,
        ai_dead_zone=cfg.get('AI_DEAD_ZONE', 8.0),
        ai_mistake_chance=cfg.get('AI_MISTAKE_CHANCE', 0.05),
        max_ball_speed=cfg.get('BALL_MAX_SPEED', 8.0),
    )

    def broadcast(event, payload, room):
        socketio.emit(event, payload, to=room, namespace=namespace)

    scheduler = PhysicsScheduler(
        registry,
        broadcast,
        tick_rate=cfg.get('TICK_RATE', 60),
        socketio=socketio,
        logger=flask_app.logger,
    )
    gateway = SessionGateway(
        registry,
        scheduler=scheduler,
        paddle_key_speed=cfg.get('PADDLE_KEY_SPEED', 5.0),
        logger=flask_app.logger,
        autostart=loops_enabled,
    )
    flask_app.extensions['pong'] = gateway

    # Import and register blueprints here
    from pong.main import main
    flask_app.register_blueprint(main)

    from pong.api.matches import matches
    flask_app.register_blueprint(matches, url_prefix='/api/matches')

    register_socketio_handlers(namespace=namespace)

    @click.command('simulate')
    @click.option('--difficulty', default='hard', show_default=True, help='Right paddle AI level.')
    @click.option('--opponent', default='easy', show_default=True, help='Left paddle AI level.')
    @click.option('--ticks', default=60 * 60, show_default=True, type=int)
    @click.option('--seed', default=None, type=int)
    def simulate_command(difficulty, opponent, ticks, seed):
        """Plays a headless AI-versus-AI match and prints the score."""
        from pong.services.matches.simulate import run_duel
        try:
            result = run_duel(opponent, difficulty, ticks=ticks, tick_rate=cfg.get('TICK_RATE', 60), seed=seed)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        click.echo(
            f"{result['left']['difficulty']} (left) {result['left']['score']} - "
            f"{result['right']['score']} {result['right']['difficulty']} (right) after {ticks} ticks"
        )

    flask_app.cli.add_command(simulate_command)

    return flask_app
