from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Pong game server!'})


@main.route('/health')
def health():
    gateway = current_app.extensions['pong']
    return jsonify({
        'status': 'ok',
        'matches': len(gateway.registry.matches),
        'connections': len(gateway.sessions),
        'ticks': gateway.scheduler.ticks if gateway.scheduler else 0,
    })
