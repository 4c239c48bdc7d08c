from flask import Blueprint, current_app, jsonify

from beauty_contest import EXTENSION_KEY

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the beauty contest game server!'})

@main.route('/health')
def health():
    machine = current_app.extensions[EXTENSION_KEY]
    return jsonify({'status': 'healthy', 'rooms': len(machine.registry)})
