from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the GIF League game server!'})

@main.route('/health')
def health():
    hub = current_app.extensions['gifleague']
    return jsonify({
        'status': 'ok',
        'rooms': len(hub.store),
        'sessions': len(hub.registry),
    })
