from flask import Blueprint, current_app, jsonify

from gifleague.errors import RoomNotFound

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    """
    Returns the full snapshot of a room, the same shape sockets receive.
    """
    hub = current_app.extensions['gifleague']
    try:
        with hub.store.locked(room_id) as room:
            payload = room.to_dict()
    except RoomNotFound as exc:
        return jsonify({'error': exc.message}), 404
    return jsonify(payload)
