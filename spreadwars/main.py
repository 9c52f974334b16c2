from flask import Blueprint, current_app, jsonify, request, session
from spreadwars import db
from spreadwars.models import Player

main = Blueprint('main', __name__)

USER_NAME = 'user_name'
USER_ID = 'player_id'

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the spreadwars game server!'})

@main.route('/api/usernames/', methods=['POST', 'OPTIONS'])
def register_user():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip() if isinstance(data, dict) else ''
    if not name:
        return jsonify({'error': 'Player name is required'}), 400

    if session.get(USER_NAME):
        current_app.logger.info(f"[register-skip] session already registered as {session[USER_NAME]!r}")
        return 'success creating new user', 200

    if Player.query.filter_by(name=name).first():
        return jsonify({'error': 'Player name already taken'}), 409

    player = Player(name=name)
    db.session.add(player)
    db.session.commit()
    session[USER_NAME] = name
    session[USER_ID] = player.id
    current_app.logger.info(f"[register] name={name!r}")
    return 'success creating new user', 200

@main.route('/api/usernames/total/')
def active_users():
    users = [p.to_dict() for p in Player.ordered()]
    return jsonify({'users': users, 'n_users': len(users)})

@main.route('/api/usernames/delete', methods=['POST'])
def user_left():
    data = request.get_json(silent=True)
    name = data.get('name') if isinstance(data, dict) else data
    if not name:
        return jsonify({'error': 'Player name is required'}), 400
    current_app.logger.info(f"[left] name={name!r}")
    return f'{name}, deleted', 200
