from flask import Blueprint, current_app, jsonify, request, session
from spreadwars import db, registry
from spreadwars.models import Player
from spreadwars.main import USER_ID, USER_NAME
from spreadwars.services.match import Cell, GridError, MatchNotFound, RegistryBusy
from spreadwars.socketio_events import notify_match_ended, notify_match_update


matches = Blueprint('matches', __name__)

USER_COLOR = 'user_color'
USER_MATCH_ID = 'match_id'


def _session_match_id():
    match_id = session.get(USER_MATCH_ID)
    if match_id is None:
        return None
    try:
        return int(match_id)
    except (TypeError, ValueError):
        return None


def _parse_position(data):
    """Accept either {"row": r, "col": c} or a two-element [row, col] list."""
    if isinstance(data, dict):
        row, col = data.get('row'), data.get('col')
    elif isinstance(data, (list, tuple)) and len(data) == 2:
        row, col = data
    else:
        return None
    try:
        return int(row), int(col)
    except (TypeError, ValueError, OverflowError):
        return None


def _session_player():
    player_id = session.get(USER_ID)
    if player_id is None:
        return None
    return db.session.get(Player, player_id)


@matches.route('/user/color', methods=['GET'])
def give_user_color():
    # Re-asking from a seated session returns the same seat while the match lives
    color = session.get(USER_COLOR)
    match_id = _session_match_id()
    try:
        if color and match_id is not None and match_id in registry:
            return jsonify({'value': color})
        match_id, seat = registry.assign_seat()
    except RegistryBusy as exc:
        current_app.logger.warning(f"[seat-busy] {exc}")
        return jsonify({'value': 'none'})

    session[USER_COLOR] = seat.value
    session[USER_MATCH_ID] = match_id
    name = session.get(USER_NAME)
    player = _session_player()
    if player:
        player.color = seat.value
        player.match_id = match_id
        db.session.add(player)
        db.session.commit()
    current_app.logger.info(f"[seat] match={match_id} color={seat.value} name={name!r}")
    notify_match_update(match_id)
    return jsonify({'value': seat.value})


@matches.route('/universe/universe', methods=['GET'])
def serve_universe():
    match_id = _session_match_id()
    if match_id is None:
        return jsonify({'error': 'No match assigned to this session'}), 400
    try:
        with registry.locked(match_id) as match:
            advanced = match.tick()
            payload = match.to_dict()
    except MatchNotFound:
        return jsonify({'error': 'Match not found'}), 404
    except RegistryBusy as exc:
        current_app.logger.warning(f"[state-busy] match={match_id} {exc}")
        return jsonify({'error': 'Match is busy, try again'}), 503
    if advanced:
        notify_match_update(match_id)
    return jsonify(payload)


@matches.route('/universe/cellpick', methods=['POST'])
def cell_picked():
    color = session.get(USER_COLOR)
    match_id = _session_match_id()
    if not color or match_id is None:
        return jsonify({'error': 'No seat assigned to this session'}), 400
    position = _parse_position(request.get_json(silent=True))
    if position is None:
        return jsonify({'error': 'Expected {"row": int, "col": int}'}), 400

    try:
        cell = Cell.from_color(color)
        with registry.locked(match_id) as match:
            changed = match.attempt_claim(cell, position)
    except MatchNotFound:
        return jsonify({'error': 'Match not found'}), 404
    except RegistryBusy as exc:
        current_app.logger.warning(f"[claim-busy] match={match_id} {exc}")
        return 'received', 200
    except GridError as exc:
        current_app.logger.warning(f"[claim-invalid] match={match_id} {exc}")
        return 'received', 200
    if changed:
        notify_match_update(match_id)
    return 'received', 200


@matches.route('/universe/kill', methods=['POST'])
def kill_universe():
    name = session.pop(USER_NAME, None)
    session.pop(USER_COLOR, None)
    match_id = _session_match_id()
    session.pop(USER_MATCH_ID, None)
    if name is None:
        return jsonify({'error': 'No player registered in this session'}), 400

    player = _session_player()
    session.pop(USER_ID, None)
    if player:
        db.session.delete(player)
        db.session.commit()

    if match_id is not None:
        try:
            removed = registry.remove(match_id)
        except RegistryBusy as exc:
            current_app.logger.warning(f"[teardown-busy] match={match_id} {exc}")
            removed = False
        if removed:
            notify_match_ended(match_id)
    current_app.logger.info(f"[teardown] name={name!r} match={match_id}")
    return 'Universe deleted', 200
