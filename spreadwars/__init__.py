from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config
from spreadwars.services.match import MatchNotFound, MatchRegistry

db = SQLAlchemy()
registry = MatchRegistry()
allowed_origins = [
    "http://localhost:8080",
    "http://127.0.0.1:8080",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    registry.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from spreadwars.main import main
    flask_app.register_blueprint(main)

    from spreadwars.api.matches import matches
    flask_app.register_blueprint(matches, url_prefix='/api')

    from spreadwars.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    with flask_app.app_context():
        # Player names are process-local; the schema is created on startup.
        import spreadwars.models  # noqa: F401
        db.create_all()

    @click.command('matches-reset')
    def matches_reset_command():
        """Tears down every match and clears the player list."""
        from spreadwars.models import Player
        with flask_app.app_context():
            Player.query.delete()
            db.session.commit()
        registry.reset()
        click.echo(f'Registry reset; open match is {registry.open_match_id}.')

    @click.command('matches-list')
    def matches_list_command():
        """Prints every live match with its state and cell counts."""
        for match_id in registry.ids():
            try:
                with registry.locked(match_id) as match:
                    empty, red, blue, neutral = match.grid.cell_counts()
                    line = (f'{match_id}: {match.state.value} turn={match.turn_owner.value} '
                            f'empty={empty} red={red} blue={blue} neutral={neutral}')
            except MatchNotFound:
                continue
            click.echo(line)

    flask_app.cli.add_command(matches_reset_command)
    flask_app.cli.add_command(matches_list_command)

    return flask_app
