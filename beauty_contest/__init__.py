from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

EXTENSION_KEY = 'beauty_contest'


def room_channel(room_code: str) -> str:
    return f"room:{room_code}"


def create_app(config_class=Config, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = [o.strip() for o in flask_app.config.get('CORS_ORIGINS', '').split(',') if o.strip()]
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Game runtime: one registry and state machine per application
    from beauty_contest.registry import RoomRegistry
    from beauty_contest.services.games.scheduler import BackgroundScheduler
    from beauty_contest.services.games.state_machine import RoomStateMachine, Timings

    def emit_to_room(room_code, event, payload=None):
        socketio.emit(event, payload, to=room_channel(room_code), namespace='/ws')

    cfg = flask_app.config
    timings = Timings(
        round_duration=int(cfg.get('ROUND_DURATION_SEC', 180)),
        announce_delay=int(cfg.get('RULE_ANNOUNCE_DELAY_SEC', 5)),
        results_delay=int(cfg.get('RESULTS_REVEAL_DELAY_SEC', 5)),
        scoreboard_duration=int(cfg.get('SCOREBOARD_DURATION_SEC', 10)),
    )
    flask_app.extensions[EXTENSION_KEY] = RoomStateMachine(
        registry=RoomRegistry(),
        emit=emit_to_room,
        scheduler=scheduler or BackgroundScheduler(
            flask_app, socketio, poll_interval=float(cfg.get('TIMER_POLL_SEC', 1.0))
        ),
        timings=timings,
        logger=flask_app.logger,
    )

    # Import and register blueprints here
    from beauty_contest.main import main
    flask_app.register_blueprint(main)

    from beauty_contest.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers
    from beauty_contest.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    return flask_app
