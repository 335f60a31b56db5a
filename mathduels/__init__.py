from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from sqlalchemy.exc import SQLAlchemyError
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from mathduels.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from mathduels.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    # Hosted play sessions on /ws
    from mathduels.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Bearer tokens are resolved per request; there is no cookie session
    from mathduels.auth import load_user_from_request, reset_request_identity
    login_manager.request_loader(load_user_from_request)
    flask_app.before_request(reset_request_identity)

    @flask_app.errorhandler(SQLAlchemyError)
    def handle_db_error(exc):
        db.session.rollback()
        flask_app.logger.exception(f"[db-error] {request.method} {request.path}")
        return jsonify({'error': 'Internal server error'}), 500

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from mathduels.models import User, Score
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed players with a couple of finished games each
            seeds = [
                ('ada@example.com', 'Ada', [31, 44]),
                ('grace@example.com', 'Grace', [52]),
                ('alan@example.com', 'Alan', [18, 27, 39]),
            ]
            for email, name, results in seeds:
                user = User(email=email, name=name)
                user.set_password('password')
                db.session.add(user)
                db.session.flush()
                for value in results:
                    db.session.add(Score(user_id=user.id, score=value))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
