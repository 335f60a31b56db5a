from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user
from sqlalchemy.exc import IntegrityError
from .models import db, User
from .auth import issue_token, token_required

main = Blueprint('main', __name__)


def _auth_payload(user):
    return {'token': issue_token(user), 'user': user.to_dict()}


@main.route('/test', methods=['GET'])
def index():
    return jsonify({'message': 'Math Duels API is running!'})


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    name = (data.get('name') or '').strip()
    password = data.get('password') or ''
    if not all([email, name, password]):
        return jsonify({'error': 'All fields are required'}), 400

    min_length = int(current_app.config.get('MIN_PASSWORD_LENGTH', 6))
    if len(password) < min_length:
        return jsonify({'error': f'Password must be at least {min_length} characters long'}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'User with this email already exists'}), 400

    new_user = User(email=email, name=name)
    new_user.set_password(password)
    db.session.add(new_user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'User with this email already exists'}), 400
    current_app.logger.info(f"[register] user={new_user.id}")
    return jsonify(_auth_payload(new_user)), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    user = User.query.filter_by(email=email).first()
    if user and user.check_password(password):
        return jsonify(_auth_payload(user))
    return jsonify({'error': 'Invalid credentials'}), 401


@main.route('/google-signin', methods=['POST'])
def google_signin():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip()
    name = (data.get('name') or '').strip()
    google_id = data.get('googleId')
    picture = data.get('picture')
    if not all([email, name, google_id]):
        return jsonify({'error': 'Google authentication data required'}), 400

    user = User.query.filter_by(email=email).first()
    if not user:
        user = User(email=email, name=name, google_id=google_id, picture=picture)
        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f"[google-signin] created user={user.id}")
    elif not user.google_id:
        # Link an existing password account to its Google identity
        user.google_id = google_id
        user.picture = picture
        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f"[google-signin] linked user={user.id}")
    return jsonify(_auth_payload(user))


@main.route('/profile', methods=['GET'])
@token_required
def profile():
    return jsonify(current_user.to_dict(include_created=True))
