from datetime import datetime, timezone
from mathduels import db, bcrypt
from flask_login import UserMixin


def _utcnow():
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    # Google-only accounts have no password
    password_hash = db.Column(db.String(256), nullable=True)
    google_id = db.Column(db.String(255), nullable=True)
    picture = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow)
    scores = db.relationship('Score', back_populates='user', cascade='all, delete-orphan')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        if not self.password_hash or not password:
            return False
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self, include_created=False):
        data = {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'picture': self.picture,
        }
        if include_created:
            data['created_at'] = self.created_at.isoformat() if self.created_at else None
        return data


class Score(db.Model):
    __tablename__ = 'scores'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False)
    game_type = db.Column(db.String(64), default='math_duel', nullable=False)
    achieved_at = db.Column(db.DateTime, default=_utcnow)
    user = db.relationship('User', back_populates='scores')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'score': self.score,
            'game_type': self.game_type,
            'achieved_at': self.achieved_at.isoformat() if self.achieved_at else None,
        }
