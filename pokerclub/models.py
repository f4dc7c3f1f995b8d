from pokerclub import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import json


def _utcnow_naive():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), default='player', nullable=False)  # player, admin

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
        }


GAME_STATUSES = ('scheduled', 'in_progress', 'finished')


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(20), default='scheduled', nullable=False)  # scheduled, in_progress, finished
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow_naive, nullable=False)
    timer = db.relationship('GameTimer', back_populates='game', uselist=False)

    @property
    def is_in_progress(self):
        return self.status == 'in_progress'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'timer_status': self.timer.status if self.timer else 'idle',
        }


class GameTimer(db.Model):
    """Persisted clock for one game.

    The row only stores the inputs of the snapshot derivation; the current
    level is never stored. ``version`` is bumped on every write so that
    transitions can be applied with a compare-and-set.
    """
    __tablename__ = 'game_timer'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), unique=True, nullable=False, index=True)
    status = db.Column(db.String(16), default='idle', nullable=False)  # idle, running, paused
    started_at = db.Column(db.DateTime, nullable=True)  # naive UTC
    paused_at = db.Column(db.DateTime, nullable=True)  # naive UTC
    total_paused_seconds = db.Column(db.Integer, default=0, nullable=False)
    schedule = db.Column(db.Text, nullable=False, default='[]')  # JSON-encoded list of levels
    version = db.Column(db.Integer, default=1, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow_naive, onupdate=_utcnow_naive, nullable=False)
    game = db.relationship('Game', back_populates='timer')

    @property
    def schedule_list(self):
        return json.loads(self.schedule) if self.schedule else []


class TimerPreset(db.Model):
    __tablename__ = 'timer_preset'
    id = db.Column(db.Integer, primary_key=True)
    # Presets are selected by position; names may repeat
    position = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    levels = db.Column(db.Text, nullable=False, default='[]')  # JSON-encoded list of levels

    def to_dict(self):
        return {
            'index': self.position,
            'name': self.name,
            'levels': json.loads(self.levels) if self.levels else [],
        }
