from datetime import datetime, timezone

from onetoten import db


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GameRecord(db.Model):
    """One completed game. Rows are only ever inserted."""

    __tablename__ = 'games'
    id = db.Column(db.Integer, primary_key=True)
    room_code = db.Column(db.String(16), nullable=False, index=True)
    player1_name = db.Column(db.String(64), nullable=False)
    player2_name = db.Column(db.String(64), nullable=False)
    challenge = db.Column(db.Text, nullable=False)
    max_number = db.Column(db.Integer, nullable=False, default=10)
    player1_number = db.Column(db.Integer, nullable=False)
    player2_number = db.Column(db.Integer, nullable=False)
    matched = db.Column(db.Integer, nullable=False)  # 0/1
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'room_code': self.room_code,
            'player1_name': self.player1_name,
            'player2_name': self.player2_name,
            'challenge': self.challenge,
            'max_number': self.max_number,
            'player1_number': self.player1_number,
            'player2_number': self.player2_number,
            'matched': self.matched,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
