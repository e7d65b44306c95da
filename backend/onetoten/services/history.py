"""Append-only log of completed games."""

from contextlib import nullcontext

from onetoten import db
from onetoten.models import GameRecord


class HistoryStore:
    """Thin wrapper over the ``games`` table.

    When built with an app it pushes its own app context, so ``append`` can
    run from a Socket.IO background task.
    """

    def __init__(self, app=None):
        self.app = app

    def _context(self):
        return self.app.app_context() if self.app is not None else nullcontext()

    def append(self, record: dict) -> int:
        with self._context():
            row = GameRecord(
                room_code=record['room_code'],
                player1_name=record['player1_name'],
                player2_name=record['player2_name'],
                challenge=record['challenge'],
                max_number=record['max_number'],
                player1_number=record['player1_number'],
                player2_number=record['player2_number'],
                matched=1 if record['matched'] else 0,
            )
            try:
                db.session.add(row)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            return row.id

    def recent(self, limit: int = 50):
        with self._context():
            rows = (
                GameRecord.query
                .order_by(GameRecord.created_at.desc(), GameRecord.id.desc())
                .limit(limit)
                .all()
            )
            return [row.to_dict() for row in rows]
