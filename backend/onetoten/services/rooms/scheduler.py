"""Background timers for room cleanup.

- a one-shot task per completed room that deletes it after the grace period
- one periodic sweep per app that drops rooms idle past the ceiling

Both are no-ops in TESTING mode unless ``ENABLE_SCHEDULER_IN_TESTS`` is set;
most tests drive ``RoomRegistry`` with a fake clock instead.
"""

import logging

from onetoten import socketio

logger = logging.getLogger(__name__)


def _scheduler_enabled(app) -> bool:
    return not app.config.get('TESTING') or bool(app.config.get('ENABLE_SCHEDULER_IN_TESTS'))


def schedule_room_cleanup(app, code: str, deadline: float) -> None:
    """Delete ``code`` once ``deadline`` passes, unless the room was rescheduled or removed."""
    if not _scheduler_enabled(app):
        return
    registry = app.extensions['rooms'].registry

    def _worker(room_code: str, expected_deadline: float):
        socketio.sleep(max(0.0, expected_deadline - registry.clock()))
        try:
            registry.expire_if_due(room_code, expected_deadline)
        except Exception:
            logger.exception(f"[cleanup-failed] code={room_code}")

    socketio.start_background_task(_worker, code, deadline)


def ensure_sweeper(app) -> bool:
    """Start the idle-room sweep loop for ``app`` if it is not running yet."""
    if not _scheduler_enabled(app):
        return False
    state = app.extensions['rooms']
    if state.sweeper_started:
        return False
    state.sweeper_started = True
    interval = float(app.config.get('ROOM_SWEEP_INTERVAL_SEC', 60))

    def _loop():
        logger.info(f"[sweeper-start] interval={interval}s")
        # Clearing sweeper_started stops the loop after its current nap
        while state.sweeper_started:
            socketio.sleep(interval)
            if not state.sweeper_started:
                break
            try:
                state.registry.sweep()
            except Exception:
                logger.exception('[sweeper-error]')

    socketio.start_background_task(_loop)
    return True
