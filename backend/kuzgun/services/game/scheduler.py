import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """A pending one-shot timer. ``cancel()`` makes a later fire a no-op."""

    def __init__(self, key: Optional[str], deadline: float):
        self.key = key
        self.deadline = deadline
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        if not self.cancelled and not self.fired:
            logger.info(f"[timer-cancel] key={self.key}")
        self.cancelled = True


class SocketIOScheduler:
    """Runs timers as Socket.IO background tasks.

    Background tasks cannot be interrupted, so a cancelled timer still wakes
    up; the worker checks the handle's flag and aborts.
    """

    def __init__(self, socketio, heartbeat_sec: int = 0):
        self.socketio = socketio
        self.heartbeat_sec = heartbeat_sec

    def schedule(self, delay_sec: float, callback: Callable[[], None], key: Optional[str] = None) -> TimerHandle:
        handle = TimerHandle(key, time.time() + delay_sec)
        logger.info(f"[timer-set] key={key} duration={delay_sec}s deadline={handle.deadline}")
        self.socketio.start_background_task(self._worker, handle, callback, delay_sec)
        return handle

    def _worker(self, handle: TimerHandle, callback: Callable[[], None], delay: float) -> None:
        hb = self.heartbeat_sec
        if hb and hb > 0:
            slept = 0.0
            while slept < delay and not handle.cancelled:
                step = min(hb, delay - slept)
                self.socketio.sleep(step)
                slept += step
                logger.info(f"[timer-heartbeat] key={handle.key} remaining={max(0, delay - slept)}s")
        else:
            self.socketio.sleep(delay)

        if handle.cancelled:
            logger.info(f"[timer-abort] key={handle.key} cancelled before firing")
            return
        handle.fired = True
        logger.info(f"[timer-fire] key={handle.key}")
        try:
            callback()
        except Exception:
            logger.exception(f"[timer-error] key={handle.key}")
