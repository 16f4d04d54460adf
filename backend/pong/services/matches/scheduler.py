import time
import logging
from typing import Callable, Optional


class RepeatingTask:
    """Calls ``callback`` every ``period`` seconds on a Socket.IO background task.

    The task object is its own cancellation token: ``cancel`` only flips a
    flag, so it is synchronous and can be called any number of times. A
    firing already in flight re-checks its owner's state under the registry
    lock, so nothing runs against a detached owner after cancellation.
    """

    def __init__(self, socketio, period: float, callback: Callable[[], None], name: str = 'task', logger=None):
        self.socketio = socketio
        self.period = period
        self.callback = callback
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self.cancelled = False
        self.started = False

    def start(self) -> 'RepeatingTask':
        if self.started or self.cancelled:
            return self
        self.started = True
        self.socketio.start_background_task(self._run)
        return self

    def cancel(self) -> None:
        self.cancelled = True

    def _run(self) -> None:
        next_at = time.monotonic() + self.period
        while not self.cancelled:
            self.socketio.sleep(max(0.0, next_at - time.monotonic()))
            if self.cancelled:
                break
            try:
                self.callback()
            except Exception:
                self.logger.exception(f"[task-error] task={self.name}")
            next_at += self.period
            # Fell behind (debugger, GC pause): skip missed firings instead of bursting
            now = time.monotonic()
            if next_at < now:
                next_at = now + self.period

    def __repr__(self):
        return f"<RepeatingTask {self.name} period={self.period:.3f}s cancelled={self.cancelled}>"


class PhysicsScheduler:
    """Advances every ready match once per tick and broadcasts its state."""

    def __init__(self, registry, broadcast: Callable[[str, dict, str], None], tick_rate: int = 60,
                 socketio=None, logger=None):
        self.registry = registry
        self.broadcast = broadcast
        self.tick_rate = tick_rate
        self.socketio = socketio
        self.logger = logger or registry.logger
        self.task: Optional[RepeatingTask] = None
        self.ticks = 0

    @property
    def period(self) -> float:
        return 1.0 / self.tick_rate

    def tick(self) -> None:
        with self.registry.lock:
            self.ticks += 1
            for match in list(self.registry.matches.values()):
                if match.is_destroyed or not match.has_humans:
                    self.registry.destroy(match)
                    continue
                if not match.is_ready:
                    continue
                if match.ai is not None:
                    match.ai.actuate()
                match.advance()
                self.broadcast('gameUpdate', match.to_dict(), match.id)

    def start(self) -> None:
        if self.task is not None:
            return
        self.task = RepeatingTask(self.socketio, self.period, self.tick, name='physics', logger=self.logger).start()
        self.logger.info(f"[physics-start] tick_rate={self.tick_rate}")

    def stop(self) -> None:
        task, self.task = self.task, None
        if task is not None:
            task.cancel()
