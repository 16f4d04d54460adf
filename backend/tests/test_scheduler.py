import logging
import threading
import time

from pong.services.matches import DIFFICULTY_PROFILES, DifficultyProfile, MatchRegistry, RepeatingTask


class ThreadedSocketIO:
    """Stands in for ``socketio`` with the threading async mode."""

    def __init__(self):
        self.threads = []

    def start_background_task(self, target, *args, **kwargs):
        thread = threading.Thread(target=target, args=args, kwargs=kwargs, daemon=True)
        thread.start()
        self.threads.append(thread)
        return thread

    def sleep(self, seconds):
        time.sleep(seconds)


def wait_until(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_task_fires_repeatedly():
    sio = ThreadedSocketIO()
    calls = []
    task = RepeatingTask(sio, 0.01, lambda: calls.append(time.monotonic()), name='t').start()
    try:
        assert wait_until(lambda: len(calls) >= 3)
    finally:
        task.cancel()


def test_start_is_idempotent():
    sio = ThreadedSocketIO()
    task = RepeatingTask(sio, 0.01, lambda: None, name='t')
    task.start()
    task.start()
    task.cancel()
    assert len(sio.threads) == 1


def test_cancel_stops_the_loop():
    sio = ThreadedSocketIO()
    calls = []
    task = RepeatingTask(sio, 0.01, lambda: calls.append(1), name='t').start()
    assert wait_until(lambda: len(calls) >= 2)
    task.cancel()
    sio.threads[0].join(timeout=1.0)
    assert not sio.threads[0].is_alive()
    fired = len(calls)
    time.sleep(0.05)
    assert len(calls) == fired


def test_cancelled_task_never_starts():
    sio = ThreadedSocketIO()
    task = RepeatingTask(sio, 0.01, lambda: None, name='t')
    task.cancel()
    task.start()
    assert sio.threads == []


def test_callback_error_is_logged_and_loop_continues(caplog):
    sio = ThreadedSocketIO()
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError('boom')

    logger = logging.getLogger('pong.tests.timers')
    with caplog.at_level(logging.ERROR, logger='pong.tests.timers'):
        task = RepeatingTask(sio, 0.01, flaky, name='flaky', logger=logger).start()
        try:
            assert wait_until(lambda: len(calls) >= 3)
        finally:
            task.cancel()
    assert '[task-error] task=flaky' in caplog.text


def test_slow_callback_does_not_trigger_burst():
    sio = ThreadedSocketIO()
    starts = []
    slow_done = []

    def callback():
        starts.append(time.monotonic())
        if len(starts) == 1:
            time.sleep(0.3)
            slow_done.append(time.monotonic())

    task = RepeatingTask(sio, 0.02, callback, name='slow').start()
    try:
        assert wait_until(lambda: len(starts) >= 3)
    finally:
        task.cancel()
    # Missed firings are skipped, so nothing runs right after the slow call returns
    burst = [t for t in starts[1:] if t - slow_done[0] < 0.01]
    assert len(burst) <= 1


def test_ai_timer_perceives_and_stops_on_leave(monkeypatch):
    monkeypatch.setitem(DIFFICULTY_PROFILES, 'hard',
                        DifficultyProfile('hard', paddle_speed=8, error_range=5, refresh_period=0.01))
    sio = ThreadedSocketIO()
    registry = MatchRegistry(socketio=sio, timers_enabled=True, ai_mistake_chance=0.0)
    match, _ = registry.join_vs_ai('a', 'hard')
    controller = match.ai
    match.ball.x, match.ball.y, match.ball.vx, match.ball.vy = 400, 30, 2, 0

    assert wait_until(lambda: controller.target_y is not None)

    registry.leave('a')
    sio.threads[0].join(timeout=1.0)
    assert not sio.threads[0].is_alive()
    with registry.lock:
        target = controller.target_y
    time.sleep(0.05)
    assert controller.target_y == target
    assert match.right.vy == 0


def test_ai_timer_replaced_on_difficulty_change(monkeypatch):
    monkeypatch.setitem(DIFFICULTY_PROFILES, 'easy',
                        DifficultyProfile('easy', paddle_speed=3, error_range=40, refresh_period=0.01))
    monkeypatch.setitem(DIFFICULTY_PROFILES, 'hard',
                        DifficultyProfile('hard', paddle_speed=8, error_range=5, refresh_period=0.01))
    sio = ThreadedSocketIO()
    registry = MatchRegistry(socketio=sio, timers_enabled=True, ai_mistake_chance=0.0)
    match, _ = registry.join_vs_ai('a', 'easy')
    assert registry.set_difficulty(match.id, 'hard')
    sio.threads[0].join(timeout=1.0)
    assert not sio.threads[0].is_alive()
    assert sio.threads[1].is_alive()
    registry.leave('a')
    sio.threads[1].join(timeout=1.0)
    assert not sio.threads[1].is_alive()
