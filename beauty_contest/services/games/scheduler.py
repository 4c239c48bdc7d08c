import threading


class TimerHandle:
    """Cancellation token for one pending continuation."""

    def __init__(self, delay: float):
        self.delay = delay
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()


class BackgroundScheduler:
    """Run continuations after a delay on Socket.IO background tasks.

    - Uses socketio.sleep so it cooperates with eventlet/gevent as well as threads
    - Sleeps in slices of at most ``poll_interval`` and stops early once cancelled
    - Callbacks run inside an application context; a failing callback is logged
    """

    def __init__(self, app, socketio, poll_interval: float = 1.0):
        self.app = app
        self.socketio = socketio
        self.poll_interval = poll_interval

    def call_later(self, delay: float, callback, *args) -> TimerHandle:
        handle = TimerHandle(delay)

        def _worker():
            slept = 0.0
            while slept < delay:
                if handle.cancelled:
                    return
                step = min(self.poll_interval, delay - slept)
                self.socketio.sleep(step)
                slept += step
            if handle.cancelled:
                return
            with self.app.app_context():
                try:
                    callback(*args)
                except Exception:
                    self.app.logger.exception(
                        f"[timer-error] callback={getattr(callback, '__name__', callback)} args={args}"
                    )

        self.socketio.start_background_task(_worker)
        return handle
