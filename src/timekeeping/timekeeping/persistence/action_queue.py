from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

from ..core.constants import DEFAULT_WRITE_QUEUE_SIZE
from ..core.exceptions import AttemptToAddToStoppingQueueError, PersistenceFailedError

logger = logging.getLogger(__name__)

_STOP = object()


class ActionQueue:
    """Runs side effects (writing files, making directories) on one background thread.

    Actions run in the order they were enqueued. The queue is bounded, so a
    caller that outruns the disk blocks in enqueue() instead of growing memory.

    stop() refuses new actions, waits until every queued action has run, then
    ends the worker thread. It has no timeout: shutdown takes as long as the
    outstanding writes take. A failed action is logged when it happens and
    stop() then raises PersistenceFailedError, so lost writes are not hidden.
    """

    def __init__(self, name: str, *, maxsize: int = DEFAULT_WRITE_QUEUE_SIZE):
        self.name = name
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._stopping = False
        self._stop_lock = threading.Lock()
        self._failures: list[BaseException] = []
        self._worker = threading.Thread(target=self._run, name=f"action-queue-{name}", daemon=True)
        self._worker.start()

    @property
    def is_stopping(self) -> bool:
        return self._stopping

    def enqueue(self, action: Callable[[], None]) -> None:
        # Checked and put under the lock so nothing can land behind the stop marker.
        with self._stop_lock:
            if self._stopping:
                raise AttemptToAddToStoppingQueueError(f"ActionQueue for {self.name} is stopping; refusing new action")
            self._queue.put(action)

    def stop(self) -> None:
        with self._stop_lock:
            if self._stopping:
                return
            self._stopping = True
        self._queue.put(_STOP)
        self._queue.join()
        self._worker.join()
        logger.info("ActionQueue for %s is stopped.", self.name)
        if self._failures:
            raise PersistenceFailedError(
                f"ActionQueue for {self.name} had {len(self._failures)} failed action(s)"
            ) from self._failures[0]

    def _run(self) -> None:
        while True:
            action = self._queue.get()
            try:
                if action is _STOP:
                    return
                action()
            except Exception as ex:
                logger.exception("ActionQueue for %s failed running an action", self.name)
                self._failures.append(ex)
            finally:
                self._queue.task_done()
