from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from PyQt5.QtCore import QObject, pyqtSignal
from loguru import logger


class TaskRunner(QObject):
    """
    Выполняет запросы к базе данных в фоновых потоках.

    Колбэки вызываются в потоке интерфейса: сигнал, испущенный из рабочего потока,
    доставляется получателю через очередь событий Qt.
    """
    completed = pyqtSignal(object, object, object)

    def __init__(self, max_workers: int = 4, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="db")
        self.completed.connect(self._dispatch)

    def submit(self, fn: Callable[..., Any], on_success: Callable[[Any], None],
               on_error: Optional[Callable[[BaseException], None]] = None, *args: Any) -> Future:
        future = self.executor.submit(fn, *args)
        future.add_done_callback(lambda done: self._emit(done, on_success, on_error))
        return future

    def _emit(self, future: Future, on_success, on_error):
        if future.cancelled():
            return
        error = future.exception()
        result = None if error is not None else future.result()
        self.completed.emit((on_success, on_error), result, error)

    @staticmethod
    def _dispatch(callbacks, result, error):
        on_success, on_error = callbacks
        if error is None:
            on_success(result)
        elif on_error is not None:
            on_error(error)
        else:
            logger.opt(exception=error).error(f"Необработанная ошибка фоновой задачи: {error}")

    def shutdown(self):
        self.executor.shutdown(wait=False, cancel_futures=True)
