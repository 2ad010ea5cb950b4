import logging
from typing import TYPE_CHECKING, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal

if TYPE_CHECKING:
    from git_manager import GitManager


class GraphLayoutThread(QThread):
    """用于在后台计算提交图布局的线程"""

    finished = pyqtSignal(int, object)  # (request_id, nodes)
    error = pyqtSignal(int, str)  # (request_id, error_message)

    def __init__(self, request_id: int, git_manager: "GitManager", branch=None, path=None, parent=None):
        super().__init__(parent)
        self.request_id = request_id
        self.git_manager = git_manager
        self.branch = branch
        self.path = path

    def run(self):
        try:
            nodes = self.git_manager.get_commit_graph(self.branch, self.path)
            self.finished.emit(self.request_id, nodes)
        except Exception as e:
            logging.exception("计算提交图失败")
            self.error.emit(self.request_id, str(e))


class GraphLayoutRunner(QObject):
    """Keeps one layout in flight per view and drops results of superseded requests.

    Only the most recent request reaches `graph_ready` / `graph_failed`; the
    walk of an older request is not interrupted, its result is just ignored.
    """

    graph_ready = pyqtSignal(object)
    graph_failed = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._latest_request = 0
        self._thread: Optional[GraphLayoutThread] = None
        self._pending: Optional[tuple] = None

    @property
    def latest_request(self) -> int:
        return self._latest_request

    def is_running(self) -> bool:
        # true until the result of the thread has been delivered
        return self._thread is not None

    def request(self, git_manager: "GitManager", branch=None, path=None) -> int:
        self._latest_request += 1
        if self.is_running():
            # started once the current thread is done
            self._pending = (self._latest_request, git_manager, branch, path)
        else:
            self._start(self._latest_request, git_manager, branch, path)
        return self._latest_request

    def _start(self, request_id, git_manager, branch, path):
        thread = GraphLayoutThread(request_id, git_manager, branch, path, parent=self)
        thread.finished.connect(self._on_finished)
        thread.error.connect(self._on_error)
        self._thread = thread
        thread.start()

    def _start_pending(self):
        if self._pending is None:
            return
        pending, self._pending = self._pending, None
        self._start(*pending)

    def _on_finished(self, request_id: int, nodes: list):
        self._release_thread()
        if request_id == self._latest_request:
            self.graph_ready.emit(nodes)
        else:
            logging.debug("Dropping graph of superseded request %d", request_id)
        self._start_pending()

    def _on_error(self, request_id: int, message: str):
        self._release_thread()
        if request_id == self._latest_request:
            self.graph_failed.emit(message)
        self._start_pending()

    def _release_thread(self):
        if self._thread is not None:
            self._thread.wait()
            self._thread.deleteLater()
            self._thread = None
