import logging
import os
import sys
from typing import Callable, Optional

from PyQt6.QtWidgets import QApplication, QMainWindow

from git_graph_view import GitGraphView
from git_manager import find_repository
from settings import settings

USAGE = """usage: main.py log [<branch>] [--] [<path>]

Displays the commit graph of <branch> (HEAD by default), limited to commits
touching <path> when given."""


class UsageError(Exception):
    pass


class LogArgs:
    def __init__(self, branch: Optional[str] = None, path: Optional[str] = None):
        self.branch = branch
        self.path = path

    def __eq__(self, other):
        return isinstance(other, LogArgs) and (self.branch, self.path) == (other.branch, other.path)

    def __repr__(self):
        return f"LogArgs(branch={self.branch!r}, path={self.path!r})"


def parse_log_args(
    args: list[str], has_branch: Callable[[str], bool], directory_spec: Optional[str] = None
) -> LogArgs:
    """
    Parses the arguments following `log`, the way `git log` reads them.

    `directory_spec` is where the command was started, relative to the
    repository root; it is the path filter unless a path is given.
    """
    log_args = LogArgs(path=directory_spec)

    if len(args) == 0:
        return log_args

    if len(args) == 1:
        if has_branch(args[0]):
            log_args.branch = args[0]
        else:
            log_args.path = args[0]
    elif len(args) == 2:
        if args[0] != "--":
            log_args.branch = args[0]
        log_args.path = args[1]
    elif len(args) == 3:
        if args[1] != "--":
            raise UsageError("Too many args.")
        log_args.branch = args[0]
        log_args.path = args[2]
    else:
        raise UsageError("Too many args.")

    if log_args.branch is not None and not has_branch(log_args.branch):
        raise UsageError(f"Couldn't find branch {log_args.branch}.")

    return log_args


class LogWindow(QMainWindow):
    def __init__(self, git_manager, log_args: LogArgs):
        super().__init__()
        self.git_manager = git_manager
        self.log_args = log_args

        branch = log_args.branch or git_manager.get_default_branch() or "HEAD"
        title = f"Log - {branch}"
        if log_args.path:
            title += f" - {log_args.path}"
        self.setWindowTitle(title)
        self.resize(1000, 700)

        self.graph_view = GitGraphView(self)
        self.setCentralWidget(self.graph_view)
        self.graph_view.graph_failed.connect(self._on_graph_failed)

    def refresh(self):
        self.graph_view.load_repository(self.git_manager, self.log_args.branch, self.log_args.path)

    def _on_graph_failed(self, message: str):
        self.statusBar().showMessage(message)


def setup_logging():
    # 根据环境变量设置日志级别
    log_level = logging.DEBUG if os.getenv("DEBUG") == "1" else logging.INFO

    # 配置日志
    logging.basicConfig(
        level=log_level, format="%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
    )
    # add file handler
    if os.getenv("LOG_TO_FILE") == "1":
        file_handler = logging.FileHandler("git_graph.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s")
        )
        logging.getLogger().addHandler(file_handler)


def main(argv=None):
    setup_logging()
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] != "log":
        print(USAGE, file=sys.stderr)
        return 2

    git_manager = find_repository(os.getcwd())
    if git_manager is None:
        print(f"Couldn't find a valid git repo from {os.getcwd()}.", file=sys.stderr)
        return 1

    try:
        log_args = parse_log_args(argv[1:], git_manager.has_branch, git_manager.directory_spec)
    except UsageError as e:
        print(e, file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 2

    if log_args.branch:
        settings.set_last_branch(log_args.branch)
    settings.add_recent_path(log_args.path)

    app = QApplication(sys.argv)
    window = LogWindow(git_manager, log_args)
    window.show()
    window.refresh()

    # 尝试解决失焦问题
    window.activateWindow()
    window.raise_()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
