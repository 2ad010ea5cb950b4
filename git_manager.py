import logging
import os
from typing import List, Optional

import git

from git_graph_data import CommitSignature
from git_graph_layout import calculate_commit_graph


class GitManager:
    """Repository access for the log graph.

    Besides the branch helpers used by the window, this is the provider the
    layout engine queries: commits are GitPython `Commit` objects and are only
    touched through the get_* methods below.
    """

    def __init__(self, repo_path: str):
        self.repo_path = repo_path
        self.repo: Optional[git.Repo] = None
        # directory the user started in, relative to the repository root
        self.directory_spec: Optional[str] = None

    def initialize(self) -> bool:
        """初始化 Git 仓库"""
        try:
            self.repo = git.Repo(self.repo_path)
            return True
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            return False

    def get_branches(self) -> List[str]:
        """获取所有分支"""
        if not self.repo:
            return []
        return [branch.name for branch in self.repo.branches]

    def has_branch(self, branch_name: str) -> bool:
        return branch_name in self.get_branches()

    def get_default_branch(self) -> Optional[str]:
        """获取默认分支，HEAD 分离时返回 None"""
        if not self.repo:
            return None
        if self.repo.head.is_detached:
            return None
        return self.repo.active_branch.name

    def get_branch_tip(self, branch: Optional[str] = None) -> git.Commit:
        """获取分支最新的提交，branch 为 None 时使用 HEAD"""
        if not self.repo:
            raise ValueError("Repository not initialized.")
        if branch is None:
            return self.repo.head.commit
        if not self.has_branch(branch):
            raise ValueError(f"Branch '{branch}' does not exist.")
        return self.repo.heads[branch].commit

    def get_sha(self, commit: git.Commit) -> str:
        return commit.hexsha

    def get_parents(self, commit: git.Commit) -> list[git.Commit]:
        return list(commit.parents)

    def get_commit_details(self, commit: git.Commit) -> dict:
        return {
            "message": commit.message,
            "message_short": commit.summary,
            "author": CommitSignature(commit.author.name, commit.author.email, commit.authored_datetime),
            "committer": CommitSignature(commit.committer.name, commit.committer.email, commit.committed_datetime),
        }

    def get_tree_entry_names(self, commit: git.Commit) -> list[str]:
        """Names of the top level entries of the commit's tree."""
        return [entry.name for entry in commit.tree]

    def get_changed_paths(self, parent: git.Commit, commit: git.Commit) -> list[tuple[Optional[str], Optional[str]]]:
        """(old_path, new_path) for every change between `parent` and `commit`, renames detected."""
        return [(diff.a_path, diff.b_path) for diff in parent.diff(commit)]

    def normalize_path_filter(self, path: Optional[str]) -> Optional[str]:
        """
        把路径过滤条件转换为相对于仓库根目录、使用正斜杠的形式。

        空字符串和 "." 表示不过滤，返回 None。
        """
        if not path:
            return None
        if os.path.isabs(path):
            root = self.repo.working_dir if self.repo else self.repo_path
            path = os.path.relpath(path, root)
        path = os.path.normpath(path).replace(os.sep, "/")
        if path == ".":
            return None
        return path

    def get_commit_graph(self, branch: Optional[str] = None, path: Optional[str] = None):
        """计算分支的提交图布局

        参数：
            branch: 分支名称，None 表示 HEAD
            path: 路径过滤条件，None 表示显示全部提交
        """
        tip = self.get_branch_tip(branch)
        path = self.normalize_path_filter(path)
        logging.info(f"GitManager: 计算提交图 (分支：{branch or 'HEAD'}, 路径：{path or '全部'})")
        return calculate_commit_graph(self, tip, path)


def find_repository(start_path: str) -> Optional[GitManager]:
    """Opens the repository containing `start_path`, walking up parent directories."""
    start_path = os.path.abspath(start_path)
    current = start_path
    while True:
        manager = GitManager(current)
        if manager.initialize():
            if current != start_path:
                manager.directory_spec = os.path.relpath(start_path, current).replace(os.sep, "/")
            return manager

        parent = os.path.dirname(current)
        if parent == current:
            logging.warning("No git repository found from %s", start_path)
            return None
        current = parent
