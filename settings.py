import copy
import json
import logging
import os
from pathlib import Path

DEFAULT_SETTINGS = {
    "lane_width": 14,  # 每条分支线占用的宽度
    "row_height": 22,  # 每行提交的高度
    "commit_radius": 4,  # 提交圆点半径
    "last_branch": None,  # 上次查看的分支
    "recent_paths": [],  # 最近使用的路径过滤条件
    "max_recent": 10,  # 最大记录数
    "column_widths": {  # 各列的宽度设置
        "graph": 128,
        "message": 256,
    },
}


class Settings:
    def __init__(self, config_dir=None):
        # 配置目录，可以用环境变量 GIT_GRAPH_CONFIG_DIR 覆盖
        if config_dir is None:
            config_dir = os.getenv("GIT_GRAPH_CONFIG_DIR") or os.path.join(str(Path.home()), ".git_graph")
        self.config_dir = config_dir

        # 配置文件路径
        self.config_file = os.path.join(self.config_dir, "settings.json")

        self.settings = copy.deepcopy(DEFAULT_SETTINGS)

        # 加载已有设置
        self.load_settings()

    def load_settings(self):
        """加载设置"""
        if not os.path.exists(self.config_file):
            return
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                saved_settings = json.load(f)
            self.settings.update(saved_settings)
        except (OSError, ValueError) as e:
            logging.warning(f"加载设置失败：{e!s}")

    def save_settings(self):
        """保存设置"""
        try:
            os.makedirs(self.config_dir, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.settings, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logging.warning(f"保存设置失败：{e!s}")

    def get_lane_width(self):
        return self.settings.get("lane_width", DEFAULT_SETTINGS["lane_width"])

    def get_row_height(self):
        return self.settings.get("row_height", DEFAULT_SETTINGS["row_height"])

    def get_commit_radius(self):
        return self.settings.get("commit_radius", DEFAULT_SETTINGS["commit_radius"])

    def get_last_branch(self):
        """获取上次查看的分支"""
        return self.settings.get("last_branch")

    def set_last_branch(self, branch):
        self.settings["last_branch"] = branch
        self.save_settings()

    def add_recent_path(self, path):
        """添加最近使用的路径过滤条件"""
        if not path:
            return
        recent = self.settings["recent_paths"]

        # 如果已经在列表中，先移除
        if path in recent:
            recent.remove(path)

        # 添加到列表开头
        recent.insert(0, path)

        # 保持列表在最大长度以内
        self.settings["recent_paths"] = recent[: self.settings["max_recent"]]

        self.save_settings()

    def get_recent_paths(self):
        """获取最近使用的路径列表"""
        return self.settings["recent_paths"]

    def save_column_widths(self, column_widths):
        """保存各列的宽度设置"""
        self.settings["column_widths"].update(column_widths)
        self.save_settings()

    def get_column_width(self, column_name):
        """获取指定列的宽度"""
        column_widths = self.settings.get("column_widths", DEFAULT_SETTINGS["column_widths"])
        return column_widths.get(column_name, 128)


# 创建全局settings实例
settings = Settings()
