import os
import sys
import tempfile

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Qt tests run without a display; settings must never touch the real home directory
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("GIT_GRAPH_CONFIG_DIR", tempfile.mkdtemp(prefix="git_graph_settings_"))
