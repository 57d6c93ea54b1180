"""Configuration constants for the CodeWeaver index and code-map store."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CODEWEAVER_HOME", str(Path.home() / ".codeweaver"))).expanduser()
STATE_DIR_NAME = os.environ.get("CODEWEAVER_STATE_DIR", ".weaver")

INDEX_FILE = "index.json"
CODE_MAPS_FILE = "code-maps.json"
DEPENDENCY_GRAPH_FILE = "dependency-graph.json"
CONFIG_FILE_NAME = "config.toml"

INDEX_VERSION = "2.0.0"
CODE_MAPS_VERSION = "1.0.0"

# Files above this size (bytes) are never handed to the extractor.
MAX_FILE_SIZE = 500_000

# ModuleNode.publicAPI is truncated to this many names.
PUBLIC_API_CAP = 20

# Directory names added to the walker's fixed skip-set, on top of any
# ``[index].skip_dirs`` entries from config.toml.
EXTRA_SKIP_DIRS: frozenset = frozenset(
    d.strip() for d in os.environ.get("CODEWEAVER_SKIP_DIRS", "").split(",") if d.strip()
)
