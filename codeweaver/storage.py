"""JSON persistence for the index, code maps and dependency graph.

Documents live under ``<workspace>/.weaver/``.  Each write replaces the
document wholesale: the previous version is kept as ``<name>.bak`` and the
new one is written to a temporary file and moved into place.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

from . import config
from .dependency_graph import DependencyGraph
from .models import CodeMapBundle, ProjectIndex

logger = logging.getLogger(__name__)


class WeaverStore:
    """Read/write the engine's documents for one workspace."""

    def __init__(self, workspace: Path) -> None:
        self.workspace = Path(workspace)
        self.state_dir = self.workspace / config.STATE_DIR_NAME
        self.index_path = self.state_dir / config.INDEX_FILE
        self.code_maps_path = self.state_dir / config.CODE_MAPS_FILE
        self.dependency_graph_path = self.state_dir / config.DEPENDENCY_GRAPH_FILE

    def exists(self) -> bool:
        return self.state_dir.is_dir()

    def init(self) -> Path:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        return self.state_dir

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def read_index(self) -> Optional[ProjectIndex]:
        payload = self._read(self.index_path)
        if payload is None:
            return None
        return ProjectIndex.from_dict(payload)

    def write_index(self, index: ProjectIndex) -> Path:
        return self._write(self.index_path, index.to_dict())

    # ------------------------------------------------------------------
    # Code maps
    # ------------------------------------------------------------------

    def read_code_maps(self) -> Optional[Dict[str, Any]]:
        """The stored bundle as a plain camelCase dict, or None."""
        return self._read(self.code_maps_path)

    def write_code_maps(self, bundle: CodeMapBundle) -> Path:
        return self._write(self.code_maps_path, bundle.to_dict())

    # ------------------------------------------------------------------
    # Dependency graph
    # ------------------------------------------------------------------

    def read_dependency_graph(self) -> Optional[Dict[str, Any]]:
        return self._read(self.dependency_graph_path)

    def write_dependency_graph(self, graph: DependencyGraph) -> Path:
        return self._write(self.dependency_graph_path, graph.to_dict())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable %s: %s", path.name, exc)
            return None
        if not isinstance(payload, dict):
            logger.warning("Ignoring %s: expected a JSON object", path.name)
            return None
        return payload

    def _write(self, path: Path, payload: Dict[str, Any]) -> Path:
        self.init()
        if path.exists():
            shutil.copyfile(path, path.with_name(path.name + ".bak"))
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp, path)
        logger.debug("Wrote %s", path)
        return path
