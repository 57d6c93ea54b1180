"""Facade tying indexing, map building and queries to one workspace store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import config_manager
from .code_maps import build_code_maps, summarize_code_maps
from .dependency_graph import build_dependency_graph
from .indexer import build_project_index, summarize_index
from .queries import NO_INDEX, QueryResult, query_code_maps, query_index
from .storage import WeaverStore

logger = logging.getLogger(__name__)


class WeaverOrchestrator:
    """Runs each engine operation against a :class:`WeaverStore`.

    Every method returns a :class:`QueryResult`; missing prerequisites are
    reported as failed results rather than raised.
    """

    def __init__(self, store: WeaverStore):
        self.store = store

    def index(self, root: Optional[Path] = None) -> QueryResult:
        root = Path(root) if root is not None else self.store.workspace
        settings = config_manager.load_index_config(self.store.workspace)
        index = build_project_index(
            root,
            max_file_size=settings["max_file_size"],
            skip_dirs=config_manager.extra_skip_dirs(self.store.workspace),
        )
        self.store.write_index(index)
        return QueryResult(
            success=True,
            result=summarize_index(index),
            message=f"Indexed {index.total_files} files",
        )

    def build_maps(self) -> QueryResult:
        index = self.store.read_index()
        if index is None:
            return QueryResult.fail(NO_INDEX)
        bundle = build_code_maps(index)
        self.store.write_code_maps(bundle)
        return QueryResult(success=True, result=summarize_code_maps(bundle), message="Code maps built successfully")

    def dependency_graph(self) -> QueryResult:
        index = self.store.read_index()
        if index is None:
            return QueryResult.fail(NO_INDEX)
        graph = build_dependency_graph(index)
        self.store.write_dependency_graph(graph)
        logger.info(
            "Built dependency graph: %d edges, %d entry points, %d circular deps",
            len(graph.edges), len(graph.entry_points), len(graph.circular_deps),
        )
        return QueryResult(
            success=True,
            result=graph.summary(),
            message=f"Dependency graph computed: {len(graph.edges)} edges across {index.total_files} files",
        )

    def query(self, view: str, query: Optional[str] = None, file: Optional[str] = None) -> QueryResult:
        return query_code_maps(self.store.read_code_maps(), view, query=query, file=file)

    def search(
        self,
        file: Optional[str] = None,
        language: Optional[str] = None,
        query: Optional[str] = None,
        include_imports: bool = False,
        include_variables: bool = False,
    ) -> QueryResult:
        return query_index(
            self.store.read_index(),
            file=file,
            language=language,
            query=query,
            include_imports=include_imports,
            include_variables=include_variables,
        )
