"""Project Index assembly: walk a repository and extract every file."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import config
from .models import FileSymbolRecord, FileTreeEntry, ProjectIndex
from .parser import extract
from .walker import walk_source_files

logger = logging.getLogger(__name__)

Extractor = Callable[[str, str, str], FileSymbolRecord]


def build_project_index(
    root: Path,
    extractor: Optional[Extractor] = None,
    max_file_size: Optional[int] = None,
    skip_dirs: Iterable[str] = (),
) -> ProjectIndex:
    """Walk *root* and return a fresh ProjectIndex.

    Files larger than *max_file_size* (default ``config.MAX_FILE_SIZE``) and
    files that cannot be read are left out entirely.  Extraction failures
    never abort the walk; they yield an empty record for that file.
    """
    root = Path(root).resolve()
    extract_fn = extractor or extract
    limit = max_file_size if max_file_size is not None else config.MAX_FILE_SIZE

    files: List[FileSymbolRecord] = []
    tree: List[FileTreeEntry] = []
    tech_stack: List[str] = []

    for source in walk_source_files(root, skip_dirs):
        if source.size > limit:
            logger.debug("Skipping %s (%d bytes > %d)", source.rel_path, source.size, limit)
            continue
        try:
            content = source.path.read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.debug("Cannot read %s: %s", source.rel_path, exc)
            continue

        record = extract_fn(content, source.language, source.rel_path)
        record.path = source.rel_path
        record.size = source.size
        files.append(record)
        tree.append(FileTreeEntry(path=source.rel_path, size=source.size))
        if source.language not in tech_stack:
            tech_stack.append(source.language)

    index = ProjectIndex(
        files=files,
        file_tree=tree,
        tech_stack=tech_stack,
        root_path=str(root),
        indexed_at=datetime.now(timezone.utc).isoformat(),
        version=config.INDEX_VERSION,
    )
    logger.info(
        "Indexed %d files: %d functions, %d classes, %d types",
        index.total_files, index.total_functions, index.total_classes, index.total_types,
    )
    return index


def summarize_index(index: ProjectIndex, top: int = 10) -> Dict[str, Any]:
    """Totals plus the *top* files ranked by declared symbols."""
    ranked = sorted(
        index.files,
        key=lambda f: len(f.functions) + len(f.classes) + len(f.types),
        reverse=True,
    )
    return {
        "totalFiles": index.total_files,
        "totalFunctions": index.total_functions,
        "totalClasses": index.total_classes,
        "totalVariables": index.total_variables,
        "totalTypes": index.total_types,
        "techStack": list(index.tech_stack),
        "topFiles": [
            {
                "path": f.path,
                "language": f.language,
                "functions": [fn.name for fn in f.functions],
                "classes": [c.name for c in f.classes],
                "types": [t.name for t in f.types],
            }
            for f in ranked[:top]
        ],
    }


def search_index(
    index: ProjectIndex,
    file: Optional[str] = None,
    language: Optional[str] = None,
    query: Optional[str] = None,
    include_imports: bool = False,
    include_variables: bool = False,
    limit: int = 30,
) -> Dict[str, Any]:
    """Filter index files by path substring, language and symbol-name query."""
    matches = index.files
    if file:
        matches = [f for f in matches if file in f.path]
    if language:
        wanted = language.lower()
        matches = [f for f in matches if f.language.lower() == wanted]
    if query:
        needle = query.lower()
        matches = [f for f in matches if _mentions(f, needle)]

    results = []
    for record in matches[:limit]:
        payload = record.to_dict()
        if not include_imports:
            payload.pop("imports", None)
        if not include_variables:
            payload.pop("variables", None)
        results.append(payload)

    return {
        "total": len(matches),
        "showing": len(results),
        "truncated": len(matches) > limit,
        "files": results,
    }


def _mentions(record: FileSymbolRecord, needle: str) -> bool:
    names = (
        [f.name for f in record.functions]
        + [c.name for c in record.classes]
        + [t.name for t in record.types]
        + [v.name for v in record.variables]
        + list(record.exports)
    )
    return any(needle in name.lower() for name in names)
