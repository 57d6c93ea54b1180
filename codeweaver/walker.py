"""Source walker: enumerate indexable files under a project root."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Set

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".ts": "TypeScript", ".tsx": "TypeScript",
    ".js": "JavaScript", ".jsx": "JavaScript", ".mjs": "JavaScript", ".cjs": "JavaScript",
    ".py": "Python",
    ".go": "Go",
    ".rs": "Rust",
    ".java": "Java",
    ".rb": "Ruby",
    ".cs": "C#",
    ".cpp": "C++", ".cc": "C++", ".c": "C", ".h": "C/C++", ".hpp": "C++",
    ".swift": "Swift",
    ".php": "PHP",
    ".kt": "Kotlin",
}

SKIP_DIRS: Set[str] = {
    "node_modules", ".git", "dist", "build", ".next", ".nuxt", "__pycache__",
    ".cache", ".vscode", ".idea", "coverage", ".weaver", ".turbo", ".output",
    "vendor", "target", "bin", "obj", ".gradle", ".mvn", "venv", ".venv", "env",
}


@dataclass(frozen=True)
class SourceFile:
    """One walker hit: absolute path, repo-relative POSIX path, size, extension."""

    path: Path
    rel_path: str
    size: int
    extension: str

    @property
    def language(self) -> str:
        return LANGUAGE_MAP[self.extension]


def language_for(path: str) -> Optional[str]:
    return LANGUAGE_MAP.get(os.path.splitext(path)[1].lower())


def walk_source_files(
    root: Path,
    extra_skip_dirs: Iterable[str] = (),
) -> Iterator[SourceFile]:
    """Yield every file with a recognised extension, in sorted path order.

    Directories whose *name* is in the skip-set are pruned wholesale.
    Unreadable directories and files are skipped silently.
    """
    root = Path(root)
    skip = SKIP_DIRS | set(extra_skip_dirs)

    def _on_error(exc: OSError) -> None:
        logger.debug("Cannot list %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in skip)
        for filename in sorted(filenames):
            ext = os.path.splitext(filename)[1].lower()
            if ext not in LANGUAGE_MAP:
                continue
            full = Path(dirpath) / filename
            try:
                size = full.stat().st_size
            except OSError as exc:
                logger.debug("Cannot stat %s: %s", full, exc)
                continue
            yield SourceFile(
                path=full,
                rel_path=full.relative_to(root).as_posix(),
                size=size,
                extension=ext,
            )
