"""Tests for Project Index assembly, summary and search."""

from pathlib import Path

from codeweaver.indexer import build_project_index, search_index, summarize_index
from codeweaver.models import FileSymbolRecord, ProjectIndex


class TestBuildProjectIndex:
    """Walking and extracting a whole repository."""

    def test_sample_project(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)

        paths = [f.path for f in index.files]
        assert "lib/services.ts" in paths
        assert "backend/services.py" in paths
        assert "cmd/worker/main.go" in paths
        assert index.tech_stack == ["TypeScript", "Python", "Go", "JavaScript"]
        assert index.total_files == len(index.files) == len(index.file_tree)
        assert index.version == "2.0.0"
        assert index.root_path == str(sample_project_path.resolve())

    def test_totals_are_sums(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)
        assert index.total_functions == sum(len(f.functions) for f in index.files)
        assert index.total_classes == sum(len(f.classes) for f in index.files)
        assert index.total_types == sum(len(f.types) for f in index.files)
        assert index.total_variables == sum(len(f.variables) for f in index.files)

    def test_oversized_files_are_excluded(self, temp_dir: Path):
        (temp_dir / "big.ts").write_text("// " + "x" * 600_000)
        (temp_dir / "small.ts").write_text("export const a = 1;\n")

        index = build_project_index(temp_dir)
        assert [f.path for f in index.files] == ["small.ts"]
        assert [e.path for e in index.file_tree] == ["small.ts"]

    def test_custom_size_limit(self, temp_dir: Path):
        (temp_dir / "a.py").write_text("x = 1\n" * 100)
        assert build_project_index(temp_dir, max_file_size=50).files == []

    def test_unsupported_language_still_counts(self, temp_dir: Path):
        (temp_dir / "main.rs").write_text("fn main() {}\n")
        index = build_project_index(temp_dir)

        assert index.total_files == 1
        assert index.tech_stack == ["Rust"]
        assert index.files[0].functions == []

    def test_custom_extractor(self, temp_dir: Path):
        (temp_dir / "a.ts").write_text("const a = 1;\n")
        seen = []

        def fake(content: str, language: str, path: str) -> FileSymbolRecord:
            seen.append((language, path))
            return FileSymbolRecord(path="ignored", size=0, language=language)

        index = build_project_index(temp_dir, extractor=fake)
        assert seen == [("TypeScript", "a.ts")]
        assert index.files[0].path == "a.ts"
        assert index.files[0].size == len("const a = 1;\n")

    def test_round_trip(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)
        restored = ProjectIndex.from_dict(index.to_dict())
        assert restored.to_dict() == index.to_dict()


class TestSummaryAndSearch:
    """Summaries and filtered lookups over an index."""

    def test_summary(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)
        summary = summarize_index(index, top=3)

        assert summary["totalFiles"] == index.total_files
        assert summary["techStack"] == index.tech_stack
        assert len(summary["topFiles"]) == 3

    def test_search_by_language(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)
        result = search_index(index, language="go")

        assert result["total"] == 1
        assert result["files"][0]["path"] == "cmd/worker/main.go"
        assert "imports" not in result["files"][0]

    def test_search_by_symbol(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)
        result = search_index(index, query="formatuser", include_imports=True)

        paths = [f["path"] for f in result["files"]]
        assert "lib/format.ts" in paths
        assert "lib/index.ts" in paths
        assert any("imports" in f for f in result["files"])

    def test_search_truncation(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)
        result = search_index(index, limit=2)

        assert result["total"] == index.total_files
        assert result["showing"] == 2
        assert result["truncated"] is True

    def test_search_by_path(self, sample_project_path: Path):
        index = build_project_index(sample_project_path)
        result = search_index(index, file="backend/")
        assert result["total"] == 4
        assert result["truncated"] is False
