import io
import json
import re
from pathlib import Path

import pytest

from cas.analyzer import SourceFile
from cas.discovery import DiscoveryError, discover_sources, read_sources, translate_gitignore_line
from cas.layers import API_LAYER, LAYER_ORDER
from cas.model_builder import ModelBuilder
from cli.architecture_cli import run

BROKEN_SOURCE = "function broken( {\n  return 1 \\\\ ;\n"


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _strip_ansi(text: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def _sample_project(root: Path) -> None:
    _write_file(
        root / "src" / "app.js",
        'import { helper } from "./utils/helper";\n'
        'import React from "react";\n'
        "export function main() { return helper(1); }\n",
    )
    _write_file(
        root / "src" / "utils" / "helper.ts",
        "export function helper(x: number): number { if (x > 0) { return x; } return -x; }\n",
    )
    _write_file(root / "src" / "api" / "client.ts", "const base = 'http://localhost';\n")


def test_ph1_bld_001_builds_records_layers_and_graph_in_enumeration_order() -> None:
    files = [
        SourceFile.from_text("src/app.js", 'import { helper } from "./utils/helper";\n'),
        SourceFile.from_text(
            "src/utils/helper.ts", "export function helper() { return 1; }\n"
        ),
        SourceFile.from_text("src/api/client.ts", "const a = 1;\n"),
    ]

    model = ModelBuilder(max_workers=2).build(files)

    assert [record.path for record in model.records] == [f.path for f in files]
    assert model.records[0].dependencies == frozenset({"./utils/helper"})
    assert model.graph.targets("src/app.js") == ("src/utils/helper.ts",)
    assert model.layers["src/api/client.ts"] == API_LAYER
    assert model.errors == ()


def test_ph1_bld_002_unparsable_file_degrades_without_stopping_the_batch() -> None:
    files = [
        SourceFile.from_text("src/broken.js", BROKEN_SOURCE),
        SourceFile.from_text("src/ok.js", "export function ok() { return 1; }\n"),
    ]

    model = ModelBuilder().build(files)
    broken, ok = model.records

    assert broken.complexity == 0
    assert broken.exports == ()
    assert broken.functions == ()
    assert broken.classes == ()
    assert broken.dependencies == frozenset()
    assert broken.size == len(BROKEN_SOURCE.encode("utf-8"))
    assert ok.exports == ("ok",)
    assert ok.complexity == 1
    assert [error.file_path for error in model.errors] == ["src/broken.js"]
    assert "unparsable" in model.errors[0].message


def test_ph1_bld_003_unreadable_file_yields_zero_size_empty_record() -> None:
    files = [SourceFile.unreadable("src/locked.js", "permission denied")]

    model = ModelBuilder().build(files)

    assert model.records[0].size == 0
    assert model.records[0].complexity == 0
    assert model.errors[0].message == "unreadable: permission denied"


def test_ph1_bld_004_parallel_build_preserves_order_and_counts_every_layer() -> None:
    files = [
        SourceFile.from_text(f"src/m{i:02d}.js", f"export const v{i} = {i};\n")
        for i in range(25)
    ]

    model = ModelBuilder(max_workers=8).build(files)

    assert [record.path for record in model.records] == [f.path for f in files]
    assert len(model.layers) == len(files)
    assert all(label in LAYER_ORDER for label in model.layers.values())


def test_ph1_bld_005_builder_rejects_non_positive_worker_count() -> None:
    with pytest.raises(ValueError):
        ModelBuilder(max_workers=0)


def test_ph1_bld_006_typescript_and_modern_javascript_produce_full_records() -> None:
    files = [
        SourceFile.from_text(
            "src/utils/helper.ts",
            "import { x } from './dep';\n"
            "export function helper(v: number): number { if (v > 0) { return v + x; } return -v; }\n",
        ),
        SourceFile.from_text("src/f.js", "import './utils/helper';\nexport const g = (o) => o?.b ?? 1;\n"),
        SourceFile.from_text("src/dep.ts", "export const x: number = 1;\n"),
    ]

    model = ModelBuilder().build(files)
    helper, modern, dep = model.records

    assert model.errors == ()
    assert helper.exports == ("helper",)
    assert helper.dependencies == frozenset({"./dep"})
    assert helper.complexity == 2
    assert modern.exports == ("g",)
    assert modern.complexity == 1
    assert dep.exports == ("x",)
    assert model.graph.targets("src/utils/helper.ts") == ("src/dep.ts",)
    assert model.graph.targets("src/f.js") == ("src/utils/helper.ts",)


def test_ph1_dis_001_discovery_is_breadth_first_sorted_and_gitignore_aware(
    tmp_path: Path,
) -> None:
    root = tmp_path / "project"
    _write_file(root / ".gitignore", "dist/\n")
    _write_file(root / "index.js", "")
    _write_file(root / "README.md", "")
    _write_file(root / "dist" / "bundle.js", "")
    _write_file(root / "node_modules" / "lib" / "index.js", "")
    _write_file(root / ".git" / "hooks" / "pre-commit.js", "")
    _write_file(root / "src" / ".gitignore", "*.gen.js\n")
    _write_file(root / "src" / "b.gen.js", "")
    _write_file(root / "src" / "a.ts", "")
    _write_file(root / "src" / "deep" / "c.jsx", "")
    _write_file(root / "src" / "deep" / "d.gen.js", "")
    _write_file(root / "src" / "styles.css", "")

    assert discover_sources(root) == ["index.js", "src/a.ts", "src/deep/c.jsx"]


def test_ph1_dis_002_missing_or_non_directory_root_is_run_fatal(tmp_path: Path) -> None:
    not_a_dir = tmp_path / "file.js"
    _write_file(not_a_dir, "")

    with pytest.raises(DiscoveryError):
        discover_sources(tmp_path / "missing")
    with pytest.raises(DiscoveryError):
        discover_sources(not_a_dir)


def test_ph1_dis_003_read_sources_keeps_going_after_unreadable_file(tmp_path: Path) -> None:
    root = tmp_path / "project"
    _write_file(root / "ok.js", "const é = 1;")
    (root / "bad.js").write_bytes(b"\xff\xfe\x00bad")

    sources = read_sources(root, ["bad.js", "ok.js"])

    assert sources[0].read_error is not None
    assert sources[0].size == 0
    assert sources[0].text == ""
    assert sources[1].read_error is None
    assert sources[1].size == len("const é = 1;".encode("utf-8"))


def test_ph1_dis_004_nested_gitignore_lines_are_rooted_at_their_directory() -> None:
    assert translate_gitignore_line("*.log", base="") == "*.log"
    assert translate_gitignore_line("*.log", base="pkg") == "/pkg/**/*.log"
    assert translate_gitignore_line("/build", base="pkg") == "/pkg/build"
    assert translate_gitignore_line("!keep.log", base="pkg") == "!/pkg/**/keep.log"
    assert translate_gitignore_line("# comment", base="pkg") == "# comment"


def test_ph1_cli_001_analyze_writes_markdown_reports(tmp_path: Path) -> None:
    project_root = tmp_path / "project"
    output = tmp_path / "out"
    _sample_project(project_root)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["analyze", "--path", str(project_root), "--output", str(output)],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    for filename in (
        "architecture.md",
        "diagram.mmd",
        "dependency-matrix.md",
        "complexity-report.md",
    ):
        assert (output / filename).is_file()
    diagram = (output / "diagram.mmd").read_text(encoding="utf-8")
    assert diagram.startswith("graph TB")
    assert "src_app_js --> src_utils_helper_ts" in diagram
    assert "modules=3 edges=1 errors=0" in _strip_ansi(stdout.getvalue())


def test_ph1_cli_002_analyze_json_prints_model_payload(tmp_path: Path) -> None:
    project_root = tmp_path / "project"
    _sample_project(project_root)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["analyze", "--path", str(project_root), "--format", "json"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    payload = json.loads(_strip_ansi(stdout.getvalue()))
    paths = [module["path"] for module in payload["modules"]]
    assert paths == ["src/app.js", "src/api/client.ts", "src/utils/helper.ts"]
    app = payload["modules"][0]
    assert app["resolved"] == ["src/utils/helper.ts"]
    assert app["external"] == ["react"]
    assert payload["modules"][1]["layer"] == API_LAYER


def test_ph1_cli_003_analyze_table_lists_modules(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("COLUMNS", "200")
    project_root = tmp_path / "project"
    _sample_project(project_root)
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["analyze", "--path", str(project_root), "--format", "table"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    compact_text = re.sub(r"[^a-zA-Z0-9_/.]+", "", _strip_ansi(stdout.getvalue()))
    assert "dependencies" in compact_text
    assert "src/api/client.ts" in compact_text
    assert "APILayer" in compact_text


def test_ph1_cli_004_analyze_reports_soft_errors_on_stderr(tmp_path: Path) -> None:
    project_root = tmp_path / "project"
    _write_file(project_root / "broken.js", BROKEN_SOURCE)
    _write_file(project_root / "ok.js", "export const ok = 1;\n")
    stdout = io.StringIO()
    stderr = io.StringIO()

    exit_code = run(
        ["analyze", "--path", str(project_root), "--format", "json"],
        stdout=stdout,
        stderr=stderr,
    )

    assert exit_code == 0
    assert "analyzer_error:" in stderr.getvalue()
    assert "broken.js" in stderr.getvalue()
    payload = json.loads(_strip_ansi(stdout.getvalue()))
    assert [module["path"] for module in payload["modules"]] == ["broken.js", "ok.js"]


def test_ph1_cli_005_missing_path_and_bad_arguments_exit_with_two(tmp_path: Path) -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()

    missing = run(
        ["analyze", "--path", str(tmp_path / "missing")], stdout=stdout, stderr=stderr
    )
    bad_format = run(
        ["analyze", "--path", str(tmp_path), "--format", "xml"],
        stdout=stdout,
        stderr=stderr,
    )
    bad_workers = run(
        ["analyze", "--path", str(tmp_path), "--workers", "0"],
        stdout=stdout,
        stderr=stderr,
    )

    assert missing == 2
    assert "does not exist" in stderr.getvalue()
    assert bad_format == 2
    assert bad_workers == 2
