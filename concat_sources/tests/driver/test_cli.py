# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from concat_sources.cli import main as concat_main


def _write_file(path: Path, text: str) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(text, encoding="utf-8")


def _project(root: Path) -> None:
	_write_file(root / "A.cs", "using X;\nnamespace Foo { class A {} }\n")
	_write_file(root / "B.cs", "using X;\nusing Y;\nnamespace Foo { class B {} }\nclass C {}\n")


def _run_json(argv: list[str], capsys: pytest.CaptureFixture[str]) -> tuple[int, dict]:
	rc = concat_main([*argv, "--json"])
	out = capsys.readouterr().out
	payload = json.loads(out) if out.strip() else {}
	return rc, payload


def test_merges_project_into_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_project(root)
	out = tmp_path / "All.cs"
	rc = concat_main(["--root", str(root), "--output", str(out)])
	assert rc == 0
	stdout = capsys.readouterr().out
	assert "Found 2 .cs files" in stdout
	assert "Done!" in stdout
	assert out.read_text(encoding="utf-8") == (
		"using X;\nusing Y;\n\nclass C {}\n\nnamespace Foo\n{\n    class A {}\n    class B {}\n}\n"
	)


def test_output_directory_gets_default_name(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_project(root)
	dest = tmp_path / "dist"
	dest.mkdir()
	assert concat_main(["--root", str(root), "--output", str(dest)]) == 0
	assert (dest / "AllSources.cs").is_file()


def test_rerun_does_not_read_its_own_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_project(root)
	out = root / "AllSources.cs"
	assert concat_main(["--root", str(root), "--output", str(out)]) == 0
	first = out.read_text(encoding="utf-8")
	assert concat_main(["--root", str(root), "--output", str(out)]) == 0
	assert out.read_text(encoding="utf-8") == first
	assert "Found 2 .cs files" in capsys.readouterr().out


def test_exclude_patterns(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_project(root)
	_write_file(root / "Form.Designer.cs", "class Generated {}\n")
	out = tmp_path / "All.cs"
	assert concat_main(["--root", str(root), "--output", str(out), "--exclude", "*.designer.cs"]) == 0
	assert "Generated" not in out.read_text(encoding="utf-8")


def test_parse_error_aborts_and_writes_nothing(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_project(root)
	_write_file(root / "Broken.cs", "namespace Foo {\n\tclass Broken {\n")
	out = tmp_path / "All.cs"
	rc = concat_main(["--root", str(root), "--output", str(out)])
	assert rc == 1
	assert not out.exists()
	err = capsys.readouterr().err
	assert "Broken.cs:" in err
	assert "error:" in err
	assert "no output written" in err


def test_keep_going_writes_remaining_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_project(root)
	_write_file(root / "Broken.cs", "class Broken {\n")
	out = tmp_path / "All.cs"
	rc = concat_main(["--root", str(root), "--output", str(out), "--keep-going"])
	assert rc == 1
	text = out.read_text(encoding="utf-8")
	assert "class A {}" in text
	assert "Broken" not in text
	assert "Broken.cs:" in capsys.readouterr().err


def test_json_reports_diagnostics(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_write_file(root / "Bad.cs", "namespace N { class A { ) }\n")
	rc, payload = _run_json(["--root", str(root), "--output", str(tmp_path / "All.cs")], capsys)
	assert rc == 1
	assert payload["exit_code"] == 1
	assert payload["output"] is None
	diags = payload["diagnostics"]
	assert len(diags) == 1
	assert diags[0]["phase"] == "parser"
	assert diags[0]["code"] == "E-PARSE-DELIM"
	assert diags[0]["file"].endswith("Bad.cs")
	assert diags[0]["line"] == 1


def test_json_success_lists_files(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	root = tmp_path / "src"
	_project(root)
	out = tmp_path / "All.cs"
	rc, payload = _run_json(["--root", str(root), "--output", str(out)], capsys)
	assert rc == 0
	assert payload["output"] == str(out)
	assert [Path(f).name for f in payload["files"]] == ["A.cs", "B.cs"]
	assert payload["declarations"] == 3
	assert payload["diagnostics"] == []


def test_missing_root_is_a_usage_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	with pytest.raises(SystemExit) as exc:
		concat_main(["--root", str(tmp_path / "missing")])
	assert exc.value.code == 2
	assert "--root" in capsys.readouterr().err
