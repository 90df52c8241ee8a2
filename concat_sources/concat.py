# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
End-to-end pipeline: discover, parse each file in order, merge, emit, write.

Parsing is sequential and aggregation follows the given file order. Nothing is
written until the whole merged text exists, and the write goes through a
temp file plus `os.replace`, so an aborted run never leaves a truncated
output behind.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from concat_sources.core.diagnostics import Diagnostic
from concat_sources.discover import ALWAYS_SKIP_DIRS, discover_sources
from concat_sources.emit import emit
from concat_sources.merge import MergeState
from concat_sources.parser import ParseError, parse_file

DEFAULT_OUTPUT_NAME = "AllSources.cs"


@dataclass(frozen=True)
class ConcatOptions:
	root: Path
	output: Path = Path(DEFAULT_OUTPUT_NAME)
	exclude: tuple[str, ...] = ()
	skip_dirs: tuple[str, ...] = ALWAYS_SKIP_DIRS
	keep_going: bool = False


@dataclass
class ConcatResult:
	"""
	Outcome of one run. `text` is None when the run aborted on a parse error;
	with keep-going, failed files are listed in `skipped` and the rest merge.
	`declarations` counts the members written.
	"""

	text: Optional[str] = None
	files: List[Path] = field(default_factory=list)
	skipped: List[Path] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)
	declarations: int = 0

	@property
	def ok(self) -> bool:
		return self.text is not None and not self.skipped


def resolve_output(output: Path) -> Path:
	"""An existing directory means `<dir>/AllSources.cs`."""
	if output.is_dir():
		return output / DEFAULT_OUTPUT_NAME
	return output


def concat_files(paths: Sequence[Path], *, keep_going: bool = False) -> ConcatResult:
	result = ConcatResult()
	state = MergeState()
	for path in paths:
		try:
			unit = parse_file(path)
		except ParseError as err:
			result.diagnostics.append(err.to_diagnostic())
			if not keep_going:
				return result
			result.skipped.append(path)
			continue
		state.add_unit(unit)
		result.files.append(path)
	result.declarations = state.declaration_count()
	result.text = emit(state)
	return result


def write_output(path: Path, text: str) -> None:
	path.parent.mkdir(parents=True, exist_ok=True)
	tmp = path.with_name(path.name + f".tmp.{os.getpid()}")
	tmp.write_text(text, encoding="utf-8", newline="\n")
	os.replace(tmp, path)


def run(opts: ConcatOptions, *, paths: Optional[Sequence[Path]] = None) -> ConcatResult:
	"""
	Merge `paths` (discovered under `opts.root` when omitted) and write the
	result. Nothing is written when the run aborts on a parse error.
	"""
	output = resolve_output(opts.output)
	if paths is None:
		paths = discover_sources(opts.root, exclude=opts.exclude, skip_dirs=opts.skip_dirs, output=output)
	result = concat_files(paths, keep_going=opts.keep_going)
	if result.text is not None:
		write_output(output, result.text)
	return result


__all__ = [
	"DEFAULT_OUTPUT_NAME",
	"ConcatOptions",
	"ConcatResult",
	"concat_files",
	"resolve_output",
	"run",
	"write_output",
]
