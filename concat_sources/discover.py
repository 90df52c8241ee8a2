# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source discovery: every `*.cs` file under a root, minus skipped directories
and excluded file names, in ordinal path order.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

SOURCE_GLOB = "*.cs"
ALWAYS_SKIP_DIRS: tuple[str, ...] = ("Migrations",)


def compile_exclude(pattern: str) -> re.Pattern[str]:
	"""
	Whole-name, case-insensitive wildcard: `*` matches any run, `?` one
	character, everything else is literal.
	"""
	body = re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".")
	return re.compile(f"^{body}$", re.IGNORECASE)


def is_inside_skipped_dir(path: Path, root: Path, skip_dirs: Iterable[str]) -> bool:
	"""True if a directory segment of `path` (relative to `root`) is a skipped name."""
	skip = {d.casefold() for d in skip_dirs}
	rel = path.relative_to(root)
	return any(part.casefold() in skip for part in rel.parts[:-1])


def discover_sources(
	root: Path,
	*,
	exclude: Sequence[str] = (),
	skip_dirs: Sequence[str] = ALWAYS_SKIP_DIRS,
	output: Optional[Path] = None,
) -> List[Path]:
	if not root.is_dir():
		raise NotADirectoryError(f"source root is not a directory: {root}")
	patterns = [compile_exclude(p) for p in exclude]
	skip_output = output.resolve() if output is not None else None
	found: List[Path] = []
	for path in root.rglob(SOURCE_GLOB):
		if not path.is_file():
			continue
		if is_inside_skipped_dir(path, root, skip_dirs):
			continue
		if any(rx.match(path.name) for rx in patterns):
			continue
		if skip_output is not None and path.resolve() == skip_output:
			continue
		found.append(path)
	return sorted(found, key=str)


__all__ = ["ALWAYS_SKIP_DIRS", "SOURCE_GLOB", "compile_exclude", "discover_sources", "is_inside_skipped_dir"]
