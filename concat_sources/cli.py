# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from concat_sources.concat import DEFAULT_OUTPUT_NAME, ConcatOptions, resolve_output, run
from concat_sources.discover import ALWAYS_SKIP_DIRS, discover_sources


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="concat-sources", description="Concatenate C# source files")
	p.add_argument("--root", type=Path, required=True, help="Root folder of the C# project to scan")
	p.add_argument(
		"--output",
		type=Path,
		default=Path(DEFAULT_OUTPUT_NAME),
		help=f"Path of the combined output file; a directory means <dir>/{DEFAULT_OUTPUT_NAME} (default: ./{DEFAULT_OUTPUT_NAME})",
	)
	p.add_argument(
		"--exclude",
		nargs="*",
		action="extend",
		default=[],
		metavar="PATTERN",
		help='File name patterns to ignore, e.g. "*.Designer.cs" (repeatable)',
	)
	p.add_argument(
		"--keep-going",
		action="store_true",
		help="Skip files that fail to parse instead of aborting (the output is still written)",
	)
	p.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/code/message/severity/file/line/column)",
	)
	return p


def main(argv: list[str] | None = None) -> int:
	"""
	Merge every .cs file under --root into one file.

	Exit code 0 on success, 1 when any file failed to parse (nothing is written
	unless --keep-going), 2 on usage errors.
	"""
	p = _build_parser()
	args = p.parse_args(argv)
	if not args.root.is_dir():
		p.error(f"--root is not a directory: {args.root}")

	opts = ConcatOptions(
		root=args.root,
		output=resolve_output(args.output),
		exclude=tuple(args.exclude),
		skip_dirs=ALWAYS_SKIP_DIRS,
		keep_going=bool(args.keep_going),
	)
	paths = discover_sources(opts.root, exclude=opts.exclude, skip_dirs=opts.skip_dirs, output=opts.output)
	if not args.json:
		print(f"Found {len(paths)} .cs files -> {opts.output.resolve()}")

	result = run(opts, paths=paths)
	exit_code = 0 if result.ok else 1

	if args.json:
		payload = {
			"exit_code": exit_code,
			"output": str(opts.output) if result.text is not None else None,
			"files": [str(f) for f in result.files],
			"declarations": result.declarations,
			"diagnostics": [d.to_dict() for d in result.diagnostics],
		}
		print(json.dumps(payload))
		return exit_code
	for d in result.diagnostics:
		print(d.format_human(), file=sys.stderr)
	if result.text is None:
		print("aborted: no output written (rerun with --keep-going to skip failing files)", file=sys.stderr)
		return exit_code
	print("Done!")
	return exit_code


__all__ = ["main"]
