# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Serialize a `MergeState` into the combined C# file.

Layout:
	#define / #undef lines (first-seen order), blank line
	using directives (ordinal order), blank line
	assembly/module attributes (first-seen order), blank line
	global-scope declarations at column zero
	namespace N
	{
	    declarations of N, one level deeper
	}

Namespace groups come in ordinal order of their name, so the global group
(empty name) is always first. A namespace with no declarations is not
written. Output is a pure function of the state.
"""

from __future__ import annotations

from typing import List

from concat_sources.merge import MergeState, NamespaceGroup
from concat_sources.normalize import normalize_whitespace


def emit(state: MergeState) -> str:
	lines: List[str] = []
	if state.symbols:
		lines.extend(state.symbols)
		lines.append("")
	imports = state.sorted_imports()
	if imports:
		lines.extend(directive.text for directive in imports)
		lines.append("")
	if state.attributes:
		lines.extend(state.attributes)
		lines.append("")

	blocks = [_render_group(group) for group in state.sorted_groups() if group.declarations]
	for idx, block in enumerate(blocks):
		if idx:
			lines.append("")
		lines.extend(block)

	while lines and lines[-1] == "":
		lines.pop()
	return "\n".join(lines) + "\n" if lines else ""


def _render_group(group: NamespaceGroup) -> List[str]:
	if group.is_global:
		return [normalize_whitespace(decl.text) for decl in group.declarations]
	out = [f"namespace {group.name}", "{"]
	out.extend(normalize_whitespace(decl.text, level=1) for decl in group.declarations)
	out.append("}")
	return out


__all__ = ["emit"]
