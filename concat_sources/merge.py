# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Namespace aggregation.

`MergeState` folds parsed files into one deduplicated set of directives and
an insertion-ordered mapping from namespace name to the declarations every
file contributed to it. Declarations keep file order, then in-file order;
nothing is ever dropped, merged or rewritten. Same-named types from
different files both survive: this is a syntactic merge, not a checker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from concat_sources.parser.ast import (
	GLOBAL_NAMESPACE,
	Declaration,
	GlobalAttribute,
	ImportDirective,
	SourceUnit,
	SymbolDefinition,
)


@dataclass
class NamespaceGroup:
	name: str
	declarations: List[Declaration] = field(default_factory=list)

	@property
	def is_global(self) -> bool:
		return self.name == GLOBAL_NAMESPACE


@dataclass
class MergeState:
	"""
	Aggregate of every file in one run.

	Not idempotent: adding the same unit twice duplicates its declarations,
	so build a fresh state per run (see `merge`). Directive sets keep the
	first occurrence of each text, which is where its span points. `#define`
	and `#undef` lines keep first-seen order across files.
	"""

	imports: Dict[str, ImportDirective] = field(default_factory=dict)
	attributes: Dict[str, GlobalAttribute] = field(default_factory=dict)
	symbols: Dict[str, SymbolDefinition] = field(default_factory=dict)
	groups: Dict[str, NamespaceGroup] = field(default_factory=dict)

	def add_unit(self, unit: SourceUnit) -> None:
		for directive in unit.imports:
			self.imports.setdefault(directive.text, directive)
		for attr in unit.attributes:
			self.attributes.setdefault(attr.text, attr)
		for symbol in unit.symbols:
			self.symbols.setdefault(symbol.text, symbol)
		for decl in unit.declarations:
			self.group(decl.namespace).declarations.append(decl)

	def group(self, name: str) -> NamespaceGroup:
		"""The group for `name`, created on first use. Names match literally."""
		grp = self.groups.get(name)
		if grp is None:
			grp = NamespaceGroup(name=name)
			self.groups[name] = grp
		return grp

	def sorted_imports(self) -> List[ImportDirective]:
		# Code point order of str equals UTF-8 byte order.
		return [self.imports[text] for text in sorted(self.imports)]

	def sorted_groups(self) -> List[NamespaceGroup]:
		return [self.groups[name] for name in sorted(self.groups)]

	def declaration_count(self) -> int:
		return sum(len(g.declarations) for g in self.groups.values())


def merge(units: Iterable[SourceUnit]) -> MergeState:
	"""Fold parsed files, in the order given, into a fresh `MergeState`."""
	state = MergeState()
	for unit in units:
		state.add_unit(unit)
	return state


__all__ = ["MergeState", "NamespaceGroup", "merge"]
