# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Outline nodes produced by the C# source parser.

The parser never looks inside a member: a declaration is an opaque source
span tagged with the namespace it lives in. Spans are excluded from equality
so two directives with the same text compare equal no matter which file they
came from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from concat_sources.core.span import Span

GLOBAL_NAMESPACE = ""


@dataclass(frozen=True)
class ImportDirective:
	"""`using ...;`, `global using ...;` or `extern alias ...;` (trimmed text)."""

	text: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class GlobalAttribute:
	"""File-level attribute section such as `[assembly: InternalsVisibleTo("T")]`."""

	text: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class SymbolDefinition:
	"""
	A file-level `#define` or `#undef` line. C# only accepts these before the
	first token of a file, so they are kept apart from member trivia.
	"""

	text: str
	span: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class Declaration:
	"""
	A top-level member: a type, a delegate, or (at global scope) a top-level
	statement or local function. An `#if ... #endif` region at namespace level
	is one declaration holding all of its branches.

	`text` is the source span of the member, starting at the comment and
	preprocessor lines above it (XML doc comments included) and running to the
	end of its last line when a comment follows there.
	"""

	namespace: str
	text: str
	span: Span = field(default_factory=Span, compare=False)

	@property
	def is_global(self) -> bool:
		return self.namespace == GLOBAL_NAMESPACE


@dataclass
class SourceUnit:
	"""Everything the merge needs from one file, in source order."""

	path: Optional[Path] = None
	imports: List[ImportDirective] = field(default_factory=list)
	attributes: List[GlobalAttribute] = field(default_factory=list)
	symbols: List[SymbolDefinition] = field(default_factory=list)
	declarations: List[Declaration] = field(default_factory=list)

	def namespaces(self) -> List[str]:
		"""Distinct namespaces contributed by this file, first-seen order."""
		seen: dict[str, None] = {}
		for decl in self.declarations:
			seen.setdefault(decl.namespace, None)
		return list(seen)


__all__ = [
	"GLOBAL_NAMESPACE",
	"ImportDirective",
	"GlobalAttribute",
	"SymbolDefinition",
	"Declaration",
	"SourceUnit",
]
