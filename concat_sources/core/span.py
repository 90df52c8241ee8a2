# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to outline nodes and diagnostics.

Lines and columns are 1-based, as reported by the Lark lexer. `Span()` denotes
an unknown location.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_token(cls, tok: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a Lark token (or anything carrying the same
		position attributes). Lark reports unknown positions as -1 or None;
		both map to None here.
		"""
		if tok is None:
			return cls(file=file)
		if isinstance(tok, cls):
			return tok if file is None else replace(tok, file=file)
		return cls(
			file=file,
			line=_pos(getattr(tok, "line", None)),
			column=_pos(getattr(tok, "column", None)),
			end_line=_pos(getattr(tok, "end_line", None)),
			end_column=_pos(getattr(tok, "end_column", None)),
		)

	def format_loc(self) -> str:
		line = self.line if self.line is not None else "?"
		column = self.column if self.column is not None else "?"
		return f"{line}:{column}"


def _pos(value: Any) -> Optional[int]:
	if isinstance(value, int) and value > 0:
		return value
	return None


__all__ = ["Span"]
