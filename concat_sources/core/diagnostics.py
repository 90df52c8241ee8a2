# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure shared by the parser, the pipeline and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a diagnostic (error/warning) tied to a source location."""

	message: str
	code: str | None = None
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Span() denotes unknown.
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def format_human(self, source: Optional[Path] = None) -> str:
		"""`file:line:col: severity: message`, the shape compilers print."""
		file = self.span.file or (str(source) if source is not None else "?")
		code = f" [{self.code}]" if self.code else ""
		return f"{file}:{self.span.format_loc()}: {self.severity}: {self.message}{code}"

	def to_dict(self, source: Optional[Path] = None) -> dict:
		file = self.span.file
		if file is None and source is not None:
			file = str(source)
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


__all__ = ["Diagnostic"]
