# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
C# outline parser.

Turns the text of one source file into a `SourceUnit`: its using directives,
its assembly/module attributes and its top-level members tagged with their
flattened namespace. Lark and post-lexer failures are converted here into a
single `ParseError` that names the file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from lark import Token
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from concat_sources.core.diagnostics import Diagnostic
from concat_sources.core.span import Span

from . import parser as _parser
from .ast import GLOBAL_NAMESPACE, Declaration, GlobalAttribute, ImportDirective, SourceUnit, SymbolDefinition

PathLike = Union[str, Path]


class ParseError(ValueError):
	"""
	A file is not a well-delimited C# compilation unit.

	Carries the file identity and position in `span`; fatal for that file, no
	partial `SourceUnit` is ever produced.
	"""

	def __init__(self, message: str, *, span: Span, code: str = "E-PARSE-SYNTAX") -> None:
		super().__init__(message)
		self.message = message
		self.span = span
		self.code = code

	@property
	def file(self) -> Optional[str]:
		return self.span.file

	def __str__(self) -> str:
		return f"{self.span.file or '<source>'}:{self.span.format_loc()}: {self.message}"

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(message=self.message, code=self.code, phase="parser", span=self.span)


def parse_source(text: str, *, path: Optional[PathLike] = None) -> SourceUnit:
	"""Parse one file's text; `path` only labels the result and its errors."""
	file = str(path) if path is not None else None
	try:
		tree = _parser.parse_outline(text)
	except _parser.OutlineError as err:
		raise ParseError(str(err), span=Span.from_token(err.token, file=file), code="E-PARSE-DELIM") from err
	except UnexpectedCharacters as err:
		raise ParseError(_describe_lex_error(err), span=Span.from_token(err, file=file), code="E-PARSE-LEX") from err
	except UnexpectedToken as err:
		raise ParseError(_describe_token_error(err), span=Span.from_token(err.token, file=file)) from err
	except UnexpectedInput as err:
		raise ParseError(f"syntax error: {err}", span=Span.from_token(err, file=file)) from err
	return _parser.build_unit(tree, text, path=Path(path) if path is not None else None)


def parse_file(path: PathLike) -> SourceUnit:
	"""Read a UTF-8 file (BOM tolerated) and parse it. OSError propagates."""
	text = Path(path).read_text(encoding="utf-8-sig")
	return parse_source(text, path=path)


_TOKEN_NAMES = {
	"NAMESPACE": "'namespace'",
	"LBRACE": "'{'",
	"RBRACE": "'}'",
	"SEMI": "';'",
	"DOT": "'.'",
	"NAME": "identifier",
	"DIRECTIVE": "using directive",
	"GLOBAL_ATTRIBUTE": "assembly attribute",
	"MEMBER": "declaration",
	"$END": "end of file",
}


def _describe_token_error(err: UnexpectedToken) -> str:
	tok: Token = err.token
	found = _TOKEN_NAMES.get(tok.type, tok.type)
	expected = sorted({_TOKEN_NAMES.get(name, name) for name in (err.expected or ())})
	msg = f"unexpected {found}"
	if tok.type == "MEMBER":
		msg = "declaration is not allowed here"
	if expected:
		msg += f"; expected {', '.join(expected)}"
	return msg


def _describe_lex_error(err: UnexpectedCharacters) -> str:
	char = getattr(err, "char", "")
	if char in ("\"", "'"):
		return "unterminated string or character literal"
	return f"unexpected character {char!r}"


__all__ = [
	"GLOBAL_NAMESPACE",
	"Declaration",
	"GlobalAttribute",
	"ImportDirective",
	"ParseError",
	"SourceUnit",
	"SymbolDefinition",
	"parse_file",
	"parse_source",
]
