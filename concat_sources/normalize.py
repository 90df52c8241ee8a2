# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Whitespace normalization for a single declaration.

This re-indents rather than reflows: the declaration is re-lexed with the raw
C# lexer, braces move to Allman placement, and every line is indented one
level (4 spaces) deeper than the line that opened its innermost bracket.
Tokens are never reordered or changed and the spacing between tokens on a
line is kept as written. Lines inside a multi-line literal or block comment
are reproduced byte-for-byte.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from lark import Token

from concat_sources.parser.parser import lex_raw

INDENT = "    "

_OPENERS = frozenset({"LBRACE", "LPAR", "LSQB"})
_CLOSERS = frozenset({"RBRACE", "RPAR", "RSQB"})
# Operators that, leading a line, continue the previous line's expression.
_CONTINUATION_OPS = frozenset("?=&|+*/%^")


def normalize_whitespace(text: str, level: int = 0) -> str:
	"""
	Return `text` re-indented at `level` (in units of `INDENT`).

	Blank-line runs collapse to one; blank lines right after `{` or right
	before `}` are dropped. The result has no trailing newline.
	"""
	tokens = [t for t in lex_raw(text) if t.type != "WS"]
	out: List[str] = []
	# Indent of the line on which each open bracket appeared.
	open_indents: List[int] = []
	prev: Optional[Token] = None
	indent = 0
	for segment, attached in _segments(tokens):
		first, last = segment[0], segment[-1]
		if prev is not None and first.line - prev.end_line > 1 and prev.type != "LBRACE" and first.type != "RBRACE":
			out.append("")
		if not attached:
			indent = _segment_indent(segment, open_indents)
		out.append(INDENT * (level + indent) + text[first.start_pos : last.end_pos].rstrip())
		for tok in segment:
			if tok.type in _OPENERS:
				open_indents.append(indent)
			elif tok.type in _CLOSERS and open_indents:
				open_indents.pop()
		prev = last
	return "\n".join(out)


def _segment_indent(segment: List[Token], open_indents: List[int]) -> int:
	closers = 0
	for tok in segment:
		if tok.type not in _CLOSERS:
			break
		closers += 1
	if closers:
		# A line starting with closers lines up with the line that opened the outermost of them.
		return open_indents[-closers] if closers <= len(open_indents) else 0
	indent = open_indents[-1] + 1 if open_indents else 0
	if _is_continuation(segment[0]):
		indent += 1
	return indent


def _segments(tokens: List[Token]) -> Iterator[Tuple[List[Token], bool]]:
	"""
	Group tokens by source line (a multi-line token keeps its starting line),
	then split each line. The flag marks a `{` split off the end of a line; it
	keeps that line's indent.
	"""
	line: List[Token] = []
	for tok in tokens:
		if line and tok.line > line[-1].end_line:
			yield from _split_line(line)
			line = []
		line.append(tok)
	if line:
		yield from _split_line(line)


def _split_line(line: List[Token]) -> List[Tuple[List[Token], bool]]:
	# `} else {` -> `}` / `else` / `{`; `});` and `};` stay whole.
	pieces = [line]
	if len(line) > 1 and line[0].type == "RBRACE" and line[1].type == "NAME":
		pieces = [line[:1], line[1:]]
	out = [(piece, False) for piece in pieces]
	tail = pieces[-1]
	brace = len(tail) - 1
	while brace > 0 and tail[brace].type == "COMMENT":
		brace -= 1
	if brace > 0 and tail[brace].type == "LBRACE":
		# A comment after the brace moves down with it.
		out[-1:] = [(tail[:brace], False), (tail[brace:], True)]
	return out


def _is_continuation(first: Token) -> bool:
	if first.type in ("DOT", "COLON"):
		return True
	return first.type == "OP" and first.value in _CONTINUATION_OPS


__all__ = ["INDENT", "normalize_whitespace"]
