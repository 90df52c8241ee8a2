# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Tuple

from lark import Lark, Token, Tree

from concat_sources.core.span import Span

from .ast import GLOBAL_NAMESPACE, Declaration, GlobalAttribute, ImportDirective, SourceUnit, SymbolDefinition

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_DIRECTIVE_RE = re.compile(r"#\s*(\w*)")
_SYMBOL_DIRECTIVES = frozenset({"define", "undef"})
_REGION_DIRECTIVES = frozenset({"region", "endregion"})


class OutlineError(ValueError):
	"""
	Delimiter-level error found while folding the raw token stream.

	Raised from inside the post-lexer, before the grammar ever sees the
	offending member. `token` locates the problem: the unclosed opener, the
	stray closer, or the first token of an unterminated member.
	"""

	def __init__(self, message: str, *, token: Token) -> None:
		super().__init__(message)
		self.token = token


class OutlineSplitter:
	"""
	Post-lexer that turns raw C# tokens into the coarse tokens the outline
	grammar parses.

	Namespace headers (`namespace A.B`) and the braces/semicolon after them pass
	through unchanged. Everything else at namespace or global level is folded
	into one DIRECTIVE, GLOBAL_ATTRIBUTE or MEMBER token spanning its source
	text. Member bodies are opaque: only bracket balance is tracked inside them.

	An `#if ... #endif` region at namespace or global level becomes a single
	token covering every branch, so a member and its disabled alternatives stay
	together. Other preprocessor lines are dropped from the stream here.
	"""

	always_accept = (
		"USING",
		"NUMBER",
		"STRING",
		"CHAR",
		"LPAR",
		"RPAR",
		"LSQB",
		"RSQB",
		"COLON",
		"OP",
		"PREPROCESSOR",
	)

	OPENERS = {"LBRACE": "RBRACE", "LPAR": "RPAR", "LSQB": "RSQB"}
	CLOSERS = frozenset(OPENERS.values())
	# Keywords that keep a statement going after its block closed.
	BLOCK_CONTINUATIONS = frozenset({"else", "catch", "finally"})
	# Tokens that keep an expression going after a closing `}` (initializers, lambdas).
	EXPR_CONTINUATIONS = frozenset({"DOT", "COLON", "OP"})
	GLOBAL_ATTRIBUTE_TARGETS = frozenset({"assembly", "module"})
	CONDITIONAL_BRANCHES = frozenset({"elif", "else", "endif"})

	def process(self, stream):
		toks = list(stream)
		i = 0
		after_header = False
		while i < len(toks):
			tok = toks[i]
			if tok.type == "PREPROCESSOR":
				keyword = _directive_keyword(tok.value)
				if keyword in self.CONDITIONAL_BRANCHES:
					raise OutlineError(f"'#{keyword}' without matching '#if'", token=tok)
				end = i + 1
				if keyword == "if":
					end = self._member_end(toks, i)
					kind = self._region_kind(toks, i, end)
					if kind is not None:
						yield _fold(kind, toks, i, end)
				i = end
				continue
			if tok.type == "NAMESPACE":
				yield tok
				i += 1
				while i < len(toks) and toks[i].type in ("NAME", "DOT"):
					yield toks[i]
					i += 1
				after_header = True
				continue
			if tok.type in ("RBRACE", "SEMI") or (after_header and tok.type == "LBRACE"):
				yield tok
				i += 1
				after_header = False
				continue
			after_header = False

			end = self._directive_end(toks, i)
			if end is not None:
				yield _fold("DIRECTIVE", toks, i, end)
				i = end
				continue
			end = self._global_attribute_end(toks, i)
			if end is not None:
				yield _fold("GLOBAL_ATTRIBUTE", toks, i, end)
				i = end
				continue
			end = self._member_end(toks, i)
			yield _fold("MEMBER", toks, i, end)
			i = end

	def _directive_end(self, toks: List[Token], i: int) -> Optional[int]:
		tok = toks[i]
		if _is_name(tok, "extern") and _is_name(_at(toks, i + 1), "alias"):
			return _statement_end(toks, i)
		j = i
		if _is_name(tok, "global") and _type_at(toks, i + 1) == "USING":
			j = i + 1
		if toks[j].type != "USING" or _type_at(toks, j + 1) == "LPAR":
			return None
		end = _statement_end(toks, j)
		if end is None:
			return None
		body = toks[j + 1 : end - 1]
		if body and _is_name(body[0], "static"):
			return end
		# `using A = B;` is an alias; `using T x = y;` declares a disposable local.
		eq = next((k for k, t in enumerate(body) if t.type == "OP" and t.value == "="), None)
		if eq is None or eq == 1:
			return end
		return None

	def _global_attribute_end(self, toks: List[Token], i: int) -> Optional[int]:
		if toks[i].type != "LSQB":
			return None
		target = _at(toks, i + 1)
		if target is None or target.type != "NAME" or target.value not in self.GLOBAL_ATTRIBUTE_TARGETS:
			return None
		if _type_at(toks, i + 2) != "COLON":
			return None
		stack: List[Token] = []
		for k in range(i, len(toks)):
			self._track(stack, toks[k])
			if not stack:
				return k + 1
		raise OutlineError(f"'{toks[i].value}' is never closed", token=toks[i])

	def _member_end(self, toks: List[Token], start: int) -> int:
		"""
		Index just past the member starting at `start`.

		A member never ends inside an open `#if`: every branch belongs to the
		same member, which closes with the `#endif` once the last branch is
		complete.
		"""
		first = toks[start]
		pending_do = _is_name(first, "do")
		stack: List[Token] = []
		conditionals: List[Token] = []
		seen = False
		complete = False
		k = start
		while k < len(toks):
			tok = toks[k]
			if tok.type == "PREPROCESSOR":
				keyword = _directive_keyword(tok.value)
				if keyword == "if":
					conditionals.append(tok)
				elif keyword in self.CONDITIONAL_BRANCHES:
					if not conditionals:
						raise OutlineError(f"'#{keyword}' without matching '#if'", token=tok)
					if keyword == "endif":
						conditionals.pop()
						if not conditionals and not stack and (complete or not seen):
							return k + 1
				k += 1
				continue
			if tok.type == "RBRACE" and not stack:
				if conditionals:
					raise OutlineError("'#if' is never closed by '#endif'", token=conditionals[-1])
				raise OutlineError("expected ';' before '}'", token=tok)
			seen = True
			complete = False
			closed = self._track(stack, tok)
			if stack:
				k += 1
				continue
			nxt = _significant_at(toks, k + 1)
			if closed and tok.type == "RBRACE":
				if _type_at(toks, k + 1) == "SEMI":
					k += 1
					complete = True
				elif pending_do and _is_name(nxt, "while"):
					pending_do = False
				else:
					complete = not self._continues_after_block(nxt)
			elif tok.type == "SEMI":
				if pending_do and _is_name(nxt, "while"):
					pending_do = False
				else:
					complete = not _is_name(nxt, "else")
			if complete and not conditionals:
				return k + 1
			k += 1
		if stack:
			raise OutlineError(f"'{stack[-1].value}' is never closed", token=stack[-1])
		if conditionals:
			raise OutlineError("'#if' is never closed by '#endif'", token=conditionals[-1])
		raise OutlineError("declaration is not terminated by ';' or a '{...}' body", token=first)

	def _region_kind(self, toks: List[Token], start: int, end: int) -> Optional[str]:
		"""
		Token kind for a folded `#if` region: DIRECTIVE or GLOBAL_ATTRIBUTE when
		it guards only those, None when it guards nothing, MEMBER otherwise.
		"""
		kinds = set()
		k = start
		while k < end:
			if toks[k].type == "PREPROCESSOR":
				k += 1
				continue
			stop = self._directive_end(toks, k)
			if stop is not None and stop <= end:
				kinds.add("DIRECTIVE")
				k = stop
				continue
			stop = self._global_attribute_end(toks, k)
			if stop is not None and stop <= end:
				kinds.add("GLOBAL_ATTRIBUTE")
				k = stop
				continue
			return "MEMBER"
		if not kinds:
			return None
		return kinds.pop() if len(kinds) == 1 else "MEMBER"

	def _track(self, stack: List[Token], tok: Token) -> bool:
		"""Push/pop bracket tokens; True when `tok` closed the innermost opener."""
		if tok.type in self.OPENERS:
			stack.append(tok)
			return False
		if tok.type not in self.CLOSERS:
			return False
		if not stack:
			raise OutlineError(f"unbalanced '{tok.value}'", token=tok)
		opener = stack.pop()
		if self.OPENERS[opener.type] != tok.type:
			raise OutlineError(
				f"'{tok.value}' does not match '{opener.value}' opened at line {opener.line}, column {opener.column}",
				token=tok,
			)
		return True

	def _continues_after_block(self, nxt: Optional[Token]) -> bool:
		if nxt is None:
			return False
		if nxt.type == "NAME":
			return nxt.value in self.BLOCK_CONTINUATIONS
		return nxt.type in self.EXPR_CONTINUATIONS


def _directive_keyword(line: str) -> str:
	"""`'#  if DEBUG'` -> `'if'`; empty for a bare `#`."""
	m = _DIRECTIVE_RE.match(line)
	return m.group(1) if m else ""


def _at(toks: List[Token], i: int) -> Optional[Token]:
	return toks[i] if i < len(toks) else None


def _significant_at(toks: List[Token], i: int) -> Optional[Token]:
	"""First token at or after `i` that is not a preprocessor line."""
	while i < len(toks) and toks[i].type == "PREPROCESSOR":
		i += 1
	return _at(toks, i)


def _type_at(toks: List[Token], i: int) -> Optional[str]:
	tok = _at(toks, i)
	return tok.type if tok is not None else None


def _is_name(tok: Optional[Token], value: str) -> bool:
	return tok is not None and tok.type == "NAME" and tok.value == value


def _statement_end(toks: List[Token], start: int) -> Optional[int]:
	"""Index just past the first `;`, or None when a block starts first."""
	for k in range(start, len(toks)):
		kind = toks[k].type
		if kind == "SEMI":
			return k + 1
		if kind in ("LBRACE", "RBRACE"):
			return None
	return None


def _fold(kind: str, toks: List[Token], start: int, end: int) -> Token:
	first = toks[start]
	last = toks[end - 1]
	return Token(
		kind,
		" ".join(t.value for t in toks[start:end]),
		start_pos=first.start_pos,
		line=first.line,
		column=first.column,
		end_line=last.end_line,
		end_column=last.end_column,
		end_pos=last.end_pos,
	)


_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="compilation_unit",
	propagate_positions=True,
	maybe_placeholders=False,
	postlex=OutlineSplitter(),
)

# Same terminals, no post-lexer: used to re-read comments and literals.
_LEXER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="token_stream",
)


def parse_outline(source: str) -> Tree:
	return _PARSER.parse(source)


def lex_raw(source: str) -> Iterator[Token]:
	"""Raw C# tokens including whitespace, comments and preprocessor lines."""
	return _LEXER.lex(source, dont_ignore=True)


def build_unit(tree: Tree, source: str, *, path: Optional[Path] = None) -> SourceUnit:
	"""
	Walk the outline tree into a `SourceUnit`, handing the comments and
	preprocessor lines between items to the members around them.

	Trivia on the line where a member ends trails that member. The rest of a
	gap leads the next member, or trails the previous one when the gap runs
	into a closing `}` or the end of the file. Preprocessor lines in front of a
	directive or namespace header wait for the next member (or trail the last
	one). `#define`/`#undef` lines are collected on their own and top-level
	`#region`/`#endregion` markers are dropped.
	"""
	file = str(path) if path is not None else None
	unit = SourceUnit(path=path)
	members: List[_MemberText] = []
	carried: List[str] = []
	prev: Optional[_MemberText] = None
	prev_end = 0
	at_start = True
	for kind, tok, namespace in [*_anchors(tree, GLOBAL_NAMESPACE), ("eof", None, GLOBAL_NAMESPACE)]:
		gap_end = tok.start_pos if tok is not None else len(source)
		trivia = list(_trivia(source, prev_end, gap_end))
		same_line = 0
		if not at_start:
			while same_line < len(trivia) and "\n" not in source[prev_end : trivia[same_line].start]:
				same_line += 1
		if prev is not None and same_line:
			prev.end = trivia[same_line - 1].end
		rest = _sort_trivia(trivia[same_line:], unit, source, file)

		if kind == "member":
			last_drop = max((k for k, t in enumerate(rest) if t is None), default=-1)
			lead = rest[last_drop + 1 :]
			member = _MemberText(
				namespace=namespace,
				span=Span.from_token(tok, file=file),
				start=lead[0].start if lead else tok.start_pos,
				end=tok.end_pos,
				head=carried + [t.value for t in rest[: last_drop + 1] if t is not None],
			)
			members.append(member)
			carried = []
			prev = member
		else:
			if prev is not None and (kind == "eof" or tok.type == "RBRACE"):
				prev.trail(rest)
			else:
				carried.extend(t.value for t in rest if t is not None and t.type == "PREPROCESSOR")
			if kind == "directive":
				unit.imports.append(ImportDirective(text=_directive_text(source, tok), span=Span.from_token(tok, file=file)))
			elif kind == "global_attribute":
				unit.attributes.append(GlobalAttribute(text=_directive_text(source, tok), span=Span.from_token(tok, file=file)))
			elif kind not in ("token", "eof"):
				raise AssertionError(f"unexpected outline node {kind}")
			prev = None
		prev_end = gap_end if tok is None else tok.end_pos
		at_start = False

	if carried and members:
		members[-1].tail.extend(carried)
	unit.declarations = [Declaration(namespace=m.namespace, text=m.render(source), span=m.span) for m in members]
	return unit


class _Trivia(NamedTuple):
	type: str
	value: str
	start: int
	end: int


@dataclass
class _MemberText:
	"""A member's source range plus trivia lines that could not stay contiguous."""

	namespace: str
	span: Span
	start: int
	end: int
	head: List[str] = field(default_factory=list)
	tail: List[str] = field(default_factory=list)

	def trail(self, items: List[Optional[_Trivia]]) -> None:
		first_drop = next((k for k, t in enumerate(items) if t is None), len(items))
		if first_drop:
			self.end = items[first_drop - 1].end
		self.tail.extend(t.value for t in items[first_drop:] if t is not None)

	def render(self, source: str) -> str:
		return "\n".join([*self.head, source[self.start : self.end], *self.tail])


def _anchors(node: Tree, namespace: str) -> Iterator[Tuple[str, Token, str]]:
	"""Outline items and namespace punctuation in source order."""
	for child in node.children:
		if isinstance(child, Token):
			yield "token", child, namespace
			continue
		kind = _name(child)
		if kind in ("namespace_block", "file_namespace"):
			yield from _anchors(child, _qualify(namespace, _namespace_name(child)))
		elif kind == "qualified_name":
			yield from _anchors(child, namespace)
		else:
			yield kind, child.children[0], namespace


def _trivia(source: str, start: int, end: int) -> Iterator[_Trivia]:
	for tok in lex_raw(source[start:end]):
		if tok.type in ("COMMENT", "PREPROCESSOR"):
			yield _Trivia(tok.type, tok.value.rstrip(), start + tok.start_pos, start + tok.end_pos)


def _sort_trivia(items: List[_Trivia], unit: SourceUnit, source: str, file: Optional[str]) -> List[Optional[_Trivia]]:
	"""Trivia that stays with members, None where a line was taken out."""
	out: List[Optional[_Trivia]] = []
	for t in items:
		keyword = _directive_keyword(t.value) if t.type == "PREPROCESSOR" else ""
		if keyword in _SYMBOL_DIRECTIVES:
			unit.symbols.append(SymbolDefinition(text=t.value, span=_span_at(source, t.start, file)))
			out.append(None)
		elif keyword in _REGION_DIRECTIVES:
			out.append(None)
		else:
			out.append(t)
	return out


def _span_at(source: str, pos: int, file: Optional[str]) -> Span:
	line_start = source.rfind("\n", 0, pos) + 1
	return Span(file=file, line=source.count("\n", 0, pos) + 1, column=pos - line_start + 1)


def _directive_text(source: str, tok: Token) -> str:
	return "\n".join(line.strip() for line in _slice(source, tok).strip().splitlines())


def _namespace_name(node: Tree) -> str:
	qn = next(c for c in node.children if isinstance(c, Tree) and _name(c) == "qualified_name")
	return "".join(t.value for t in qn.children if isinstance(t, Token))


def _qualify(outer: str, name: str) -> str:
	return f"{outer}.{name}" if outer else name


def _slice(source: str, tok: Token) -> str:
	return source[tok.start_pos : tok.end_pos]


def _name(node: Tree) -> str:
	return node.data if isinstance(node.data, str) else node.data.value
