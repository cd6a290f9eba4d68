# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Parser for textual type expressions (`int | str`, `list[int]`, `Literal[3]`).

The accepted syntax is the one `print_type` emits, plus `Union[...]`,
`Optional[...]` and `NoReturn` spellings. Unions are built with
`combine_types`, so `int | int` parses to `int`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from inferred.core.span import Span
from inferred.core.types_core import (
	ANY,
	NEVER,
	NONE,
	UNKNOWN,
	ClassType,
	Type,
	combine_types,
	literal_of,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)

_SPECIAL_FORMS = {
	"Unknown": UNKNOWN,
	"Any": ANY,
	"Never": NEVER,
	"NoReturn": NEVER,
	"None": NONE,
}

_BOOL_LITERALS = {"True": True, "False": False}


class TypeExprParseError(ValueError):
	"""
	Error raised for malformed type expressions.

	Carries a best-effort location (`loc`) within the expression text so callers
	can turn it into a diagnostic.
	"""

	def __init__(self, message: str, *, loc: Span) -> None:
		super().__init__(message)
		self.loc = loc


def parse_type_expr(source: str) -> Type:
	"""Parse `source` into a type value; raises TypeExprParseError."""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as err:
		raise TypeExprParseError(_describe_unexpected(err, source), loc=Span.from_loc(err)) from err
	return _build_union(tree.children[0])


def _describe_unexpected(err: UnexpectedInput, source: str) -> str:
	token = getattr(err, "token", None)
	if isinstance(token, Token):
		if token.type in ("$END", "<EOF>"):
			return f"unexpected end of type expression {source!r}"
		return f"unexpected {token.value!r} in type expression {source!r}"
	char = getattr(err, "char", None)
	if char is not None:
		return f"unexpected character {char!r} in type expression {source!r}"
	return f"invalid type expression {source!r}"


def _name(tree: Tree) -> str:
	return tree.data if isinstance(tree.data, str) else tree.data.value


def _build_union(tree: Tree) -> Type:
	members = [_build_atom(child) for child in tree.children if isinstance(child, Tree)]
	if len(members) == 1:
		return members[0]
	return combine_types(members)


def _build_atom(tree: Tree) -> Type:
	name_tok = tree.children[0]
	args_node = next((c for c in tree.children[1:] if isinstance(c, Tree) and _name(c) == "type_args"), None)
	args: List[Tree] = list(args_node.children) if args_node is not None else []
	name = name_tok.value

	if name == "Literal":
		return _build_literal(name_tok, args)
	if name in _SPECIAL_FORMS:
		if args:
			raise TypeExprParseError(f"'{name}' does not take type arguments", loc=Span.from_loc(name_tok))
		return _SPECIAL_FORMS[name]
	if name == "Union":
		if not args:
			raise TypeExprParseError("'Union' requires at least one type argument", loc=Span.from_loc(name_tok))
		return combine_types([_build_type_arg(arg) for arg in args])
	if name == "Optional":
		if len(args) != 1:
			raise TypeExprParseError("'Optional' requires exactly one type argument", loc=Span.from_loc(name_tok))
		return combine_types([_build_type_arg(args[0]), NONE])
	return ClassType(name=name, type_args=tuple(_build_type_arg(arg) for arg in args))


def _build_type_arg(tree: Tree) -> Type:
	child = tree.children[0]
	if isinstance(child, Token):
		raise TypeExprParseError(
			f"literal value {child.value} is only allowed inside Literal[...]",
			loc=Span.from_loc(child),
		)
	return _build_union(child)


def _build_literal(name_tok: Token, args: List[Tree]) -> Type:
	if not args:
		raise TypeExprParseError("'Literal' requires at least one value", loc=Span.from_loc(name_tok))
	literals = [_literal_arg(arg) for arg in args]
	if len(literals) == 1:
		return literals[0]
	return combine_types(literals)


def _literal_arg(tree: Tree) -> Type:
	child = tree.children[0]
	if isinstance(child, Token):
		if child.type == "SIGNED_INT":
			return literal_of(int(child.value))
		return literal_of(_decode_string_token(child))
	# A bare name parses as a union; only True/False/None are valid here.
	atoms = [c for c in child.children if isinstance(c, Tree)]
	if len(atoms) == 1 and len(atoms[0].children) == 1:
		tok = atoms[0].children[0]
		if tok.value in _BOOL_LITERALS:
			return literal_of(_BOOL_LITERALS[tok.value])
		if tok.value == "None":
			return NONE
	first = atoms[0].children[0]
	raise TypeExprParseError("Literal[...] values must be int, str, bool or None", loc=Span.from_loc(first))


def _decode_string_token(tok: Token) -> str:
	"""
	Decode an ESCAPED_STRING token using JSON string escapes (the form
	`print_type` emits). Unknown escapes and raw control characters are errors.
	"""
	try:
		return json.loads(tok.value)
	except ValueError as err:
		raise TypeExprParseError(f"invalid string literal {tok.value}: {err}", loc=Span.from_loc(tok)) from err


__all__ = ["parse_type_expr", "TypeExprParseError"]
