# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type values consumed by the inferred-type accumulator.

Types are small frozen dataclasses tagged with a TypeCategory. The family is
closed: every helper here dispatches on the category and handles each one
explicitly. Three primitives form the contract the accumulator relies on:

- `is_type_same(a, b)`: structural equality (unions compare as member sets),
- `combine_types(types)`: fold a non-empty ordered sequence into one type,
- `UNKNOWN`: the distinguished unresolved value.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, List, Sequence, Tuple, Union


class TypeCategory(Enum):
	"""Categories of types understood by the type core."""

	UNKNOWN = auto()
	ANY = auto()
	NEVER = auto()
	NONE = auto()
	CLASS = auto()
	LITERAL = auto()
	UNION = auto()


@dataclass(frozen=True)
class UnknownType:
	"""Type that has not been resolved (yet)."""

	category: ClassVar[TypeCategory] = TypeCategory.UNKNOWN


@dataclass(frozen=True)
class AnyType:
	"""Explicit `Any`."""

	category: ClassVar[TypeCategory] = TypeCategory.ANY


@dataclass(frozen=True)
class NeverType:
	"""Type with no values (`Never` / `NoReturn`)."""

	category: ClassVar[TypeCategory] = TypeCategory.NEVER


@dataclass(frozen=True)
class NoneType:
	"""Type of the `None` value."""

	category: ClassVar[TypeCategory] = TypeCategory.NONE


@dataclass(frozen=True)
class ClassType:
	"""Named class, optionally specialized (`list[int]`)."""

	name: str
	type_args: Tuple["Type", ...] = ()
	category: ClassVar[TypeCategory] = TypeCategory.CLASS


LiteralValue = Union[int, str, bool]


@dataclass(frozen=True)
class LiteralType:
	"""Single literal value of a class (`Literal[3]` is a literal of `int`)."""

	base: ClassType
	value: LiteralValue
	category: ClassVar[TypeCategory] = TypeCategory.LITERAL


@dataclass(frozen=True)
class UnionType:
	"""
	Union of two or more subtypes.

	Build unions through `combine_types`, which flattens nested unions and
	removes duplicates. Subtype order is the order members were combined in.
	"""

	subtypes: Tuple["Type", ...] = field(default_factory=tuple)
	category: ClassVar[TypeCategory] = TypeCategory.UNION


Type = Union[UnknownType, AnyType, NeverType, NoneType, ClassType, LiteralType, UnionType]

UNKNOWN = UnknownType()
ANY = AnyType()
NEVER = NeverType()
NONE = NoneType()

INT = ClassType("int")
FLOAT = ClassType("float")
BOOL = ClassType("bool")
STR = ClassType("str")
BYTES = ClassType("bytes")
OBJECT = ClassType("object")


def class_of(name: str, *type_args: Type) -> ClassType:
	"""Return a class type `name[type_args...]`."""
	return ClassType(name=name, type_args=tuple(type_args))


def literal_of(value: LiteralValue) -> LiteralType:
	"""Return the literal type for a Python int/str/bool value."""
	# bool first: bool is an int subclass.
	if isinstance(value, bool):
		return LiteralType(base=BOOL, value=value)
	if isinstance(value, int):
		return LiteralType(base=INT, value=value)
	if isinstance(value, str):
		return LiteralType(base=STR, value=value)
	raise TypeError(f"unsupported literal value {value!r}")


def is_type_same(a: Type, b: Type) -> bool:
	"""
	Structural equality over type values.

	Reflexive and symmetric. Unions are equal when they hold the same members
	regardless of order. Literal values must match in Python type as well as
	value, so `Literal[1]` and `Literal[True]` differ.
	"""
	if a is b:
		return True
	if a.category is not b.category:
		return False

	cat = a.category
	if cat in (TypeCategory.UNKNOWN, TypeCategory.ANY, TypeCategory.NEVER, TypeCategory.NONE):
		return True
	if cat is TypeCategory.CLASS:
		if a.name != b.name or len(a.type_args) != len(b.type_args):
			return False
		return all(is_type_same(x, y) for x, y in zip(a.type_args, b.type_args))
	if cat is TypeCategory.LITERAL:
		return (
			is_type_same(a.base, b.base)
			and type(a.value) is type(b.value)
			and a.value == b.value
		)
	if cat is TypeCategory.UNION:
		# Directly built unions may repeat members; compare as sets both ways.
		return all(_contains_type(b.subtypes, sub) for sub in a.subtypes) and all(
			_contains_type(a.subtypes, sub) for sub in b.subtypes
		)
	raise AssertionError(f"unhandled type category {cat}")


def _contains_type(types: Sequence[Type], ty: Type) -> bool:
	return any(is_type_same(candidate, ty) for candidate in types)


def combine_types(types: Sequence[Type]) -> Type:
	"""
	Fold a non-empty ordered sequence of types into a single type.

	Rules, applied in order:
	- Never members are dropped; nothing left means Never.
	- Unknown absorbs everything, then Any does.
	- Unions are flattened in place.
	- Literals move after non-literals (stable).
	- Duplicates are removed keeping the first occurrence; a literal is dropped
	  when its class is already a member.
	- A single surviving member is returned as-is; otherwise a UnionType.
	"""
	if not types:
		raise ValueError("combine_types requires at least one type")
	if len(types) == 1:
		return types[0]

	remaining = [ty for ty in types if ty.category is not TypeCategory.NEVER]
	if not remaining:
		return NEVER

	for absorbing in (TypeCategory.UNKNOWN, TypeCategory.ANY):
		for ty in remaining:
			if ty.category is absorbing:
				return ty

	expanded: List[Type] = []
	for ty in remaining:
		if ty.category is TypeCategory.UNION:
			expanded.extend(ty.subtypes)
		else:
			expanded.append(ty)

	expanded.sort(key=lambda ty: ty.category is TypeCategory.LITERAL)

	members: List[Type] = []
	for ty in expanded:
		if _contains_type(members, ty):
			continue
		if ty.category is TypeCategory.LITERAL and _contains_type(members, ty.base):
			continue
		members.append(ty)

	if len(members) == 1:
		return members[0]
	return UnionType(subtypes=tuple(members))


def print_type(ty: Type) -> str:
	"""Render a type in the textual form accepted by `inferred.type_expr`."""
	cat = ty.category
	if cat is TypeCategory.UNKNOWN:
		return "Unknown"
	if cat is TypeCategory.ANY:
		return "Any"
	if cat is TypeCategory.NEVER:
		return "Never"
	if cat is TypeCategory.NONE:
		return "None"
	if cat is TypeCategory.CLASS:
		if not ty.type_args:
			return ty.name
		inner = ", ".join(print_type(arg) for arg in ty.type_args)
		return f"{ty.name}[{inner}]"
	if cat is TypeCategory.LITERAL:
		if isinstance(ty.value, str):
			return f"Literal[{json.dumps(ty.value)}]"
		return f"Literal[{ty.value!r}]"
	if cat is TypeCategory.UNION:
		return " | ".join(print_type(sub) for sub in ty.subtypes)
	raise AssertionError(f"unhandled type category {cat}")


__all__ = [
	"TypeCategory",
	"Type",
	"UnknownType",
	"AnyType",
	"NeverType",
	"NoneType",
	"ClassType",
	"LiteralType",
	"UnionType",
	"UNKNOWN",
	"ANY",
	"NEVER",
	"NONE",
	"INT",
	"FLOAT",
	"BOOL",
	"STR",
	"BYTES",
	"OBJECT",
	"class_of",
	"literal_of",
	"is_type_same",
	"combine_types",
	"print_type",
]
