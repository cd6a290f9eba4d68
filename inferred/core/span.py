# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source location attached to diagnostics.

Locations here point either into a trace file (JSON line/column) or into a
type-expression string (1-based column within the text).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Best-effort file/line/column location; all fields optional."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None

	@classmethod
	def from_loc(cls, loc: Any) -> "Span":
		"""
		Construct a Span from a parser location object (lark Token/exception).

		lark reports unknown positions as -1 (e.g. at end of input); those are
		normalized to None.
		"""
		if loc is None:
			return cls()
		if isinstance(loc, cls):
			return loc
		return cls(
			line=_positive_or_none(getattr(loc, "line", None)),
			column=_positive_or_none(getattr(loc, "column", None)),
		)


def _positive_or_none(value: Any) -> Optional[int]:
	if isinstance(value, int) and value > 0:
		return value
	return None


__all__ = ["Span"]
