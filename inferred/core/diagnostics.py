# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostic record shared by the type-expression parser and the replay CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a tooling diagnostic (error/warning)."""

	message: str
	code: str | None = None
	# Which step produced the diagnostic: "trace", "type-expr" or "fixpoint".
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Span() denotes unknown location.
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	def to_json(self) -> dict:
		"""Render to a structured JSON-friendly dict."""
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}

	def format(self) -> str:
		"""Render as `file:line:col: severity: message` (unknown parts are `?`)."""
		file = self.span.file or "<input>"
		line = self.span.line if self.span.line is not None else "?"
		column = self.span.column if self.span.column is not None else "?"
		text = f"{file}:{line}:{column}: {self.severity}: {self.message}"
		for note in self.notes:
			text += f"\n  note: {note}"
		return text


__all__ = ["Diagnostic"]
