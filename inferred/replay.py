#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Replay a JSON trace of type-source submissions through InferredType.

A trace is a JSON list of records:

	[
		{"binding": "x", "source": 10, "type": "int"},
		{"binding": "x", "source": 20, "type": "str"},
		{"binding": "x", "source": 10, "type": "bool"}
	]

`binding` is optional (defaults to "_"). Each binding gets its own
InferredType; records are submitted in file order and every step reports the
combined type and whether it changed. With --fixpoint-check the trace is
replayed a second time against the same accumulators and any change on that
pass is reported as an error (the trace has not converged).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from inferred.core.diagnostics import Diagnostic
from inferred.core.span import Span
from inferred.core.types_core import Type, print_type
from inferred.inferred_type import InferredType, TypeSourceId
from inferred.type_expr import TypeExprParseError, parse_type_expr

logger = logging.getLogger(__name__)

DEFAULT_BINDING = "_"
_RECORD_KEYS = frozenset({"binding", "source", "type"})


class TraceError(ValueError):
	"""Malformed trace file or record; converted into a Diagnostic by the CLI."""

	def __init__(self, message: str, *, loc: Span, phase: str = "trace", notes: Optional[List[str]] = None) -> None:
		super().__init__(message)
		self.loc = loc
		self.phase = phase
		self.notes = list(notes or [])

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(message=str(self), phase=self.phase, span=self.loc, notes=self.notes)


@dataclass(frozen=True)
class TraceRecord:
	"""One submission from the trace (`index` is its position in the file)."""

	binding: str
	source_id: TypeSourceId
	type_text: str
	index: int


@dataclass(frozen=True)
class ReplayStep:
	"""Outcome of submitting one record."""

	record: TraceRecord
	type: Type
	combined: Type
	changed: bool

	def to_json(self) -> dict:
		return {
			"index": self.record.index,
			"binding": self.record.binding,
			"source": self.record.source_id,
			"type": print_type(self.type),
			"combined": print_type(self.combined),
			"changed": self.changed,
		}

	def format(self) -> str:
		status = "changed" if self.changed else "unchanged"
		return (
			f"{self.record.binding} source={self.record.source_id} "
			f"{print_type(self.type)} -> {print_type(self.combined)} ({status})"
		)


def load_trace(path: Path) -> List[TraceRecord]:
	"""Read and validate a trace file; raises TraceError."""
	file = str(path)
	try:
		text = path.read_text(encoding="utf-8")
	except OSError as err:
		raise TraceError(f"cannot read trace: {err.strerror or err}", loc=Span(file=file)) from err
	except UnicodeDecodeError as err:
		raise TraceError(f"trace is not valid UTF-8: {err.reason} at byte {err.start}", loc=Span(file=file)) from err
	try:
		data = json.loads(text)
	except json.JSONDecodeError as err:
		raise TraceError(
			f"invalid JSON: {err.msg}",
			loc=Span(file=file, line=err.lineno, column=err.colno),
		) from err
	return parse_trace(data, file=file)


def parse_trace(data: Any, file: Optional[str] = None) -> List[TraceRecord]:
	"""Validate decoded trace JSON into TraceRecords; raises TraceError."""
	if not isinstance(data, list):
		raise TraceError("trace must be a JSON list of records", loc=Span(file=file))

	records: List[TraceRecord] = []
	for index, item in enumerate(data):
		if not isinstance(item, dict):
			raise TraceError(f"record #{index}: expected an object", loc=Span(file=file))
		extra = sorted(set(item) - _RECORD_KEYS)
		if extra:
			raise TraceError(f"record #{index}: unexpected key(s) {', '.join(extra)}", loc=Span(file=file))
		source = item.get("source")
		# bool is an int subclass in Python but not a valid source id here.
		if not isinstance(source, int) or isinstance(source, bool):
			raise TraceError(f"record #{index}: 'source' must be an integer", loc=Span(file=file))
		type_text = item.get("type")
		if not isinstance(type_text, str):
			raise TraceError(f"record #{index}: 'type' must be a string", loc=Span(file=file))
		binding = item.get("binding", DEFAULT_BINDING)
		if not isinstance(binding, str) or not binding:
			raise TraceError(f"record #{index}: 'binding' must be a non-empty string", loc=Span(file=file))
		records.append(TraceRecord(binding=binding, source_id=source, type_text=type_text, index=index))
	return records


def resolve_record_types(records: Sequence[TraceRecord], file: Optional[str] = None) -> List[Tuple[TraceRecord, Type]]:
	"""Parse every record's type text up front so a bad record fails before any replay."""
	resolved: List[Tuple[TraceRecord, Type]] = []
	for record in records:
		try:
			ty = parse_type_expr(record.type_text)
		except TypeExprParseError as err:
			notes = []
			if err.loc.column is not None:
				notes.append(f"at column {err.loc.column} of {record.type_text!r}")
			raise TraceError(f"record #{record.index}: {err}", loc=Span(file=file), phase="type-expr", notes=notes) from err
		resolved.append((record, ty))
	return resolved


@dataclass
class TraceReplayer:
	"""Owns one InferredType per binding and feeds resolved records into them."""

	bindings: Dict[str, InferredType] = field(default_factory=dict)

	def submit(self, record: TraceRecord, ty: Type) -> ReplayStep:
		inferred = self.bindings.get(record.binding)
		if inferred is None:
			inferred = InferredType()
			self.bindings[record.binding] = inferred
		changed = inferred.add_source(ty, record.source_id)
		return ReplayStep(record=record, type=ty, combined=inferred.get_type(), changed=changed)

	def replay(self, resolved: Sequence[Tuple[TraceRecord, Type]]) -> List[ReplayStep]:
		return [self.submit(record, ty) for record, ty in resolved]

	def bindings_to_json(self) -> dict:
		return {
			name: {
				"type": print_type(inferred.get_type()),
				"sources": [{"source": src.source_id, "type": print_type(src.type)} for src in inferred.get_sources()],
			}
			for name, inferred in self.bindings.items()
		}


def check_fixpoint(second_pass: Sequence[ReplayStep], file: Optional[str] = None) -> List[Diagnostic]:
	"""Diagnostics for every step that still changed its binding on a second pass."""
	diagnostics: List[Diagnostic] = []
	for step in second_pass:
		if not step.changed:
			continue
		diagnostics.append(
			Diagnostic(
				message=(
					f"binding '{step.record.binding}' did not converge: record #{step.record.index} "
					f"(source {step.record.source_id}) changed it to {print_type(step.combined)} on the second pass"
				),
				code="not-converged",
				phase="fixpoint",
				span=Span(file=file),
			)
		)
	return diagnostics


def _configure_logging(verbosity: int) -> None:
	level = max(logging.DEBUG, logging.WARNING - 10 * verbosity)
	logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _emit_failure(diagnostics: Sequence[Diagnostic], as_json: bool, extra: Optional[dict] = None) -> int:
	if as_json:
		payload: dict = {"exit_code": 1}
		payload.update(extra or {})
		payload["diagnostics"] = [diag.to_json() for diag in diagnostics]
		print(json.dumps(payload))
	else:
		for diag in diagnostics:
			print(diag.format(), file=sys.stderr)
	return 1


def main(argv: list[str] | None = None) -> int:
	"""
	Replay a trace and print each step.

	With --json, prints one JSON document (steps, final bindings, diagnostics and
	exit_code); otherwise prints one line per step to stdout and diagnostics to
	stderr.
	"""
	parser = argparse.ArgumentParser(description="Replay type-source submissions through InferredType accumulators")
	parser.add_argument("trace", type=Path, help="Path to a JSON trace file")
	parser.add_argument("--json", action="store_true", help="Emit steps and diagnostics as JSON")
	parser.add_argument(
		"--fixpoint-check",
		action="store_true",
		help="Replay the trace a second time and fail if any binding still changes",
	)
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (repeatable)")
	args = parser.parse_args(argv)

	_configure_logging(args.verbose)
	file = str(args.trace)

	try:
		records = load_trace(args.trace)
		resolved = resolve_record_types(records, file=file)
	except TraceError as err:
		return _emit_failure([err.to_diagnostic()], args.json)

	logger.info("replaying %d record(s) from %s", len(resolved), file)
	replayer = TraceReplayer()
	steps = replayer.replay(resolved)

	diagnostics: List[Diagnostic] = []
	if args.fixpoint_check:
		diagnostics = check_fixpoint(replayer.replay(resolved), file=file)

	if args.json:
		payload = {"steps": [step.to_json() for step in steps], "bindings": replayer.bindings_to_json()}
		if diagnostics:
			return _emit_failure(diagnostics, True, payload)
		print(json.dumps({"exit_code": 0, **payload}))
		return 0

	for step in steps:
		print(step.format())
	if diagnostics:
		return _emit_failure(diagnostics, False)
	return 0


__all__ = [
	"TraceError",
	"TraceRecord",
	"ReplayStep",
	"TraceReplayer",
	"load_trace",
	"parse_trace",
	"resolve_record_types",
	"check_fixpoint",
	"main",
]
