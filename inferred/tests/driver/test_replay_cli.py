from __future__ import annotations

import json
from pathlib import Path

import pytest

from inferred.core.types_core import INT, STR, UnionType
from inferred.replay import (
	TraceError,
	TraceRecord,
	TraceReplayer,
	main as replay_main,
	parse_trace,
	resolve_record_types,
)


def _write_trace(tmp_path: Path, records) -> Path:
	path = tmp_path / "trace.json"
	path.write_text(json.dumps(records), encoding="utf-8")
	return path


def _run_json(argv: list[str], capsys) -> tuple[int, dict]:
	rc = replay_main(argv + ["--json"])
	out = capsys.readouterr().out
	return rc, json.loads(out)


_SCENARIO = [
	{"binding": "x", "source": 10, "type": "int"},
	{"binding": "x", "source": 20, "type": "str"},
	{"binding": "x", "source": 10, "type": "int"},
	{"binding": "x", "source": 10, "type": "bool"},
]


def test_replay_prints_each_step(tmp_path: Path, capsys) -> None:
	trace = _write_trace(tmp_path, _SCENARIO)

	rc = replay_main([str(trace)])
	out = capsys.readouterr().out.splitlines()

	assert rc == 0
	assert out == [
		"x source=10 int -> int (changed)",
		"x source=20 str -> int | str (changed)",
		"x source=10 int -> int | str (unchanged)",
		"x source=10 bool -> bool | str (changed)",
	]


def test_replay_json_reports_steps_and_bindings(tmp_path: Path, capsys) -> None:
	trace = _write_trace(tmp_path, _SCENARIO + [{"source": 1, "type": "None"}])

	rc, payload = _run_json([str(trace)], capsys)

	assert rc == 0
	assert payload["exit_code"] == 0
	assert [step["changed"] for step in payload["steps"]] == [True, True, False, True, True]
	assert payload["bindings"]["x"] == {
		"type": "bool | str",
		"sources": [{"source": 10, "type": "bool"}, {"source": 20, "type": "str"}],
	}
	assert payload["bindings"]["_"]["type"] == "None"


def test_replay_reports_invalid_json(tmp_path: Path, capsys) -> None:
	trace = tmp_path / "trace.json"
	trace.write_text('[\n  {"source": 1,\n', encoding="utf-8")

	rc, payload = _run_json([str(trace)], capsys)

	assert rc == 1
	diag = payload["diagnostics"][0]
	assert diag["phase"] == "trace"
	assert diag["message"].startswith("invalid JSON")
	assert diag["file"] == str(trace)
	assert diag["line"] is not None


def test_replay_reports_missing_file(tmp_path: Path, capsys) -> None:
	missing = tmp_path / "missing.json"

	rc = replay_main([str(missing)])
	err = capsys.readouterr().err

	assert rc == 1
	assert err.startswith(f"{missing}:?:?: error: cannot read trace")


def test_replay_reports_bad_type_expression(tmp_path: Path, capsys) -> None:
	trace = _write_trace(tmp_path, [{"source": 1, "type": "int"}, {"source": 2, "type": "list[int"}])

	rc, payload = _run_json([str(trace)], capsys)

	assert rc == 1
	assert "steps" not in payload
	diag = payload["diagnostics"][0]
	assert diag["phase"] == "type-expr"
	assert diag["message"].startswith("record #1:")


def test_fixpoint_check_passes_for_converged_trace(tmp_path: Path, capsys) -> None:
	trace = _write_trace(
		tmp_path,
		[
			{"binding": "x", "source": 1, "type": "int"},
			{"binding": "x", "source": 2, "type": "str"},
		],
	)

	rc, payload = _run_json([str(trace), "--fixpoint-check"], capsys)

	assert rc == 0
	assert "diagnostics" not in payload


def test_fixpoint_check_flags_oscillating_source(tmp_path: Path, capsys) -> None:
	trace = _write_trace(tmp_path, _SCENARIO)

	rc, payload = _run_json([str(trace), "--fixpoint-check"], capsys)

	assert rc == 1
	assert len(payload["steps"]) == 4
	codes = {diag["code"] for diag in payload["diagnostics"]}
	assert codes == {"not-converged"}
	# Source 10 flips back to int and then to bool on the second pass.
	assert len(payload["diagnostics"]) == 2


def test_fixpoint_check_human_output(tmp_path: Path, capsys) -> None:
	trace = _write_trace(tmp_path, _SCENARIO)

	rc = replay_main([str(trace), "--fixpoint-check"])
	captured = capsys.readouterr()

	assert rc == 1
	assert len(captured.out.splitlines()) == 4
	assert "did not converge" in captured.err


@pytest.mark.parametrize(
	"data, message",
	[
		({"source": 1}, "trace must be a JSON list"),
		([1], "expected an object"),
		([{"source": "1", "type": "int"}], "'source' must be an integer"),
		([{"source": True, "type": "int"}], "'source' must be an integer"),
		([{"source": 1}], "'type' must be a string"),
		([{"source": 1, "type": "int", "binding": ""}], "'binding' must be a non-empty string"),
		([{"source": 1, "type": "int", "extra": 0}], "unexpected key(s) extra"),
	],
)
def test_parse_trace_rejects_bad_records(data, message) -> None:
	with pytest.raises(TraceError) as excinfo:
		parse_trace(data, file="t.json")

	assert message in str(excinfo.value)
	assert excinfo.value.loc.file == "t.json"


def test_replayer_keeps_one_accumulator_per_binding() -> None:
	records = parse_trace(
		[
			{"binding": "a", "source": 1, "type": "int"},
			{"binding": "b", "source": 1, "type": "str"},
			{"binding": "a", "source": 2, "type": "str"},
		]
	)
	replayer = TraceReplayer()

	steps = replayer.replay(resolve_record_types(records))

	assert [step.changed for step in steps] == [True, True, True]
	assert replayer.bindings["a"].get_type() == UnionType(subtypes=(INT, STR))
	assert replayer.bindings["b"].get_type() == STR
	assert records[2] == TraceRecord(binding="a", source_id=2, type_text="str", index=2)


def test_replay_reports_non_utf8_trace(tmp_path: Path, capsys) -> None:
	trace = tmp_path / "trace.json"
	trace.write_bytes(b'[{"source": 1, "type": "\xff"}]')

	rc, payload = _run_json([str(trace)], capsys)

	assert rc == 1
	diag = payload["diagnostics"][0]
	assert diag["phase"] == "trace"
	assert diag["message"].startswith("trace is not valid UTF-8")


def test_replay_accepts_escaped_unicode_literal(tmp_path: Path, capsys) -> None:
	trace = _write_trace(tmp_path, [{"source": 1, "type": 'Literal["\\u00e9"]'}])

	rc, payload = _run_json([str(trace)], capsys)

	assert rc == 0
	assert payload["steps"][0]["combined"] == 'Literal["\\u00e9"]'


def test_replay_reports_bad_string_escape(tmp_path: Path, capsys) -> None:
	trace = _write_trace(tmp_path, [{"source": 1, "type": 'Literal["\\q"]'}])

	rc, payload = _run_json([str(trace)], capsys)

	assert rc == 1
	diag = payload["diagnostics"][0]
	assert diag["phase"] == "type-expr"
	assert "invalid string literal" in diag["message"]
