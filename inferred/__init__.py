# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
inferred: incremental inferred-type accumulator for static type analysis.

Modules:
  core: type values (types_core), spans and diagnostics
  inferred_type: InferredType, the per-binding source accumulator
  type_expr: parser for textual type expressions
  replay: CLI that replays JSON traces of source submissions
"""

from inferred.inferred_type import DEFAULT_TYPE_SOURCE_ID, InferredType, InferredTypeSource, TypeSourceId

__all__ = ["InferredType", "InferredTypeSource", "TypeSourceId", "DEFAULT_TYPE_SOURCE_ID"]
