# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Inferred type built from several sources.

A binding's type can be inferred from multiple sources (assignments, branches,
successive analysis passes). Each source has a type and an id that stays the
same across passes. As analysis proceeds a source may be updated (e.g. from
Unknown to a known type); the combined type is recomputed after every update
and callers are told whether it changed so they can drive a fixed-point loop.

There is no way to remove a source. Callers that need retraction either submit
`NEVER` for the source (dropped by `combine_types`) or rebuild the whole
InferredType.

Not thread-safe: one instance belongs to one analysis worker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from inferred.core.types_core import UNKNOWN, Type, combine_types, is_type_same, print_type

logger = logging.getLogger(__name__)

TypeSourceId = int  # stable, caller-assigned, unique within one InferredType
DEFAULT_TYPE_SOURCE_ID: TypeSourceId = 0


@dataclass(frozen=True)
class InferredTypeSource:
	"""One source's current contribution."""

	type: Type
	source_id: TypeSourceId


class InferredType:
	"""Ordered set of type sources plus their eagerly combined type."""

	def __init__(self) -> None:
		self._sources: List[InferredTypeSource] = []
		self._combined_type: Type = UNKNOWN

	def get_type(self) -> Type:
		"""Combined type; Unknown while there are no sources."""
		return self._combined_type

	def get_sources(self) -> Tuple[InferredTypeSource, ...]:
		"""Current sources in first-insertion order (read-only snapshot)."""
		return tuple(self._sources)

	def add_source(self, ty: Type, source_id: TypeSourceId) -> bool:
		"""
		Add a new source, or replace the type of an existing one.

		Returns True if the combined type changed. Resubmitting a source with a
		type equal to its current one returns False without recombining; a
		replaced source keeps its position.
		"""
		index = self._find_source(source_id)
		if index is not None:
			if is_type_same(self._sources[index].type, ty):
				return False
			if logger.isEnabledFor(logging.DEBUG):
				logger.debug("source %s replaced: %s -> %s", source_id, print_type(self._sources[index].type), print_type(ty))
			self._sources[index] = InferredTypeSource(type=ty, source_id=source_id)
		else:
			if logger.isEnabledFor(logging.DEBUG):
				logger.debug("source %s added: %s", source_id, print_type(ty))
			self._sources.append(InferredTypeSource(type=ty, source_id=source_id))

		return self._recompute_combined_type()

	def _find_source(self, source_id: TypeSourceId) -> int | None:
		for index, src in enumerate(self._sources):
			if src.source_id == source_id:
				return index
		return None

	def _recompute_combined_type(self) -> bool:
		if not self._sources:
			new_combined_type: Type = UNKNOWN
		else:
			new_combined_type = combine_types([src.type for src in self._sources])

		if is_type_same(new_combined_type, self._combined_type):
			return False

		if logger.isEnabledFor(logging.DEBUG):
			logger.debug("combined type changed: %s -> %s", print_type(self._combined_type), print_type(new_combined_type))
		self._combined_type = new_combined_type
		return True

	def __repr__(self) -> str:
		sources = ", ".join(f"{src.source_id}: {print_type(src.type)}" for src in self._sources)
		return f"InferredType({print_type(self._combined_type)}; sources=[{sources}])"


__all__ = ["InferredType", "InferredTypeSource", "TypeSourceId", "DEFAULT_TYPE_SOURCE_ID"]
