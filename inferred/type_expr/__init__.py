# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
inferred.type_expr: textual type expressions (lark grammar + tree builder).
"""

from .parser import TypeExprParseError, parse_type_expr

__all__ = ["parse_type_expr", "TypeExprParseError"]
