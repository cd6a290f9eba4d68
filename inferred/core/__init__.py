"""
inferred.core: type values, spans and diagnostics shared by the package.

Modules:
  - types_core: type family plus is_type_same/combine_types/print_type
  - span: source locations
  - diagnostics: Diagnostic record
"""

__all__ = [
    "types_core",
    "span",
    "diagnostics",
]
