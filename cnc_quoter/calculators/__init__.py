"""
Deterministic calculation engine.

Given a part's geometry and a stock profile, produce cross-section areas,
volumes, weights and stock-unit counts (bars or sheets). Geometry and
nesting are pure math; material_lookup reads the JSON catalog.
"""
