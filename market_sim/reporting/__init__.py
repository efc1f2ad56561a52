"""
market_sim.reporting — plain-text rendering and flat-file export.

Modules:
  formatters — ASCII renderers for predictions, rankings and market tables.
  export     — effects snapshot plus CSV/JSON writers.
"""
