"""
market_sim.simulation — seeded price simulation.

Modules:
  volatility — archetype sampling and hourly multiplicative ranges.
  library    — candidate generation and session selection.
  effects    — daily sector-effect tables with cyclic lookup.
  price_math — pure hourly update, rounding and band rules.
  engine     — per-instrument streams, series generation, trades.
  clock      — game clock and composition root.
"""
