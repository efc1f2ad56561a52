"""
Pydantic data models.

Modules
-------
instrument : Instrument — identity, archetype, bands and append-only series.
effects    : DailySectorEffects — one day's frozen sector shock table.
ledger     : Holding, Trade, TradeResult.
prediction : TrendType, PriceStatus, PredictionResult.
"""
