"""Intraday prediction and recommendation ranking."""
