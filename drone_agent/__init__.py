"""
Device-side delivery engine: discovers ledger jobs, bids, flies them, reports liveness.
"""
from __future__ import annotations

__version__ = "0.3.0"
