"""Signals: indicator aggregation into a trade decision."""

from trading_sim.signals.aggregator import AggregatorWeights, SignalAggregator

__all__ = ["AggregatorWeights", "SignalAggregator"]
