"""
Signal aggregation: indicator snapshot -> buy/sell/neutral decision with confidence.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from trading_sim.core.types import Indicator, IndicatorKind, SignalDecision, SignalType
from trading_sim.indicators.engine import RSI_OVERBOUGHT, RSI_OVERSOLD


@dataclass
class AggregatorWeights:
    """Heuristic thresholds and boosts. Only their relative ordering matters."""
    decision_threshold: float = 0.6
    max_confidence: float = 0.95
    trend_boost: float = 0.1
    rsi_boost: float = 0.15
    macd_boost: float = 0.2
    macd_strength_threshold: float = 0.6
    bollinger_boost: float = 0.15
    bollinger_strength_threshold: float = 0.7
    sar_boost: float = 0.1


def _mean_strength(group: Sequence[Indicator]) -> float:
    if not group:
        return 0.0
    return sum(i.strength for i in group) / len(group)


class SignalAggregator:
    """
    Mean strength per side plus confirmation boosts. A side wins only with
    strictly more raw signals and confidence strictly above the threshold.
    """

    def __init__(self, weights: Optional[AggregatorWeights] = None):
        self.weights = weights or AggregatorWeights()

    def analyze(self, indicators: Sequence[Indicator]) -> SignalDecision:
        w = self.weights
        buys = [i for i in indicators if i.signal == SignalType.BUY]
        sells = [i for i in indicators if i.signal == SignalType.SELL]
        by_kind: Dict[IndicatorKind, Indicator] = {i.kind: i for i in indicators}

        strength = {SignalType.BUY: _mean_strength(buys), SignalType.SELL: _mean_strength(sells)}
        notes: Dict[SignalType, List[str]] = {SignalType.BUY: [], SignalType.SELL: []}

        # Trend agreement between the two moving averages
        sma, ema = by_kind.get(IndicatorKind.SMA), by_kind.get(IndicatorKind.EMA)
        if sma and ema and sma.signal == ema.signal and sma.signal != SignalType.NEUTRAL:
            strength[sma.signal] += w.trend_boost
            notes[sma.signal].append("trend alignment")

        rsi = by_kind.get(IndicatorKind.RSI)
        if rsi and rsi.value is not None:
            if rsi.signal == SignalType.BUY and rsi.value <= RSI_OVERSOLD:
                strength[SignalType.BUY] += w.rsi_boost
                notes[SignalType.BUY].append("RSI oversold")
            elif rsi.signal == SignalType.SELL and rsi.value >= RSI_OVERBOUGHT:
                strength[SignalType.SELL] += w.rsi_boost
                notes[SignalType.SELL].append("RSI overbought")

        macd = by_kind.get(IndicatorKind.MACD)
        if macd and macd.signal != SignalType.NEUTRAL and macd.strength > w.macd_strength_threshold:
            strength[macd.signal] += w.macd_boost
            notes[macd.signal].append("MACD crossover" if self._macd_crossed(macd) else "MACD momentum")

        bollinger = by_kind.get(IndicatorKind.BOLLINGER)
        if (
            bollinger
            and bollinger.signal != SignalType.NEUTRAL
            and bollinger.strength > w.bollinger_strength_threshold
        ):
            strength[bollinger.signal] += w.bollinger_boost
            notes[bollinger.signal].append("Bollinger extreme")

        sar = by_kind.get(IndicatorKind.PARABOLIC_SAR)
        if sar and sar.signal != SignalType.NEUTRAL:
            strength[sar.signal] += w.sar_boost
            notes[sar.signal].append("SAR trend")

        buy_strength, sell_strength = strength[SignalType.BUY], strength[SignalType.SELL]

        if len(buys) > len(sells) and buy_strength > w.decision_threshold:
            return self._decide(SignalType.BUY, buy_strength, buys, notes[SignalType.BUY], buy_strength, sell_strength)
        if len(sells) > len(buys) and sell_strength > w.decision_threshold:
            return self._decide(SignalType.SELL, sell_strength, sells, notes[SignalType.SELL], buy_strength, sell_strength)

        if not buys and not sells:
            reason = "No directional signals"
        elif len(buys) == len(sells):
            reason = f"Conflicting signals ({len(buys)} buy / {len(sells)} sell)"
        else:
            reason = "Confidence below threshold"
        return SignalDecision(
            decision=SignalType.NEUTRAL,
            confidence=min(max(buy_strength, sell_strength), w.max_confidence),
            confirmed_count=0,
            reason=reason,
            buy_strength=buy_strength,
            sell_strength=sell_strength,
        )

    def _decide(
        self,
        side: SignalType,
        confidence: float,
        group: Sequence[Indicator],
        notes: Sequence[str],
        buy_strength: float,
        sell_strength: float,
    ) -> SignalDecision:
        reason = f"{side.value.capitalize()} signals from " + ", ".join(i.name for i in group)
        if notes:
            reason += "; " + ", ".join(notes)
        return SignalDecision(
            decision=side,
            confidence=min(confidence, self.weights.max_confidence),
            confirmed_count=len(group),
            reason=reason,
            buy_strength=buy_strength,
            sell_strength=sell_strength,
        )

    @staticmethod
    def _macd_crossed(macd: Indicator) -> bool:
        prev = macd.details.get("prev_histogram")
        hist = macd.details.get("histogram")
        if prev is None or hist is None:
            return False
        return (prev <= 0 < hist) or (prev >= 0 > hist)
