"""Stop-loss / take-profit levels from a volatility proxy.

LONG:  stop < entry < take
SHORT: take < entry < stop
"""

from __future__ import annotations

from signal_core.config.schema import LevelsConfig
from signal_core.models import FeatureVector, LevelTier, TradingLevels, TradingSignal


class LevelsCalculator:
    def __init__(self, config: LevelsConfig | None = None) -> None:
        self.config = config or LevelsConfig()

    def stop_distance(self, atr: float, strength: float, volatility: float) -> float:
        """Stronger signals get tighter stops."""
        return atr * (2 - strength) * max(1.0, volatility * self.config.stop_volatility_scale)

    def take_distance(self, atr: float, strength: float, volatility: float) -> float:
        """Stronger signals reach for wider targets."""
        cfg = self.config
        return atr * (1 + strength) * max(cfg.take_min_multiple, volatility * cfg.take_volatility_scale)

    def calculate(self, signal: TradingSignal, features: FeatureVector) -> TradingLevels:
        cfg = self.config
        entry = features.price
        vol = abs(features.volatility)
        min_gap = entry * cfg.min_distance_pct
        atr = max(vol * entry * cfg.atr_factor, min_gap)
        support = features.support if 0 < features.support < entry else entry * (1 - cfg.hold_band)
        resistance = (
            features.resistance if features.resistance > entry else entry * (1 + cfg.hold_band)
        )

        stop_dist = max(self.stop_distance(atr, signal.strength, vol), min_gap)
        take_dist = max(self.take_distance(atr, signal.strength, vol), min_gap)

        if signal.signal.is_buy:
            direction = "LONG"
            stop = min(max(support, entry - stop_dist), entry - min_gap)
            take = max(min(resistance * cfg.resistance_extension, entry + take_dist), entry + min_gap)
        elif signal.signal.is_sell:
            direction = "SHORT"
            stop = max(min(resistance, entry + stop_dist), entry + min_gap)
            take = min(max(support * cfg.support_extension, entry - take_dist), entry - min_gap)
        else:
            direction = "FLAT"
            stop = entry * (1 - cfg.hold_band)
            take = entry * (1 + cfg.hold_band)

        risk = abs(entry - stop)
        return TradingLevels(
            entry=entry,
            stop_loss=stop,
            take_profit=take,
            support=support,
            resistance=resistance,
            tiers={
                name: LevelTier(support=entry * (1 - pct), resistance=entry * (1 + pct))
                for name, pct in cfg.tiers.items()
            },
            risk_reward_ratio=abs(take - entry) / risk if risk > 0 else 0.0,
            atr=atr,
            direction=direction,
        )
