"""Trend-following selection between the up-trend and down-trend weight sets."""

import logging
from typing import Dict, Optional

from rebalancer.core.models import WeightDecision
from rebalancer.oracles.base import PricePredictor, TrendDirection, TrendSignal

logger = logging.getLogger(__name__)


class WeightSelector:
    """Chooses the weight set for each cycle.

    A trend needs a crossover to flip the selection; when the predictor is
    enabled and has an opinion, it must agree with the trend. Inconclusive
    signals keep the last decided trend, which starts as up.
    """

    def __init__(
        self,
        weights_up: Dict[str, int],
        weights_down: Dict[str, int],
        trend_signal: Optional[TrendSignal] = None,
        predictor: Optional[PricePredictor] = None,
        trend_following: bool = False,
        last_trend_up: bool = True,
    ):
        if trend_following and trend_signal is None:
            raise ValueError("Trend following requires a trend signal")
        self.weights_up = dict(weights_up)
        self.weights_down = dict(weights_down)
        self.trend_signal = trend_signal
        self.predictor = predictor
        self.trend_following = trend_following
        self.last_trend_up = last_trend_up

    async def ai_signal(self) -> str:
        """``up``, ``down`` or ``none`` from the price predictor."""
        if self.predictor is None:
            return "none"
        prediction = await self.predictor.predict()
        if prediction.predicted > prediction.actual:
            return "up"
        if prediction.predicted < prediction.actual:
            return "down"
        return "none"

    async def select(self) -> WeightDecision:
        if not self.trend_following:
            return WeightDecision(trend_up=True, weights=dict(self.weights_up))

        reading = await self.trend_signal.read()
        ai_signal = await self.ai_signal()
        logger.debug(f"AI signal: {ai_signal}, trend: {reading.direction.value}, cross: {reading.crossed}")

        trend_up = self.last_trend_up
        if reading.crossed and reading.direction is TrendDirection.UP and ai_signal in ("up", "none"):
            trend_up = True
        elif reading.crossed and reading.direction is TrendDirection.DOWN and ai_signal in ("down", "none"):
            trend_up = False
        self.last_trend_up = trend_up

        logger.info(f"Trend: {'up' if trend_up else 'down'}")
        return WeightDecision(
            trend_up=trend_up,
            weights=dict(self.weights_up if trend_up else self.weights_down),
            trend_direction=reading.direction.value,
            trend_crossed=reading.crossed,
            ai_signal=ai_signal,
        )
