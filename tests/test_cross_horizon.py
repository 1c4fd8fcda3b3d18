"""Tests for the cross-horizon ensembler."""

from __future__ import annotations

import pytest

from signal_core.config.schema import HorizonConfig
from signal_core.ensemble import CrossHorizonEnsembler
from signal_core.errors import AllModelsFailedError

from factories import make_horizon

ALL = ["1h", "4h", "1d", "1w"]


class TestCrossHorizonEnsembler:
    def setup_method(self):
        self.ensembler = CrossHorizonEnsembler(HorizonConfig())

    def test_importance(self):
        assert self.ensembler.importance("1h") == 0.4
        with pytest.raises(ValueError, match="unknown horizon"):
            self.ensembler.importance("3d")

    def test_full_coverage(self):
        hps = [make_horizon(h, 0.01) for h in ALL]
        ep = self.ensembler.combine(hps, ALL)
        assert ep.coverage == pytest.approx(1.0)
        assert ep.weights == pytest.approx({"1h": 0.4, "4h": 0.3, "1d": 0.2, "1w": 0.1})
        assert ep.expected_return == pytest.approx(0.01)
        assert ep.method == "importance_weighted"

    def test_importance_renormalised_over_available(self):
        hps = [make_horizon("1h", 0.01), make_horizon("1d", 0.04)]
        ep = self.ensembler.combine(hps, ALL)
        assert ep.weights == pytest.approx({"1h": 2 / 3, "1d": 1 / 3})
        assert sum(ep.weights.values()) == pytest.approx(1.0)
        assert ep.expected_return == pytest.approx(0.02)
        assert ep.coverage == pytest.approx(0.6)

    def test_coverage_relative_to_requested(self):
        hps = [make_horizon("1d", 0.01)]
        assert self.ensembler.combine(hps, ["1d"]).coverage == pytest.approx(1.0)
        assert self.ensembler.combine(hps, ["1d", "1w"]).coverage == pytest.approx(2 / 3)

    def test_unrequested_horizons_ignored(self):
        hps = [make_horizon("1h", 0.05), make_horizon("1d", 0.01)]
        ep = self.ensembler.combine(hps, ["1d"])
        assert ep.weights == {"1d": 1.0}
        assert ep.expected_return == pytest.approx(0.01)

    def test_unknown_requestedmake_horizon(self):
        with pytest.raises(ValueError):
            self.ensembler.combine([make_horizon("1d", 0.01)], ["1d", "3d"])

    def test_nothing_available(self):
        with pytest.raises(AllModelsFailedError) as exc_info:
            self.ensembler.combine([], ["1h", "1d"])
        assert exc_info.value.horizons == ["1h", "1d"]

    def test_confidence_is_weighted(self):
        hps = [make_horizon("1h", 0.01, 0.9), make_horizon("4h", 0.01, 0.6)]
        ep = self.ensembler.combine(hps, ["1h", "4h"])
        assert ep.confidence == pytest.approx((0.4 * 0.9 + 0.3 * 0.6) / 0.7)
