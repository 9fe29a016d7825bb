import pytest

from tickerlens.analysis.enricher import IndicatorEnricher
from tickerlens.analysis.view import IndicatorSettings, chart_points, has_flow_data
from tickerlens.data.records import NetFlow


@pytest.fixture
def enriched(sample_bars):
    return IndicatorEnricher().enrich(sample_bars)


class TestChartPoints:
    def test_default_window(self, enriched):
        assert len(chart_points(enriched, IndicatorSettings())) == len(enriched)
        assert len(chart_points(enriched, IndicatorSettings(), bars_to_show=10)) == 10

    def test_tail_is_latest(self, enriched):
        points = chart_points(enriched, IndicatorSettings(), bars_to_show=5)
        assert points[-1].label == enriched.latest.label

    def test_adjusted_basis(self, enriched):
        last = enriched.latest
        adj = chart_points(enriched, IndicatorSettings(use_adjusted=True), bars_to_show=1)[0]
        raw = chart_points(enriched, IndicatorSettings(use_adjusted=False), bars_to_show=1)[0]
        assert adj.close == pytest.approx(last.bar.close_adj)
        assert raw.close == last.bar.close
        assert adj.ma[5] == last.adjusted.ma5
        assert raw.ma[5] == last.raw.ma5

    def test_hidden_indicators(self, enriched):
        settings = IndicatorSettings(show_ma5=False, show_rsi=False, show_j=False)
        point = chart_points(enriched, settings, bars_to_show=1)[0]
        assert point.ma[5] is None
        assert point.ma[10] is not None
        assert point.rsi is None
        assert point.j is None
        assert point.k is not None


class TestHasFlowData:
    def test_no_flows(self, enriched):
        assert not has_flow_data(enriched)

    def test_with_flows(self, sample_bars):
        flows = {sample_bars[0].local_date: NetFlow(trust=3.0)}
        assert has_flow_data(IndicatorEnricher().enrich(sample_bars, flows=flows))
