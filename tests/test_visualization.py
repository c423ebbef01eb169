import importlib
import types

import plotly.graph_objects as go
import pytest

from simulation import MonteCarloRun, SimulationResults

viz = importlib.import_module("visualization")


@pytest.fixture(scope="module")
def results():
    return MonteCarloRun(115_000, 0.3, 0.42, num_sims=200, seed=42).run()


def test_percentile_chart_traces_and_log_axis(results):
    fig = viz.percentile_chart(results.horizons, results.percentile_series())

    assert isinstance(fig, go.Figure)
    assert [trace.name for trace in fig.data] == [name for _, name, _ in viz.PERCENTILE_TRACES]
    assert fig.layout.yaxis.type == "log"
    assert list(fig.data[0].x) == [f"{years} Years" for years in results.horizons]
    median = next(trace for trace in fig.data if trace.name == "Median (50th)")
    assert median.line.color == "#f7931a"
    assert list(median.y) == [results.statistics[y].median for y in results.horizons]


def test_growth_comparison_chart():
    fig = viz.growth_comparison_chart([1, 2, 3], [1, 3, 9], [0, 1, 4])

    assert [trace.name for trace in fig.data] == list(viz.STRATEGY_COLORS)
    assert list(fig.data[1].y) == [1, 3, 9]
    assert list(fig.data[2].x) == [0, 1, 2]


def test_statistics_table(results):
    table = viz.statistics_table(results.statistics)

    assert list(table["Horizon"]) == ["5 Year Projection", "10 Year Projection", "15 Year Projection"]
    assert table.loc[0, "Median"].startswith("$")


@pytest.mark.parametrize(
    "percent, band",
    [(70.0, "high"), (95.5, "high"), (69.9, "medium"), (30.0, "medium"), (29.9, "low"), (0.0, "low")],
)
def test_probability_band(percent, band):
    assert viz.probability_band(percent) == band


def test_probability_table_formats_percentages():
    probabilities = {
        250000: {5: 0.5, 10: 0.875, 15: 1.0, 20: 1.0},
        1000000: {5: 0.0, 10: 0.1234, 15: 0.3, 20: 0.45},
    }
    table = viz.probability_table(probabilities)

    assert list(table.columns) == ["Milestone", "5 Years", "10 Years", "15 Years", "20 Years"]
    assert list(table["Milestone"]) == ["$250K", "$1.00M"]
    assert table.loc[0, "10 Years"] == "87.5%"
    assert table.loc[1, "10 Years"] == "12.3%"


def test_probability_table_empty():
    table = viz.probability_table({})
    assert table.empty
    assert "Milestone" in table.columns


def _fake_streamlit(calls):
    return types.SimpleNamespace(
        plotly_chart=lambda fig, *a, **k: calls.append(("chart", fig)),
        dataframe=lambda data, *a, **k: calls.append(("dataframe", data)),
        info=lambda message, *a, **k: calls.append(("info", message)),
        success=lambda message, *a, **k: calls.append(("success", message)),
        write=lambda message, *a, **k: calls.append(("write", message)),
    )


def test_show_simulation_results(monkeypatch, results):
    calls = []
    monkeypatch.setattr(viz, "st", _fake_streamlit(calls))

    assert viz.show_simulation_results(results) is None
    assert [kind for kind, _ in calls] == ["chart", "dataframe", "dataframe"]


def test_show_simulation_results_without_milestones(monkeypatch, results):
    calls = []
    monkeypatch.setattr(viz, "st", _fake_streamlit(calls))

    empty = SimulationResults(
        current_price=results.current_price,
        num_sims=results.num_sims,
        horizons=results.horizons,
        statistics=results.statistics,
        probabilities={},
    )
    viz.show_simulation_results(empty)

    assert calls[-1] == ("info", "Every milestone is below the current price.")


def test_show_growth_comparison_skips_empty_series(monkeypatch):
    calls = []
    monkeypatch.setattr(viz, "st", _fake_streamlit(calls))

    viz.show_growth_comparison([], [], [])
    assert calls == []

    viz.show_growth_comparison([1, 2], [1, 2], [0, 1])
    assert calls[0][0] == "chart"


def test_show_strategy_summary(monkeypatch):
    calls = []
    monkeypatch.setattr(viz, "st", _fake_streamlit(calls))
    comparison = types.SimpleNamespace(
        winner="portfolio",
        difference=12345.0,
        occupant_saves_by="renting",
        occupant_monthly_savings=250.0,
        bitcoin_final_value=0.0,
    )

    viz.show_strategy_summary(comparison)

    assert calls[0] == (
        "success",
        "₿ Investment Portfolio Strategy Wins! Investment portfolio outperforms by $12,345",
    )
    assert calls[1] == ("write", "Occupant saves by renting $250/month on average")
