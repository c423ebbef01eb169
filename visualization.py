# visualization.py
import streamlit as st
import pandas as pd
import plotly.graph_objects as go
from collections.abc import Sequence

from config import PROB_HIGH, PROB_MEDIUM, PROBABILITY_HORIZONS, STATS_HORIZONS
from utils import format_currency, format_price

PERCENTILE_TRACES = (
    ("p90", "90th Percentile", "#00ff00"),
    ("p75", "75th Percentile", "#88ff88"),
    ("p50", "Median (50th)", "#f7931a"),
    ("p25", "25th Percentile", "#ff8888"),
    ("p10", "10th Percentile", "#ff0000"),
)

STRATEGY_COLORS = {
    "Real Estate Net Worth": "#e74c3c",
    "Investment Portfolio Value": "#3498db",
    "Bitcoin Savings Strategy": "#f7931a",
}


def percentile_chart(horizons: Sequence, series: dict[str, list[float]]) -> go.Figure:
    """Build the percentile range chart of simulated prices.

    Parameters
    ----------
    horizons:
        Horizons in years, in display order.
    series:
        Mapping of ``p10``/``p25``/``p50``/``p75``/``p90`` to one price per
        horizon, as returned by ``SimulationResults.percentile_series``.
    """
    labels = [f"{years} Years" for years in horizons]
    fig = go.Figure()
    for key, name, color in PERCENTILE_TRACES:
        fig.add_trace(
            go.Scatter(
                x=labels,
                y=series[key],
                mode="lines",
                name=name,
                line=dict(color=color, width=2),
            )
        )
    fig.update_layout(
        title="Bitcoin Price - Percentile Ranges",
        xaxis_title="Time Horizon",
        yaxis=dict(type="log", title="Price (USD)", tickformat="$,.0f"),
        margin=dict(t=60, b=60, l=80, r=30),
        legend=dict(orientation="h", yanchor="top", y=-0.15, xanchor="center", x=0.5),
    )
    return fig


def growth_comparison_chart(
    real_estate: Sequence[float],
    portfolio: Sequence[float],
    bitcoin_savings: Sequence[float],
) -> go.Figure:
    """Year-by-year value of the three strategies on one chart."""
    years = list(range(len(real_estate)))
    df = pd.DataFrame(
        {
            "Year": years,
            "Real Estate Net Worth": list(real_estate),
            "Investment Portfolio Value": list(portfolio),
            "Bitcoin Savings Strategy": list(bitcoin_savings),
        }
    )
    fig = go.Figure()
    for column, color in STRATEGY_COLORS.items():
        fig.add_trace(
            go.Scatter(
                x=df["Year"],
                y=df[column],
                mode="lines",
                name=column,
                line=dict(color=color, width=3, shape="spline"),
            )
        )
    fig.update_layout(
        title="Investment Growth Comparison Over Time",
        xaxis_title="Years",
        yaxis=dict(title="Value (USD)", tickformat="$,.0f"),
        hovermode="x unified",
        margin=dict(t=60, b=40, l=80, r=30),
    )
    return fig


def statistics_table(statistics: dict, horizons: Sequence = STATS_HORIZONS) -> pd.DataFrame:
    """Per-horizon summary rows for the statistics cards."""
    rows = []
    for years in horizons:
        stats = statistics[years]
        rows.append(
            {
                "Horizon": f"{years} Year Projection",
                "Median": format_price(stats.median),
                "Mean": format_price(stats.mean),
                "10th - 90th Percentile": f"{format_price(stats.p10)} - {format_price(stats.p90)}",
                "25th - 75th Percentile": f"{format_price(stats.p25)} - {format_price(stats.p75)}",
                "Min - Max": f"{format_price(stats.min)} - {format_price(stats.max)}",
            }
        )
    return pd.DataFrame(rows)


def probability_band(percent: float) -> str:
    if percent >= PROB_HIGH:
        return "high"
    if percent >= PROB_MEDIUM:
        return "medium"
    return "low"


def probability_table(
    probabilities: dict, horizons: Sequence = PROBABILITY_HORIZONS
) -> pd.DataFrame:
    """Milestone rows with the crossing probability per horizon as ``12.3%``."""
    rows = []
    for milestone, by_horizon in probabilities.items():
        row = {"Milestone": format_price(milestone)}
        for years in horizons:
            row[f"{years} Years"] = f"{by_horizon[years] * 100:.1f}%"
        rows.append(row)
    return pd.DataFrame(rows, columns=["Milestone"] + [f"{y} Years" for y in horizons])


def _style_probability(cell: str) -> str:
    if not cell.endswith("%"):
        return ""
    colors = {"high": "#2ecc71", "medium": "#f1c40f", "low": "#e74c3c"}
    return f"color: {colors[probability_band(float(cell[:-1]))]}"


def show_simulation_results(results) -> None:
    """Render the percentile chart, statistics and probability table."""
    st.plotly_chart(
        percentile_chart(results.horizons, results.percentile_series()),
        use_container_width=True,
    )
    st.dataframe(statistics_table(results.statistics), hide_index=True)
    table = probability_table(results.probabilities)
    if table.empty:
        st.info("Every milestone is below the current price.")
        return
    st.dataframe(table.style.map(_style_probability), hide_index=True)


def show_growth_comparison(real_estate, portfolio, bitcoin_savings) -> None:
    """Render the growth comparison chart of the three strategies."""
    if not real_estate:
        return
    fig = growth_comparison_chart(real_estate, portfolio, bitcoin_savings)
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def show_strategy_summary(comparison) -> None:
    """Write the winner line and the occupant savings summary."""
    if comparison.winner == "real_estate":
        st.success(
            f"🏠 Real Estate Strategy Wins! Real Estate outperforms by {format_currency(comparison.difference)}"
        )
    else:
        st.success(
            f"₿ Investment Portfolio Strategy Wins! Investment portfolio outperforms by {format_currency(comparison.difference)}"
        )
    btc_benefit = (
        f" • Bitcoin strategy could yield {format_currency(comparison.bitcoin_final_value)} total"
        if comparison.bitcoin_final_value > 0
        else ""
    )
    st.write(
        f"Occupant saves by {comparison.occupant_saves_by} "
        f"{format_currency(comparison.occupant_monthly_savings)}/month on average{btc_benefit}"
    )
