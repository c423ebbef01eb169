# main.py
import streamlit as st
from utils import (
    format_currency,
    format_percent,
    get_bitcoin_price,
    initialize_session_state,
)
from calculations import (
    RealEstateInputs,
    bitcoin_savings_yearly_values,
    compare_strategies,
    project_bitcoin_savings,
    project_real_estate,
    real_estate_yearly_values,
)
from portfolio import AllocationVector, portfolio_yearly_values, project_portfolio
from simulation import MonteCarloRun
from validation import (
    clamp_input,
    clamp_num_sims,
    validate_projection_inputs,
    validate_simulation_inputs,
)
from config import (
    ASSET_LABELS,
    ASSETS,
    BITCOIN_PRICE_TTL,
    CURRENT_PRICE_RANGE,
    DEFAULT_NUM_SIMS,
    DEFAULT_VOLATILITY,
    NUM_SIMS_RANGE,
    PROJECTION_INPUT_RULES,
    SCENARIO_OPTIONS,
    VOLATILITY_RANGE,
)
from visualization import (
    show_growth_comparison,
    show_simulation_results,
    show_strategy_summary,
)


@st.cache_data(ttl=BITCOIN_PRICE_TTL)
def cached_get_bitcoin_price():
    return get_bitcoin_price()


def run_simulation(inputs, seed=None):
    """Run the Monte Carlo simulator for validated UI inputs.

    ``inputs["volatility"]`` is a percentage; the simulator works in
    fractions.
    """
    run = MonteCarloRun(
        current_price=inputs["current_price"],
        annual_return=inputs["annual_return"],
        volatility=inputs["volatility"] / 100,
        num_sims=clamp_num_sims(inputs["num_sims"]),
        seed=seed,
    )
    return run.run()


def compute_projections(inputs):
    """Run all three strategy projections for validated calculator inputs."""
    re_inputs = RealEstateInputs(
        property_price=inputs["property_price"],
        down_payment=inputs["down_payment"],
        interest_rate=inputs["interest_rate"],
        rental_yield=inputs["rental_yield"],
        appreciation=inputs["appreciation"],
        maintenance_rate=inputs["maintenance_rate"],
        hoa_fee=inputs["hoa_fee"],
        time_horizon=int(inputs["time_horizon"]),
        current_rent=inputs["current_rent"],
        rent_inflation=inputs["rent_inflation"],
    )
    allocation = AllocationVector.from_mapping(
        {asset: inputs[f"{asset}_allocation"] for asset in ASSETS}
    )
    horizon = re_inputs.time_horizon

    real_estate = project_real_estate(re_inputs)
    portfolio = project_portfolio(inputs["initial_investment"], allocation, horizon)
    bitcoin_savings = project_bitcoin_savings(real_estate, re_inputs)
    return {
        "real_estate": real_estate,
        "portfolio": portfolio,
        "bitcoin_savings": bitcoin_savings,
        "comparison": compare_strategies(real_estate, portfolio, bitcoin_savings),
        "series": {
            "real_estate": real_estate_yearly_values(re_inputs),
            "portfolio": portfolio_yearly_values(portfolio, horizon),
            "bitcoin_savings": bitcoin_savings_yearly_values(real_estate, re_inputs),
        },
    }


def render_simulator(current_price):
    with st.form("simulator_form"):
        col1, col2 = st.columns(2)
        with col1:
            price = st.number_input(
                "Current Bitcoin Price (USD)",
                min_value=CURRENT_PRICE_RANGE[0],
                max_value=CURRENT_PRICE_RANGE[1],
                value=float(current_price),
                step=1000.0,
            )
            volatility = st.number_input(
                "Annual Volatility (%)",
                min_value=VOLATILITY_RANGE[0],
                max_value=VOLATILITY_RANGE[1],
                value=DEFAULT_VOLATILITY,
                step=1.0,
            )
        with col2:
            scenario = st.selectbox("Scenario", list(SCENARIO_OPTIONS.keys()), index=0)
            num_sims = st.number_input(
                "Number of Simulations",
                min_value=NUM_SIMS_RANGE[0],
                max_value=NUM_SIMS_RANGE[1],
                value=DEFAULT_NUM_SIMS,
                step=100,
            )
        submitted = st.form_submit_button("🎲 Run Simulation")

    if submitted:
        inputs = {
            "current_price": float(price),
            "volatility": float(volatility),
            "annual_return": SCENARIO_OPTIONS[scenario],
            "num_sims": int(num_sims),
        }
        errors = validate_simulation_inputs(
            inputs["current_price"], inputs["volatility"], inputs["num_sims"]
        )
        if errors:
            for err in errors:
                st.error(err)
        else:
            with st.spinner("Running Monte Carlo simulation..."):
                st.session_state.simulation_results = run_simulation(inputs)

    if st.session_state.get("simulation_results") is not None:
        show_simulation_results(st.session_state.simulation_results)


def _number_input(name, label, column, step=1.0):
    default = PROJECTION_INPUT_RULES[name][2]
    with column:
        return st.number_input(
            label,
            value=float(default),
            step=float(step),
            key=name,
        )


def render_calculator():
    with st.form("calculator_form"):
        st.subheader("🏠 Real Estate")
        col1, col2, col3 = st.columns(3)
        raw = {
            "property_price": _number_input("property_price", "Property Price (USD)", col1, 1000),
            "down_payment": _number_input("down_payment", "Down Payment (USD)", col2, 1000),
            "interest_rate": _number_input("interest_rate", "Interest Rate (%)", col3, 0.1),
            "rental_yield": _number_input("rental_yield", "Rental Yield (%)", col1, 0.1),
            "appreciation": _number_input("appreciation", "Appreciation (%)", col2, 0.1),
            "maintenance_rate": _number_input("maintenance_rate", "Maintenance (%)", col3, 0.1),
            "hoa_fee": _number_input("hoa_fee", "Monthly HOA Fee (USD)", col1, 10),
            "current_rent": _number_input("current_rent", "Current Monthly Rent (USD)", col2, 25),
            "rent_inflation": _number_input("rent_inflation", "Rent Inflation (%)", col3, 0.1),
        }

        st.subheader("₿ Investment Portfolio")
        col4, col5 = st.columns(2)
        raw["initial_investment"] = _number_input(
            "initial_investment", "Initial Investment (USD)", col4, 1000
        )
        raw["time_horizon"] = _number_input("time_horizon", "Time Horizon (years)", col5, 1)
        allocation_cols = st.columns(len(ASSETS))
        for asset, column in zip(ASSETS, allocation_cols):
            name = f"{asset}_allocation"
            raw[name] = _number_input(name, f"{ASSET_LABELS[asset]} (%)", column, 1)

        submitted = st.form_submit_button("Calculate & Compare")

    if not submitted:
        if st.session_state.get("projection_results") is not None:
            render_projection_results(st.session_state.projection_results)
        return

    inputs = {}
    for name, value in raw.items():
        inputs[name], message = clamp_input(name, value)
        if message:
            st.warning(f"{name.replace('_', ' ').capitalize()}: {message}")
    inputs["time_horizon"] = int(inputs["time_horizon"])

    errors = validate_projection_inputs(inputs)
    if errors:
        for err in errors:
            st.error(err)
        st.session_state.projection_results = None
        return

    st.session_state.projection_results = compute_projections(inputs)
    render_projection_results(st.session_state.projection_results)


def render_projection_results(results):
    real_estate = results["real_estate"]
    portfolio = results["portfolio"]
    savings = results["bitcoin_savings"]

    show_strategy_summary(results["comparison"])

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("**🏠 Real Estate**")
        st.metric("Total Investment", format_currency(real_estate.total_investment))
        st.metric("Property Value", format_currency(real_estate.final_property_value))
        st.metric("Net Rental Income", format_currency(real_estate.total_rental_income))
        st.metric("Net Worth", format_currency(real_estate.net_worth))
        st.metric("Annual Return", format_percent(real_estate.annual_return))
        st.metric("Monthly Payment", format_currency(real_estate.monthly_payment))
        st.caption(
            f"P&I {format_currency(real_estate.principal_and_interest)} · "
            f"Tax {format_currency(real_estate.monthly_property_tax)} · "
            f"Insurance {format_currency(real_estate.monthly_home_insurance)} · "
            f"PMI {format_currency(real_estate.monthly_pmi) if real_estate.monthly_pmi > 0 else 'N/A'} · "
            f"HOA {format_currency(real_estate.monthly_hoa_fee) if real_estate.monthly_hoa_fee > 0 else 'N/A'}"
        )
        st.metric("Volatility", format_percent(real_estate.volatility))
    with col2:
        st.markdown("**📈 Investment Portfolio**")
        st.metric("Total Investment", format_currency(portfolio.total_investment))
        st.metric("Portfolio Value", format_currency(portfolio.final_value))
        st.metric("Net Gain", format_currency(portfolio.net_gain))
        st.metric("Annual Return", format_percent(portfolio.annual_return))
        st.metric("Volatility", format_percent(portfolio.actual_volatility))
        st.metric(
            f"BTC Allocation for {format_percent(portfolio.target_volatility)} Volatility",
            format_percent(portfolio.optimized_allocation["btc"]),
        )
    with col3:
        st.markdown("**₿ Bitcoin Savings**")
        st.metric(
            "Monthly BTC Investment",
            format_currency(savings.monthly_btc_investment or savings.monthly_savings),
        )
        st.metric("Total Invested", format_currency(savings.total_investment))
        st.metric("Final Value", format_currency(savings.final_value))
        st.metric("Gain", format_currency(savings.gain))
        st.metric("Annual Return", format_percent(savings.annual_return))

    series = results["series"]
    show_growth_comparison(series["real_estate"], series["portfolio"], series["bitcoin_savings"])
    st.info(
        "Note: These projections are illustrative estimates based on fixed assumptions and should not be considered financial advice."
    )


def main():
    st.title("₿ Bitcoin Research Tools")
    initialize_session_state()
    price, price_warnings = cached_get_bitcoin_price()
    for warning_msg in price_warnings:
        st.warning(warning_msg)
    st.markdown(f"**Current Bitcoin Price:** \\${float(price):,.2f}")

    simulator_tab, calculator_tab = st.tabs(["🎲 Price Simulator", "🏠 Real Estate vs Bitcoin"])
    with simulator_tab:
        render_simulator(price)
    with calculator_tab:
        render_calculator()


if __name__ == "__main__":
    main()
