"""Mortgage, real estate and Bitcoin savings projections."""

import logging
from dataclasses import dataclass, fields
from math import isfinite

import numpy as np

from config import (
    HOME_INSURANCE_RATE,
    MORTGAGE_TERM_MONTHS,
    PMI_DOWN_PAYMENT_THRESHOLD,
    PMI_RATE,
    PROJECTION_INPUT_RULES,
    PROPERTY_TAX_RATE,
    REAL_ESTATE_LONG_TERM_VOLATILITY,
    REAL_ESTATE_VOLATILITY_BANDS,
)
from portfolio import PortfolioProjection, average_returns, bitcoin_return_schedule, validate_horizon

# Below this monthly rate the loan is amortized in equal principal payments
_ZERO_RATE = 1e-12


def _default(name):
    return PROJECTION_INPUT_RULES[name][2]


@dataclass(frozen=True)
class RealEstateInputs:
    """Inputs for the real estate and Bitcoin savings projections.

    Rates are percentages (``6.7`` for 6.7%); ``hoa_fee`` and
    ``current_rent`` are monthly amounts.
    """

    property_price: float = _default("property_price")
    down_payment: float = _default("down_payment")
    interest_rate: float = _default("interest_rate")
    rental_yield: float = _default("rental_yield")
    appreciation: float = _default("appreciation")
    maintenance_rate: float = _default("maintenance_rate")
    hoa_fee: float = _default("hoa_fee")
    time_horizon: int = _default("time_horizon")
    current_rent: float = _default("current_rent")
    rent_inflation: float = _default("rent_inflation")

    def validate(self) -> None:
        """Raise ``ValueError`` if the inputs cannot be projected."""
        invalid = [f.name for f in fields(self) if not isfinite(getattr(self, f.name))]
        if invalid:
            raise ValueError(f"inputs must be finite numbers: {', '.join(invalid)}")
        if not self.property_price > 0:
            raise ValueError("property_price must be positive")
        if self.down_payment < 0:
            raise ValueError("down_payment cannot be negative")
        if self.down_payment > self.property_price:
            raise ValueError("down_payment cannot exceed property_price")
        if self.interest_rate < 0:
            raise ValueError("interest_rate cannot be negative")
        if self.hoa_fee < 0 or self.current_rent < 0:
            raise ValueError("hoa_fee and current_rent cannot be negative")
        validate_horizon(self.time_horizon)

    @property
    def loan_amount(self) -> float:
        return self.property_price - self.down_payment

    @property
    def monthly_rate(self) -> float:
        return self.interest_rate / 100 / 12


@dataclass
class RealEstateProjection:
    """Results returned from :func:`project_real_estate`."""

    total_investment: float
    final_property_value: float
    total_rental_income: float
    net_worth: float
    annual_return: float
    monthly_payment: float
    principal_and_interest: float
    monthly_property_tax: float
    monthly_home_insurance: float
    monthly_pmi: float
    monthly_hoa_fee: float
    total_interest: float
    total_taxes_and_insurance: float
    total_hoa_fees: float
    remaining_balance: float
    monthly_savings: float
    total_savings_for_occupant: float
    monthly_rent: float
    volatility: float


@dataclass
class BitcoinSavingsProjection:
    """Results returned from :func:`project_bitcoin_savings`."""

    monthly_savings: float
    monthly_btc_investment: float
    total_investment: float
    final_value: float
    gain: float
    annual_return: float


@dataclass
class StrategyComparison:
    """Summary returned from :func:`compare_strategies`."""

    winner: str
    difference: float
    occupant_saves_by: str
    occupant_monthly_savings: float
    bitcoin_final_value: float


def mortgage_payment(principal, monthly_rate, num_payments=MORTGAGE_TERM_MONTHS):
    """Monthly principal and interest payment of a fixed-rate loan.

    A zero rate amortizes in ``num_payments`` equal principal payments.
    """
    if num_payments < 1:
        raise ValueError("num_payments must be at least 1")
    if not isfinite(monthly_rate) or monthly_rate < 0:
        raise ValueError("monthly_rate must be a non-negative finite rate")
    if abs(monthly_rate) < _ZERO_RATE:
        return principal / num_payments
    growth = (1 + monthly_rate) ** num_payments
    return principal * (monthly_rate * growth) / (growth - 1)


def remaining_balance(principal, monthly_rate, num_payments, payments_made):
    """Outstanding loan balance after ``payments_made`` monthly payments."""
    if payments_made >= num_payments:
        return 0.0
    payment = mortgage_payment(principal, monthly_rate, num_payments)
    if abs(monthly_rate) < _ZERO_RATE:
        return principal - payment * payments_made
    growth = (1 + monthly_rate) ** payments_made
    return principal * growth - payment * (growth - 1) / monthly_rate


def calculate_total_rent(monthly_rent, years, rent_inflation):
    """Total rent paid over ``years`` with rent rising once a year"""
    rate = rent_inflation / 100
    if rate == 0:
        return monthly_rent * 12 * years
    return monthly_rent * 12 * ((1 + rate) ** years - 1) / rate


def real_estate_volatility(time_horizon: int) -> float:
    """Property value volatility for a holding period, by horizon band."""
    for max_years, volatility in REAL_ESTATE_VOLATILITY_BANDS:
        if time_horizon <= max_years:
            return volatility
    return REAL_ESTATE_LONG_TERM_VOLATILITY


def project_real_estate(inputs: RealEstateInputs) -> RealEstateProjection:
    """Project net worth from buying the property and holding it.

    Net worth is property equity at the horizon plus accumulated net rental
    income. ``total_investment`` counts interest and taxes/insurance/PMI over
    the full mortgage term. ``monthly_savings`` is the average of the total
    monthly payment minus rent across the horizon; positive means renting is
    cheaper.

    Raises:
        ValueError: If the inputs fail :meth:`RealEstateInputs.validate`.
    """
    inputs.validate()
    horizon = int(inputs.time_horizon)
    price = inputs.property_price
    loan_amount = inputs.loan_amount
    monthly_rate = inputs.monthly_rate
    n = MORTGAGE_TERM_MONTHS

    principal_and_interest = mortgage_payment(loan_amount, monthly_rate, n)
    monthly_property_tax = price * PROPERTY_TAX_RATE / 12
    monthly_home_insurance = price * HOME_INSURANCE_RATE / 12
    requires_pmi = inputs.down_payment / price < PMI_DOWN_PAYMENT_THRESHOLD
    monthly_pmi = loan_amount * PMI_RATE / 12 if requires_pmi else 0.0
    monthly_hoa_fee = inputs.hoa_fee
    monthly_payment = (
        principal_and_interest
        + monthly_property_tax
        + monthly_home_insurance
        + monthly_pmi
        + monthly_hoa_fee
    )

    total_interest = principal_and_interest * n - loan_amount
    total_taxes_and_insurance = (monthly_property_tax + monthly_home_insurance + monthly_pmi) * n
    total_hoa_fees = monthly_hoa_fee * horizon * 12

    final_property_value = price * (1 + inputs.appreciation / 100) ** horizon
    annual_maintenance = price * inputs.maintenance_rate / 100
    net_annual_rental_income = price * inputs.rental_yield / 100 - annual_maintenance
    total_rental_income = net_annual_rental_income * horizon

    total_investment = (
        inputs.down_payment
        + total_interest
        + total_taxes_and_insurance
        + total_hoa_fees
        + annual_maintenance * horizon
    )
    balance = remaining_balance(loan_amount, monthly_rate, n, horizon * 12)
    net_worth = final_property_value - balance + total_rental_income

    ratio = net_worth / total_investment
    if ratio > 0:
        annual_return = ratio ** (1 / horizon) - 1
    else:
        logging.warning("Real estate net worth %.2f is not positive; reporting a total loss", net_worth)
        annual_return = -1.0

    total_rent = calculate_total_rent(inputs.current_rent, horizon, inputs.rent_inflation)
    total_savings_for_occupant = monthly_payment * 12 * horizon - total_rent

    return RealEstateProjection(
        total_investment=total_investment,
        final_property_value=final_property_value,
        total_rental_income=total_rental_income,
        net_worth=net_worth,
        annual_return=annual_return,
        monthly_payment=monthly_payment,
        principal_and_interest=principal_and_interest,
        monthly_property_tax=monthly_property_tax,
        monthly_home_insurance=monthly_home_insurance,
        monthly_pmi=monthly_pmi,
        monthly_hoa_fee=monthly_hoa_fee,
        total_interest=total_interest,
        total_taxes_and_insurance=total_taxes_and_insurance,
        total_hoa_fees=total_hoa_fees,
        remaining_balance=balance,
        monthly_savings=total_savings_for_occupant / (12 * horizon),
        total_savings_for_occupant=total_savings_for_occupant,
        monthly_rent=inputs.current_rent,
        volatility=real_estate_volatility(horizon),
    )


def real_estate_yearly_values(inputs: RealEstateInputs) -> list[float]:
    """Real estate net worth at the end of each year ``0..time_horizon``.

    Year 0 is the down payment; later years are property equity plus the
    net rental income accumulated so far.
    """
    inputs.validate()
    horizon = int(inputs.time_horizon)
    price = inputs.property_price
    net_annual_rental_income = price * (inputs.rental_yield - inputs.maintenance_rate) / 100

    values = [float(inputs.down_payment)]
    for year in range(1, horizon + 1):
        property_value = price * (1 + inputs.appreciation / 100) ** year
        balance = remaining_balance(
            inputs.loan_amount, inputs.monthly_rate, MORTGAGE_TERM_MONTHS, year * 12
        )
        values.append(property_value - balance + net_annual_rental_income * year)
    return values


def monthly_btc_investments(monthly_payment, current_rent, rent_inflation, time_horizon) -> np.ndarray:
    """Amount invested in Bitcoin each month ``1..12 * time_horizon``.

    Rent rises by ``rent_inflation`` percent at the start of every year after
    the first. A month invests ``monthly_payment - rent`` when rent is below
    the payment, and nothing otherwise.
    """
    horizon = validate_horizon(time_horizon)
    months = np.arange(1, horizon * 12 + 1)
    year = (months - 1) // 12 + 1
    rent = current_rent * (1 + rent_inflation / 100) ** (year - 1)
    return np.where(rent < monthly_payment, monthly_payment - rent, 0.0)


def _grown_value(investments: np.ndarray, yearly_returns: np.ndarray, end_year: int) -> float:
    """Value at the end of ``end_year`` of the investments made up to then.

    A month's investment earns its year's return for the rest of that year
    (``(13 - month_in_year) / 12`` of a year), then full years to ``end_year``.
    """
    amounts = investments[: end_year * 12]
    months = np.arange(1, len(amounts) + 1)
    start = (months - 1) // 12
    fraction = (12 - (months - 1) % 12) / 12
    growth = 1 + yearly_returns[:end_year]
    # tail[i] is the growth of every full year after year index i
    tail = np.ones(end_year)
    tail[:-1] = np.cumprod(growth[::-1])[::-1][1:]
    return float(np.sum(amounts * growth[start] ** fraction * tail[start]))


def project_bitcoin_savings(
    projection: RealEstateProjection, inputs: RealEstateInputs
) -> BitcoinSavingsProjection:
    """Invest the monthly rent-vs-mortgage difference in Bitcoin.

    Each month's amount compounds to the horizon at the yearly Bitcoin
    return schedule. When rent never falls below the payment every amount is
    zero.
    """
    inputs.validate()
    horizon = int(inputs.time_horizon)
    investments = monthly_btc_investments(
        projection.monthly_payment, inputs.current_rent, inputs.rent_inflation, horizon
    )
    total_investment = float(np.sum(investments))
    if total_investment == 0:
        return BitcoinSavingsProjection(
            monthly_savings=projection.monthly_savings,
            monthly_btc_investment=0.0,
            total_investment=0.0,
            final_value=0.0,
            gain=0.0,
            annual_return=0.0,
        )

    final_value = _grown_value(investments, bitcoin_return_schedule(horizon), horizon)
    return BitcoinSavingsProjection(
        monthly_savings=projection.monthly_savings,
        monthly_btc_investment=total_investment / (horizon * 12),
        total_investment=total_investment,
        final_value=final_value,
        gain=final_value - total_investment,
        annual_return=average_returns(horizon)["btc"],
    )


def bitcoin_savings_yearly_values(
    projection: RealEstateProjection, inputs: RealEstateInputs
) -> list[float]:
    """Bitcoin savings value at the end of each year ``0..time_horizon``."""
    inputs.validate()
    horizon = int(inputs.time_horizon)
    investments = monthly_btc_investments(
        projection.monthly_payment, inputs.current_rent, inputs.rent_inflation, horizon
    )
    yearly_returns = bitcoin_return_schedule(horizon)
    return [0.0] + [
        _grown_value(investments, yearly_returns, year) for year in range(1, horizon + 1)
    ]


def compare_strategies(
    real_estate: RealEstateProjection,
    portfolio: PortfolioProjection,
    bitcoin_savings: BitcoinSavingsProjection,
) -> StrategyComparison:
    """Pick the better of real estate and the portfolio and summarize savings."""
    if real_estate.net_worth > portfolio.final_value:
        winner = "real_estate"
        difference = real_estate.net_worth - portfolio.final_value
    else:
        winner = "portfolio"
        difference = portfolio.final_value - real_estate.net_worth
    return StrategyComparison(
        winner=winner,
        difference=difference,
        occupant_saves_by="renting" if real_estate.monthly_savings > 0 else "buying",
        occupant_monthly_savings=abs(real_estate.monthly_savings),
        bitcoin_final_value=bitcoin_savings.final_value,
    )
