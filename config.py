# config.py

# Monte Carlo simulator defaults
DEFAULT_CURRENT_PRICE = 115000.0
DEFAULT_VOLATILITY = 42.0
DEFAULT_NUM_SIMS = 5000

# Annual return (drift) options for the simulator
SCENARIO_OPTIONS = {
    "Base Case (30%)": 0.30,
    "Conservative (15%)": 0.15,
    "Bear Case (5%)": 0.05,
    "Bull Case (45%)": 0.45,
    "Hyperbitcoinization (60%)": 0.60,
}

# Input validation ranges for the simulator
CURRENT_PRICE_RANGE = (1000.0, 10000000.0)
VOLATILITY_RANGE = (10.0, 200.0)
NUM_SIMS_RANGE = (100, 50000)

# Path discretisation
TRADING_DAYS_PER_YEAR = 252

# Horizons (years) for the percentile chart, statistics cards and probability table
SIMULATION_HORIZONS = (4, 5, 6, 8, 10, 12, 15)
STATS_HORIZONS = (5, 10, 15)
PROBABILITY_HORIZONS = (5, 10, 15, 20)

# Price milestones for crossing probabilities
MILESTONES = (
    100000,
    250000,
    500000,
    1000000,
    2000000,
    5000000,
    10000000,
    15000000,
    20000000,
)

# Probability table colour bands (percent)
PROB_HIGH = 70.0
PROB_MEDIUM = 30.0

# Price lookup
BITCOIN_PRICE_TTL = 300  # seconds
PRICE_REQUEST_TIMEOUT = 3  # seconds
PRICE_MAX_RESPONSE_BYTES = 10000
PRICE_SANE_RANGE = (1000.0, 10000000.0)
FALLBACK_BITCOIN_PRICE = 115000
PRICE_USER_AGENT = "HypercoinResearch/1.0"

# Mortgage assumptions
MORTGAGE_TERM_MONTHS = 30 * 12
PROPERTY_TAX_RATE = 0.009  # annual, of property price
HOME_INSURANCE_RATE = 0.0035  # annual, of property price
PMI_RATE = 0.005  # annual, of loan amount
PMI_DOWN_PAYMENT_THRESHOLD = 0.20  # PMI charged below this down payment fraction

# Real estate price volatility by horizon band: (max horizon, volatility)
REAL_ESTATE_VOLATILITY_BANDS = (
    (5, 0.12),
    (15, 0.10),
)
REAL_ESTATE_LONG_TERM_VOLATILITY = 0.08

# Portfolio assets, in allocation order
ASSETS = ("btc", "voo", "treasury", "strc", "hysa")
ASSET_LABELS = {
    "btc": "Bitcoin",
    "voo": "S&P 500 Index (VOO)",
    "treasury": "Treasuries",
    "strc": "Bitcoin-Backed Preferred (STRC)",
    "hysa": "High-Yield Savings",
}

# Constant annual returns and volatilities for the non-Bitcoin assets
ASSET_RETURNS = {
    "voo": 0.10,
    "treasury": 0.04,
    "strc": 0.12,
    "hysa": 0.045,
}
ASSET_VOLATILITIES = {
    "voo": 0.16,
    "treasury": 0.05,
    "strc": 0.02,
    "hysa": 0.01,
}

# Pairwise correlations; unlisted pairs (and self) are handled in portfolio.py
ASSET_CORRELATIONS = {
    ("btc", "voo"): 0.3,
    ("btc", "treasury"): -0.1,
    ("btc", "strc"): 0.7,
    ("btc", "hysa"): 0.0,
    ("voo", "treasury"): -0.2,
    ("voo", "strc"): 0.2,
    ("voo", "hysa"): 0.1,
    ("treasury", "strc"): -0.1,
    ("treasury", "hysa"): 0.0,
    ("strc", "hysa"): 0.0,
}

# Bitcoin long-run target: price reached after a number of years from a reference price
BTC_TARGET_PRICE = 21000000.0
BTC_REFERENCE_PRICE = 100000.0
BTC_YEARS_TO_TARGET = 21

# Bitcoin regime schedules. Regime bounds are the last year of each regime.
EARLY_REGIME_END = 5
MID_REGIME_END = 15
# (value in the first year of the regime, decline per year)
BTC_RETURN_EARLY = (0.42, 0.03)
BTC_RETURN_MID = (0.23, 0.002)
BTC_VOLATILITY_EARLY = (0.50, 0.02)
BTC_VOLATILITY_MID = (0.40, 0.019)
BTC_VOLATILITY_MATURE = 0.21

# Allocation
ALLOCATION_TOTAL = 100.0
ALLOCATION_TOLERANCE = 0.1

# Volatility-matching optimizer
OPT_TARGET_VOLATILITY = 0.10
OPT_ACCEPT_TOLERANCE = 0.01  # no adjustment when already this close
OPT_TOLERANCE = 0.005
OPT_INITIAL_STEP = 0.01
OPT_MAX_ITERATIONS = 100

# Real estate vs Bitcoin calculator input rules: (min, max, default)
PROJECTION_INPUT_RULES = {
    "property_price": (50000.0, 50000000.0, 435000.0),
    "down_payment": (1000.0, 10000000.0, 87000.0),
    "interest_rate": (0.1, 30.0, 6.7),
    "rental_yield": (0.0, 20.0, 0.0),
    "appreciation": (-10.0, 20.0, 4.0),
    "maintenance_rate": (0.0, 10.0, 2.0),
    "hoa_fee": (0.0, 5000.0, 0.0),
    "initial_investment": (1000.0, 10000000.0, 87000.0),
    "btc_allocation": (0.0, 100.0, 20.0),
    "voo_allocation": (0.0, 100.0, 20.0),
    "treasury_allocation": (0.0, 100.0, 20.0),
    "strc_allocation": (0.0, 100.0, 20.0),
    "hysa_allocation": (0.0, 100.0, 20.0),
    "current_rent": (100.0, 20000.0, 2075.0),
    "rent_inflation": (0.0, 15.0, 3.5),
    "time_horizon": (1, 50, 10),
}
