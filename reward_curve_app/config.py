import os

# ── Equilibrium loop ──
MAX_ROUNDS = 500_000
CONVERGENCE_TOLERANCE = 0.01   # performance units

# ── Numeric floors ──
SIGMA_EPSILON = 1e-9           # std deviation floor for the Gaussian density
RESERVE_EPSILON = 1e-12        # USD reserve never drops to zero or below

# Largest P the sampler accepts (one point per integer performance value)
MAX_PERFORMANCE = 1_000_000

# ── Display rounding (decimal places) ──
TOKEN_DECIMALS = 2
USD_DECIMALS = 4
DENSITY_DECIMALS = 6
PERCENT_DECIMALS = 2

# ── Server ──
HOST = os.environ.get("REWARD_CURVE_HOST", "127.0.0.1")
PORT = int(os.environ.get("REWARD_CURVE_PORT", "8000"))
LOG_LEVEL = os.environ.get("REWARD_CURVE_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get(
        "REWARD_CURVE_CORS_ORIGINS",
        "http://127.0.0.1:8000,http://localhost:8000",
    ).split(",")
    if o.strip()
]
