from reward_curve_app.services.equilibrium import run_equilibrium
from reward_curve_app.services.reward import compute_derived_supply_figures, reward
from reward_curve_app.services.sampler import compute_curve, sample_curve

__all__ = ["compute_curve", "compute_derived_supply_figures", "reward", "run_equilibrium", "sample_curve"]
