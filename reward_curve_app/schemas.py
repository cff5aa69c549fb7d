from typing import Optional

from pydantic import BaseModel, field_validator, model_validator


class CurveParameters(BaseModel):
    # Reward scale: give `a` directly, or `max_reward` to calibrate it at S = T
    a: Optional[float] = None
    max_reward: Optional[float] = None

    # Curve shape
    b: float = 0.0
    k: float
    P: float

    # Supply
    T: float
    S: float

    # Economy
    price: float = 1.0
    entry_fee: float = 0.0

    # Population (Gaussian over performance)
    avg_performance: float = 0.0
    std_deviation: float = 1.0

    # Pool seeding
    treasury_share: float = 0.0
    initial_liquidity: float = 0.0

    # Which USD series the break-even is measured on
    break_even_series: str = "cumulative"   # cumulative | instantaneous

    # "offset" subtracts the reward at p = 0 so the curve starts at zero;
    # "simple" is the single-term curve without that offset
    curve_form: str = "offset"

    @field_validator("k", "P", "T")
    @classmethod
    def strictly_positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("b", "S", "price", "entry_fee", "initial_liquidity")
    @classmethod
    def non_negative(cls, v, info):
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("max_reward")
    @classmethod
    def max_reward_non_negative(cls, v):
        if v is None:
            return v
        if v < 0:
            raise ValueError("max_reward must be >= 0")
        return v

    @field_validator("treasury_share")
    @classmethod
    def treasury_share_range(cls, v):
        if v < 0 or v >= 100:
            raise ValueError("treasury_share must be in [0, 100)")
        return v

    @field_validator("break_even_series")
    @classmethod
    def valid_series(cls, v):
        vv = str(v).lower().strip()
        if vv not in {"cumulative", "instantaneous"}:
            raise ValueError("break_even_series must be one of: cumulative, instantaneous")
        return vv

    @field_validator("curve_form")
    @classmethod
    def valid_curve_form(cls, v):
        vv = str(v).lower().strip()
        if vv not in {"offset", "simple"}:
            raise ValueError("curve_form must be one of: offset, simple")
        return vv

    @model_validator(mode="after")
    def check_cross_fields(self):
        if (self.a is None) == (self.max_reward is None):
            raise ValueError("exactly one of a or max_reward must be given")
        if self.avg_performance < 0 or self.avg_performance > self.P:
            raise ValueError(
                f"avg_performance must be between 0 and P ({self.P}), got {self.avg_performance}"
            )
        return self
