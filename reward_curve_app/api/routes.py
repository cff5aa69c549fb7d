import asyncio

from fastapi import APIRouter, HTTPException

from reward_curve_app.config import MAX_PERFORMANCE
from reward_curve_app.schemas import CurveParameters
from reward_curve_app.services.equilibrium import run_equilibrium
from reward_curve_app.services.reward import compute_derived_supply_figures
from reward_curve_app.services.sampler import compute_curve
from reward_curve_app.utils.json_safety import sanitize_floats


router = APIRouter()


def _check_sample_count(data: CurveParameters):
    if data.P > MAX_PERFORMANCE:
        raise HTTPException(
            status_code=422,
            detail=f"P must be at most {MAX_PERFORMANCE:,} (one sample per integer performance value). Got {data.P:g}",
        )


@router.post("/curve")
async def api_curve(data: CurveParameters):
    _check_sample_count(data)
    return sanitize_floats(compute_curve(data))


@router.post("/supply-figures")
async def api_supply_figures(data: CurveParameters):
    return sanitize_floats(compute_derived_supply_figures(data))


@router.post("/equilibrium")
async def api_equilibrium(data: CurveParameters):
    _check_sample_count(data)

    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, run_equilibrium, data)
    return sanitize_floats(result)


@router.get("/health")
async def health():
    return {"status": "ok"}
