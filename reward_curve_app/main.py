import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reward_curve_app import config
from reward_curve_app.api.routes import router as api_router
from reward_curve_app.utils.json_safety import SafeJSONResponse


logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Reward Curve Simulator",
        default_response_class=SafeJSONResponse,
    )

    # ── CORS (the chart frontend is served separately) ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API routes ──
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


def run():
    import uvicorn

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting reward curve API on %s:%d", config.HOST, config.PORT)
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
