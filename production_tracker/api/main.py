import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from production_tracker.config import load_config
from production_tracker.service import TrackerService


def create_app(service: Optional[TrackerService] = None, config_path: Optional[str] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        if app.state.service is None:
            app.state.service = TrackerService(load_config(config_path))
        await app.state.service.start()
        yield
        # Shutdown
        await app.state.service.stop()

    app = FastAPI(title="Production Batch Tracker API", lifespan=lifespan)

    # Allow CORS for the console UI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = service

    @app.get("/")
    def read_root():
        driver = app.state.service.driver
        return {"status": "ok", "service": "Production Batch Tracker",
                "running": driver.running, "jobs": len(driver.jobs)}

    @app.get("/api/progress")
    def get_progress():
        """Progress snapshot per job, refreshed on the slow tick."""
        return app.state.service.get_state()["progress"]

    @app.get("/api/next-completion")
    def get_next_completion():
        return {"next_completion": app.state.service.get_state()["next_completion"]}

    @app.get("/api/completions")
    def get_completions():
        """Recent completions, newest first."""
        return app.state.service.get_state()["recent_completions"]

    return app


app = create_app()


def main():
    parser = argparse.ArgumentParser(description="Production Batch Tracker API")
    parser.add_argument("--config", default=None, help="Path to settings.json")
    args, unknown = parser.parse_known_args()

    logging.basicConfig(level=logging.INFO, format='[TRACKER] %(asctime)s | %(levelname)s | %(message)s',
                        datefmt='%H:%M:%S')
    config = load_config(args.config)
    uvicorn.run(create_app(config_path=args.config), host=config["api_host"], port=config["api_port"])


if __name__ == "__main__":
    main()
