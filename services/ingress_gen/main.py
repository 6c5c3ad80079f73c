"""
ingress-gen - Envoy config generator for Kubernetes backends.

Runs as a FastAPI server exposing cluster names and the generated Envoy
config, with the file watch loop (regenerate envoy.yaml whenever
backends.yaml changes) in a background thread.
"""

import logging
import threading
from contextlib import asynccontextmanager

from config_generator import ConfigGenerator
from constants import CONFIG_WATCH_INTERVAL, ENVOY_CONFIG_PATH, INGRESS_BACKENDS_PATH, WATCH_ENABLED
from fastapi import FastAPI
from routers import clusters, health

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

config_generator = ConfigGenerator(INGRESS_BACKENDS_PATH)


def watch_loop(stop_event: threading.Event):
    """Regenerate the Envoy config each time the backends file changes."""
    logger.info(f"Watching {INGRESS_BACKENDS_PATH} for changes...")
    while not stop_event.is_set():
        if config_generator.load_config():
            config_generator.write_envoy_config(ENVOY_CONFIG_PATH)
        stop_event.wait(CONFIG_WATCH_INTERVAL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the watch loop in a resilient background thread."""
    stop_event = threading.Event()

    def _loop_with_restart():
        while not stop_event.is_set():
            try:
                watch_loop(stop_event)
            except Exception:
                logger.exception("Watch loop crashed, restarting in 5s")
            if not stop_event.is_set():
                stop_event.wait(5)

    if WATCH_ENABLED:
        loop_thread = threading.Thread(target=_loop_with_restart, daemon=True, name="watch-loop")
        loop_thread.start()
        logger.info("Watch loop thread started")
    yield
    stop_event.set()


app = FastAPI(
    title="ingress-gen",
    description="Envoy config generator for Kubernetes backends",
    lifespan=lifespan,
)

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(clusters.router, prefix="/api", tags=["clusters"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
