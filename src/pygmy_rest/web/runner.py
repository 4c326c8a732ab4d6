"""Uvicorn server runner with custom configuration."""

import copy
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from pygmy_rest.app import App
from pygmy_rest.config import Config
from pygmy_rest.logging import QUIET_LOGGERS
from pygmy_rest.web.server import create_fastapi_app


def build_log_config(debug: bool) -> dict[str, Any]:
    """Uvicorn logging config: compact formats, and driver loggers kept at WARNING."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    log_config["loggers"]["uvicorn"]["level"] = "DEBUG" if debug else "INFO"

    # uvicorn applies this config after setup_logging, so the driver levels are restated here
    for name in QUIET_LOGGERS:
        log_config["loggers"][name] = {"level": "WARNING"}

    return log_config


def run_server(app: App, config: Config) -> None:
    """Run the Uvicorn server with custom logging configuration."""
    fastapi_app = create_fastapi_app(app, config)

    uvicorn.run(
        fastapi_app,
        host=config.host,
        port=config.port,
        log_config=build_log_config(config.debug),
        access_log=True,
    )
