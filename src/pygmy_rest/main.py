"""Application entry point for the Pygmy REST server."""

import structlog

from pygmy_rest.app import App
from pygmy_rest.config import Config
from pygmy_rest.core.core import Core
from pygmy_rest.logging import setup_logging
from pygmy_rest.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    structlog.contextvars.bind_contextvars(service=config.relay_name)
    app = App(Core(config))
    run_server(app, config)


if __name__ == "__main__":
    main()
