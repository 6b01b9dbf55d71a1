"""Application entry point for OpenTribe backend server."""

from opentribe.app import App
from opentribe.config import Config
from opentribe.logging import setup_logging
from opentribe.web.server import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
