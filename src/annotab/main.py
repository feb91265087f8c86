"""Application entry point for the Annotab proxy server."""

from annotab.app import App
from annotab.config import Config
from annotab.logging import setup_logging
from annotab.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
