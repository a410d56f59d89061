"""Run the Pendlarn web server."""

import logging

from .config import load_settings
from .web import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    """Load settings, set up logging and serve until interrupted."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = load_settings()
    logging.getLogger().setLevel(settings.log_level)

    app = create_app(settings)
    logger.info(f"Listening on port {settings.port}")
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
