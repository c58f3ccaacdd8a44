"""Entry point for running the game server via ``python -m tictactoe_ai``."""

from __future__ import annotations

import uvicorn

from . import ui
from .config import load_settings, setup_logging


def main() -> None:
    """Start the FastAPI-powered tic-tac-toe server."""

    settings = load_settings()
    setup_logging(settings)
    ui.AI_THINK_DELAY = settings.think_delay
    uvicorn.run(
        ui.app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
