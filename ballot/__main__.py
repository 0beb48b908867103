"""Run the API server: ``python -m ballot``."""

import uvicorn

from ballot.config import get_settings

BACKEND_PORT = 8001


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "ballot.main:app",
        port=BACKEND_PORT,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
