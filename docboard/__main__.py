"""Run the API with uvicorn: ``python -m docboard``."""

import uvicorn

from .core.config import settings


def main() -> None:
    uvicorn.run(
        "docboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
