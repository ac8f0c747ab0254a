"""Run the validation service: python -m configurator."""

import uvicorn

from configurator.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "configurator.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
