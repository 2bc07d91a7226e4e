"""Run the API with uvicorn: ``python -m devspace``."""

import uvicorn

from devspace.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "devspace.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload and settings.is_development,
        log_config=None,
    )


if __name__ == "__main__":
    main()
