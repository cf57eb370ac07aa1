"""Run the API server: ``python -m penguin_studio``."""

import uvicorn

from penguin_studio.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "penguin_studio.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
