"""Run the API with uvicorn: ``python -m gostwear`` (binds 0.0.0.0:$PORT)."""

import uvicorn

from gostwear.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("gostwear.app:create_app", factory=True, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
