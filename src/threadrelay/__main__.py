from .logging_config import setup_logging
from .settings import get_settings


def run() -> None:
    import uvicorn

    from .server import create_app

    settings = get_settings()
    # Configure logging once for the whole process.
    setup_logging(settings)
    # Use our own logging configuration instead of uvicorn's.
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
