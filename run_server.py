"""
Production server launcher from the repository root.

Loads environment variables and serves the Django application via Waitress.
"""
import logging
import os
import sys

from dotenv import load_dotenv

sys.dont_write_bytecode = True

load_dotenv()
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

from waitress import serve  # noqa: E402

from config.wsgi import application  # noqa: E402

logger = logging.getLogger(__name__)


def main() -> None:
    port_env = os.getenv("PORT") or os.getenv("APP_PORT") or "8080"
    try:
        port = int(port_env)
    except ValueError:
        logger.warning(
            "Invalid port value '%s' from environment. Falling back to 8080.", port_env
        )
        port = 8080
    threads = int(os.getenv("WAITRESS_THREADS", "8"))

    logger.info("=" * 70)
    logger.info("Starting Envelope Budget API with Waitress")
    logger.info("Server: http://0.0.0.0:%s", port)
    logger.info("API Docs: http://0.0.0.0:%s/api/v1/docs", port)
    logger.info("Health Check: http://0.0.0.0:%s/api/v1/health", port)
    logger.info("Worker Threads: %s", threads)
    logger.info("=" * 70)

    try:
        serve(application, host="0.0.0.0", port=port, threads=threads)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as exc:  # pragma: no cover - logging unexpected errors
        logger.error("Server error: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
