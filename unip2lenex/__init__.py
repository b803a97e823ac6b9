import logging
import os

from flask import Flask

DEFAULT_MAX_UPLOAD_BYTES = 16 * 1024 * 1024


def create_app():
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret-key")
    app.config["MAX_CONTENT_LENGTH"] = _int_env("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    app.config["UNIP_DEFAULT_ENCODING"] = os.getenv("UNIP_DEFAULT_ENCODING", "iso-8859-1")

    from .routes import bp as main_bp

    app.register_blueprint(main_bp)

    _configure_logging(app)

    return app


def _int_env(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if not raw_value:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _configure_logging(app: Flask) -> None:
    """Configure application logging to ensure visibility in production."""

    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_name, None)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    stream_handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )
    stream_handler.setFormatter(formatter)

    if not app.logger.handlers:
        app.logger.addHandler(stream_handler)

    app.logger.setLevel(log_level)

    # Make sure gunicorn/werkzeug loggers follow the same level and handler.
    for logger_name in ("gunicorn.error", "gunicorn.access", "werkzeug"):
        external_logger = logging.getLogger(logger_name)
        external_logger.setLevel(log_level)
        if not external_logger.handlers:
            external_logger.addHandler(stream_handler)
