from __future__ import annotations

import atexit
import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .common.datetime_utils import now_utc
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_demo_data, list_tables
from .tokens.controller import register as register_tokens
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    # Reduce werkzeug and APScheduler logging - only show warnings and errors
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            session_id = ensure_demo_data(db_config, now=now_utc())
            logger.info("Demo data ready (session_id=%d)", session_id)

        # Fails fast with ConfigurationError on an invalid rotation/expiry pair.
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["qr_attendance"] = container

    register_users(app, container)
    register_tokens(app, container)
    register_attendance(app, container)

    if bool(getattr(settings, "ROTATION_SCHEDULER_ENABLED", False)):
        container.rotation_scheduler.start()
        atexit.register(container.rotation_scheduler.shutdown)

    logger.info("App started with settings=%s", settings_module)
    return app


def run() -> None:
    app = create_app()
    # The reloader would start a second scheduler in the child process.
    app.run(debug=app.config["DEBUG"], use_reloader=False)


if __name__ == "__main__":
    run()
