from __future__ import annotations

import importlib
import logging
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .common.web import EXTENSION_KEY
from .config import get_settings_module
from .container import Container, build_container
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    container: Optional[Container] = None,
) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["STORAGE_PATH"] = getattr(settings, "STORAGE_PATH", "kinster.db")
    app.config["GEOLOCATION_TIMEOUT_SECONDS"] = float(getattr(settings, "GEOLOCATION_TIMEOUT_SECONDS", 10))
    app.config["SEED_DEFAULT_USERS"] = bool(getattr(settings, "SEED_DEFAULT_USERS", True))
    if overrides:
        app.config.update(overrides)
        if "SECRET_KEY" in overrides:
            app.secret_key = overrides["SECRET_KEY"]

    configure_logging(app.config["DEBUG"])
    logger.info("settings=%s storage=%s", settings_module, app.config["STORAGE_PATH"])

    if container is None:
        container = build_container(
            storage_path=app.config["STORAGE_PATH"],
            seed_default_users=app.config["SEED_DEFAULT_USERS"],
            geolocation_timeout=app.config["GEOLOCATION_TIMEOUT_SECONDS"],
        )
    app.extensions[EXTENSION_KEY] = container

    register_users(app, container)
    register_attendance(app, container)

    return app
