import os


def get_settings_module() -> str:
    # Environment comes from APP_ENV, 'development' by default.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "kinster_attendance.config.production"

    if env in {"test", "testing"}:
        return "kinster_attendance.config.testing"

    return "kinster_attendance.config.development"
