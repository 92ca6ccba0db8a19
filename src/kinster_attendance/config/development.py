import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# SQLite file backing the local key/value storage
STORAGE_PATH = os.getenv("STORAGE_PATH", "kinster.db")

GEOLOCATION_TIMEOUT_SECONDS = float(os.getenv("GEOLOCATION_TIMEOUT_SECONDS", "10"))

DEBUG = True

# Insert the default admin/user accounts when no admin exists
SEED_DEFAULT_USERS = bool(int(os.getenv("SEED_DEFAULT_USERS", "1")))
