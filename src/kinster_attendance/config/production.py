import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

STORAGE_PATH = os.getenv("STORAGE_PATH", "kinster.db")

GEOLOCATION_TIMEOUT_SECONDS = float(os.getenv("GEOLOCATION_TIMEOUT_SECONDS", "10"))

DEBUG = False

SEED_DEFAULT_USERS = bool(int(os.getenv("SEED_DEFAULT_USERS", "1")))
