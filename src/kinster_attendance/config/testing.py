SECRET_KEY = "test-secret"

STORAGE_PATH = ":memory:"

GEOLOCATION_TIMEOUT_SECONDS = 10.0

DEBUG = False
TESTING = True

SEED_DEFAULT_USERS = True
