from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret"
DEBUG = False
TESTING = True

AUTO_INIT_DB = False
NOTIFICATIONS_EMAIL_ENABLED = False
AUTH_BACKEND = "jwt"
JWT_SECRET = "test-jwt-secret"
STORAGE_BACKEND = "local"
