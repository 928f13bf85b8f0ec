"""
Application constants for MINIMALL
"""

PROJECT_NAME = "MINIMALL"
VERSION = "1.0.0"
DEFAULT_PORT = 8000
HEALTH_CHECK_TIMEOUT = 5

ENVIRONMENT_DEVELOPMENT = "development"
ENVIRONMENT_PRODUCTION = "production"

DEFAULT_INTERNAL_API_TOKEN = "dev-token"
DEFAULT_SESSION_SECRET = "minimall-dev-session-secret"
