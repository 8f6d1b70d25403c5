"""Test environment: must run before any pathfinder module reads settings."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production-0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("REFRESH_COOKIE_SECURE", "false")
os.environ.setdefault("ROTATE_REFRESH_TOKENS", "false")
