"""Test environment: settings are read at import time, so set them before anything imports corpgate."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests-0123456789abcdef")
os.environ.setdefault("APP_ENV", "dev")
# Minimum bcrypt cost keeps hashing fast in tests.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
