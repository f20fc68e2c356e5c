"""
Test settings for the Optical Marketplace
Fast, isolated testing environment.
"""

from .base import *  # noqa: F403

# ===============================================================================
# TEST FLAGS
# ===============================================================================

DEBUG = False

# ===============================================================================
# TEST DATABASE (File-backed SQLite so threaded tests share one database)
# ===============================================================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': str(BASE_DIR / 'test_db.sqlite3'),  # noqa: F405
        'OPTIONS': {
            'timeout': 20,
            # Writers queue on BEGIN instead of failing when upgrading a read lock
            'transaction_mode': 'IMMEDIATE',
        },
        'TEST': {
            'NAME': str(BASE_DIR / 'test_db.sqlite3'),  # noqa: F405
        },
    }
}

# ===============================================================================
# TEST CACHE
# ===============================================================================

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'test-cache',
    }
}

SESSION_ENGINE = 'django.contrib.sessions.backends.db'

# ===============================================================================
# DISABLE MIGRATIONS FOR FASTER TESTS
# ===============================================================================

class DisableMigrations:
    def __contains__(self, item: str) -> bool:
        return True

    def __getitem__(self, item: str) -> None:
        return None

MIGRATION_MODULES = DisableMigrations()

# ===============================================================================
# PASSWORD HASHER (Fast for tests)
# ===============================================================================

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',  # Fast but insecure (test only)
]

# ===============================================================================
# LOGGING (Minimal for tests)
# ===============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
}

# ===============================================================================
# LEDGER CONCURRENCY (no backoff sleeps in tests)
# ===============================================================================

LEDGER_CONFLICT_RETRY_DELAY = 0.0

# ===============================================================================
# THROTTLING (Generous so API tests never trip limits)
# ===============================================================================

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_RATES': {
        'marketplace_submit': '10000/min',
        'ledger_action': '10000/min',
        'marketplace_read': '10000/min',
    },
}

# ===============================================================================
# LOCALIZATION (English for tests)
# ===============================================================================

LANGUAGE_CODE = 'en-us'

# ===============================================================================
# SECURITY (Relaxed for tests)
# ===============================================================================

SECRET_KEY = 'django-test-key-not-secure'  # noqa: S105
ALLOWED_HOSTS = ['testserver', 'localhost', '127.0.0.1']
