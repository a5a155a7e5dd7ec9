"""
Django settings for running the Cargoman test suite.
"""

SECRET_KEY = 'cargoman-tests'

USE_TZ = True
TIME_ZONE = 'Asia/Dubai'

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'cargoman',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

CARGOMAN = {
    'DEFAULT_MARGIN_PERCENT': '10.00',
    'CHECKPOINT_INTERVAL': 0,
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {'class': 'logging.StreamHandler'},
    },
    'loggers': {
        'cargoman': {'handlers': ['console'], 'level': 'WARNING'},
    },
}
