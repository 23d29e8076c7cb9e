# config.py - application settings, each one can be overridden from the environment

import os


def _flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///storefront.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get('SECRET_KEY', 'storefront-dev-key')

    # sample catalogue and payment methods on first start
    SEED_SAMPLE_DATA = _flag('SEED_SAMPLE_DATA', True)

    # bootstrap admin account for the back-office
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@tienda.local')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'admin123')
    ADMIN_NAME = os.environ.get('ADMIN_NAME', 'Administrador')

    # used when the Telefono site setting is missing
    WHATSAPP_DEFAULT_PHONE = os.environ.get('WHATSAPP_DEFAULT_PHONE', '17868830056')

    LOW_STOCK_THRESHOLD = int(os.environ.get('LOW_STOCK_THRESHOLD', '10'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
