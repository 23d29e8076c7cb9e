# auth.py - admin sign in / sign out and the guard for admin pages

import logging
from functools import wraps

from flask import flash, redirect, request, url_for
from flask_login import current_user, login_user, logout_user

from models import User

logger = logging.getLogger(__name__)


class AuthError(Exception):
    pass


def sign_in(email, password):
    email = (email or '').strip().lower()
    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password or ''):
        logger.warning('failed sign in for %s', email)
        raise AuthError('Invalid email or password')

    login_user(user)
    if not user.is_admin:
        # valid account without back-office rights, drop the session again
        logout_user()
        logger.warning('non-admin sign in rejected for %s', email)
        raise AuthError('You do not have administrator permissions')

    logger.info('admin signed in: %s', email)
    return user


def sign_out():
    if current_user.is_authenticated:
        logger.info('admin signed out: %s', current_user.email)
    logout_user()


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return redirect(url_for('admin_login', next=request.path))
        if not current_user.is_admin:
            logout_user()
            flash('You do not have administrator permissions', 'danger')
            return redirect(url_for('admin_login'))
        return view(*args, **kwargs)
    return wrapped
