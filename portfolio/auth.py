from functools import wraps

from flask import (Blueprint, current_app, flash, g, jsonify, redirect,
                   render_template, request, session, url_for)
from werkzeug.security import check_password_hash

from .models import User, db

auth_bp = Blueprint('auth', __name__)

INVALID_CREDENTIALS = 'Invalid username or password'


class AuthState:
    """Who is looking at the site for the current request."""

    def __init__(self, user=None, is_guest=False):
        self.user = user
        self.is_guest = bool(is_guest) and user is None

    @property
    def user_role(self):
        return self.user.role if self.user is not None else None

    @property
    def is_owner(self):
        return self.user_role == 'owner'

    @property
    def is_authenticated(self):
        return self.user is not None

    @property
    def has_access(self):
        return self.is_authenticated or self.is_guest


def _find_user(ident):
    """Resolve a login identifier to a user.

    Tries the username column first; a bare username that isn't found is
    retried as ``<username>@<AUTH_EMAIL_DOMAIN>`` against the email column,
    so accounts created by email can still sign in with the short name.
    """
    user = User.query.filter_by(username=ident).first()
    if user is not None:
        return user
    if '@' in ident:
        email = ident.lower()
    else:
        email = f"{ident}@{current_app.config['AUTH_EMAIL_DOMAIN']}".lower()
    return User.query.filter_by(email=email).first()


def sign_in(username, password):
    """Check credentials and start a session. Returns an error message or None."""
    ident = (username or '').strip()
    if not ident or not password:
        return INVALID_CREDENTIALS

    user = _find_user(ident)
    if user is None or not check_password_hash(user.password_hash, password):
        current_app.logger.warning('Failed sign-in for %r', ident)
        return INVALID_CREDENTIALS

    session.clear()
    session['user_id'] = user.id
    session['username'] = user.username
    session['role'] = user.role
    session['guest'] = False
    g.pop('auth', None)
    current_app.logger.info('User %s signed in as %s', user.username, user.role)
    return None


def sign_out():
    # also drops any edit-mode flags
    session.clear()
    g.pop('auth', None)


def access_as_guest():
    session.clear()
    session['guest'] = True
    g.pop('auth', None)
    current_app.logger.info('Guest access granted')


def current_auth():
    if 'auth' not in g:
        user = None
        uid = session.get('user_id')
        if uid:
            user = db.session.get(User, uid)
            if user is None:
                # account removed while the session was alive
                session.pop('user_id', None)
        g.auth = AuthState(user=user, is_guest=session.get('guest', False))
    return g.auth


def _wants_json():
    return request.path.startswith('/api/') or request.is_json


def login_required(view):
    """Signed-in user or guest; everyone else is sent to the login page."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_auth().has_access:
            if _wants_json():
                return jsonify({'error': 'Authentication required'}), 401
            return redirect(url_for('auth.login', next=request.path))
        return view(*args, **kwargs)
    return wrapped


def owner_required(view):
    """Decorator for handlers that change content."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        auth = current_auth()
        if not auth.is_authenticated:
            if _wants_json():
                return jsonify({'error': 'Authentication required'}), 401
            return redirect(url_for('auth.login', next=request.path))
        if not auth.is_owner:
            if _wants_json():
                return jsonify({'error': 'Owner access required'}), 403
            return 'Forbidden: Owner access only', 403
        return view(*args, **kwargs)
    return wrapped


def _safe_next(target):
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return url_for('index')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'GET':
        return render_template('login.html', next=request.args.get('next', ''))

    error = sign_in(request.form.get('username'), request.form.get('password') or '')
    if error:
        flash(error, 'error')
        return render_template('login.html', next=request.form.get('next', '')), 401
    flash('Signed in.', 'success')
    return redirect(_safe_next(request.form.get('next')))


@auth_bp.route('/guest', methods=['POST'])
def guest():
    access_as_guest()
    return redirect(_safe_next(request.form.get('next')))


@auth_bp.route('/logout', methods=['GET', 'POST'])
def logout():
    sign_out()
    flash('Signed out.', 'info')
    return redirect(url_for('auth.login'))


@auth_bp.route('/api/auth/session')
def session_info():
    auth = current_auth()
    return jsonify({
        'user': {'id': auth.user.id, 'username': auth.user.username} if auth.user else None,
        'user_role': auth.user_role,
        'is_owner': auth.is_owner,
        'is_guest': auth.is_guest,
    })
