from functools import wraps

from flask import jsonify
from flask_login import current_user, login_required


def admin_required(view):
    """Require a logged-in user with the admin role."""
    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({'error': 'Access denied. Administrators only.'}), 403
        return view(*args, **kwargs)
    return wrapped
