from flask import Blueprint, current_app, g, request, jsonify
from database import get_db, utc_now
from datetime import datetime, timedelta, timezone
from functools import wraps
from werkzeug.security import check_password_hash, generate_password_hash
from validators import json_body, normalize_email, validate_login, validate_register
import jwt
import sqlite3

auth_bp = Blueprint('auth', __name__)


# --- HELPER FUNCTIONS ---

def user_json(row):
    """Public view of a user row. Never includes the password hash."""
    return {"_id": row['id'], "name": row['name'], "email": row['email'], "role": row['role']}


def create_token(user_id, role):
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=current_app.config['JWT_EXPIRES_HOURS']),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'],
                      algorithm=current_app.config['JWT_ALGORITHM'])


def decode_token(token):
    """Raises jwt.InvalidTokenError (or a subclass) when the token can't be trusted."""
    return jwt.decode(token, current_app.config['JWT_SECRET'],
                      algorithms=[current_app.config['JWT_ALGORITHM']])


def create_user(db, name, email, password, role='user'):
    """Inserts a user and returns its id. sqlite3.IntegrityError on duplicate email."""
    now = utc_now()
    cur = db.execute(
        'INSERT INTO users (name, email, password_hash, role, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)',
        (name.strip(), normalize_email(email), generate_password_hash(password), role, now, now))
    db.commit()
    return cur.lastrowid


# --- DECORATORS ---

def auth_required(fn):
    """
    Bearer-token gate. On success the caller is available as
    g.user = {"id": ..., "role": ...}.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        header = request.headers.get('Authorization', '')
        token = header[7:] if header.startswith('Bearer ') else None
        if not token:
            return jsonify({"error": "No token, authorization denied"}), 401

        try:
            claims = decode_token(token)
        except jwt.InvalidTokenError as e:
            current_app.logger.info("Rejected token on %s: %s", request.path, e)
            return jsonify({"error": "Token is not valid"}), 401

        g.user = {"id": claims.get('id'), "role": claims.get('role')}
        return fn(*args, **kwargs)
    return wrapper


def admin_only(fn):
    """Must sit below @auth_required so g.user is already set."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = g.get('user')
        if user and user.get('role') == 'admin':
            return fn(*args, **kwargs)
        return jsonify({"error": "Admin access required"}), 403
    return wrapper


# --- ROUTES ---

@auth_bp.route('/register', methods=['POST'])
def register():
    data = json_body(request)
    errors = validate_register(data)
    if errors:
        return jsonify({"errors": errors}), 400

    db = get_db()
    try:
        user_id = create_user(db, data['name'], data['email'], data['password'])
    except sqlite3.IntegrityError:
        return jsonify({"errors": [{"msg": "Email already registered", "path": "email", "location": "body"}]}), 400
    except sqlite3.Error:
        current_app.logger.exception("Registration failed")
        return jsonify({"error": "Server error"}), 500

    row = db.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
    current_app.logger.info("Registered user %s", row['email'])
    return jsonify({"token": create_token(row['id'], row['role']), "user": user_json(row)}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body(request)
    errors = validate_login(data)
    if errors:
        return jsonify({"errors": errors}), 400

    db = get_db()
    row = db.execute('SELECT * FROM users WHERE email = ?', (normalize_email(data['email']),)).fetchone()

    # Same answer for unknown email and wrong password
    if row is None or not check_password_hash(row['password_hash'], str(data['password'])):
        return jsonify({"error": "Invalid credentials"}), 400

    return jsonify({"token": create_token(row['id'], row['role']), "user": user_json(row)})


@auth_bp.route('/me', methods=['GET'])
@auth_required
def me():
    """Returns the account behind the bearer token."""
    row = get_db().execute('SELECT * FROM users WHERE id = ?', (g.user['id'],)).fetchone()
    if row is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user_json(row))
