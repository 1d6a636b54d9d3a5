import click
import sqlite3
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from config import Config
from database import get_db, init_app as init_database, init_db
from routes.auth_bp import auth_bp, create_user
from routes.posts_bp import posts_bp
from routes.sentiment_bp import sentiment_bp
from validators import normalize_email

app = Flask(__name__)# Creates the central application object and flask app is initialized.
app.config.from_object(Config)
app.logger.setLevel(app.config['LOG_LEVEL'])

init_database(app)  # closes the per-request sqlite connection on teardown

# The SPA runs on its own origin, so the API has to answer cross-origin calls
CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}})


""" Here we are registering blueprints
# We enroll blueprints in an effort of decoupling various functional areas of the application.
Everything the frontend talks to sits under '/api'.
"""

# Handles register/login and the bearer-token checks
app.register_blueprint(auth_bp, url_prefix='/api/auth')


app.register_blueprint(posts_bp, url_prefix='/api')#Handles posting, commenting and liking logic


# Offline comment sentiment check
app.register_blueprint(sentiment_bp, url_prefix='/api')


@app.route('/')
def home():
    """Liveness check for whoever deploys the backend."""
    return 'Posts Backend is running'


# --- ERROR HANDLERS ---

@app.errorhandler(404)
def not_found(exc):
    return jsonify({"error": "Route not found"}), 404


@app.errorhandler(405)
def method_not_allowed(exc):
    return jsonify({"error": "Method not allowed"}), 405


@app.errorhandler(Exception)
def server_error(exc):
    """Anything a handler didn't map itself ends up as a generic 500."""
    if isinstance(exc, HTTPException):
        return jsonify({"error": exc.description}), exc.code
    app.logger.exception("Unhandled error: %s", exc)
    return jsonify({"error": "Server error"}), 500


# --- CLI ---

@app.cli.command('init-db')
def cli_init_db():
    """Create the tables (no-op for tables that already exist)."""
    init_db()


@app.cli.command('create-admin')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def cli_create_admin(name, email, password):
    """Create an admin account, or promote the user who owns EMAIL."""
    init_db()
    db = get_db()
    try:
        create_user(db, name, email, password, role='admin')
        click.secho(f"Admin {email} created.", fg='green')
    except sqlite3.IntegrityError:
        db.execute("UPDATE users SET role = 'admin' WHERE email = ?", (normalize_email(email),))
        db.commit()
        click.secho(f"Existing user {email} promoted to admin.", fg='yellow')


if __name__ == '__main__':

    """
    Over here database is initialized and it
     Ensures the SQLite schema (users, posts, likes, comments) exists
     before the server starts accepting requests.
    """
    with app.app_context():
        init_db()

    app.run(host="0.0.0.0", port=app.config['PORT'])
