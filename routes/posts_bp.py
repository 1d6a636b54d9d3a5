from flask import Blueprint, current_app, g, request, jsonify
from database import get_db, utc_now
import sqlite3
from validators import clean_text, json_body, validate_comment, validate_post
# Auth decorators and the sentiment gate live with their own blueprints
from routes.auth_bp import admin_only, auth_required
from routes.sentiment_bp import check_comment

posts_bp = Blueprint('posts', __name__)

"""
Admin routes:
 POST   /posts        -> create post (admin)
 PUT    /posts/<id>   -> update post (admin)
 DELETE /posts/<id>   -> delete post (admin)

Public/Authenticated:
 GET    /posts                          -> list posts (public)
 GET    /posts/<id>                     -> single post (public)
 POST   /posts/<id>/like                -> like/unlike (auth)
 POST   /posts/<id>/comments            -> add comment (auth, sentiment gated)
 PUT    /posts/<id>/comments/<cid>      -> edit comment (comment author)
 DELETE /posts/<id>/comments/<cid>      -> delete comment (author or admin)
"""

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# SQLite OFFSET is a signed 64-bit integer
MAX_OFFSET = 2 ** 62

POST_QUERY = '''
    SELECT p.*, u.name AS author_name, u.email AS author_email
    FROM posts p
    LEFT JOIN users u ON u.id = p.author_id
'''

COMMENT_QUERY = '''
    SELECT c.*, u.name AS author_name, u.email AS author_email
    FROM comments c
    LEFT JOIN users u ON u.id = c.author_id
'''


# --- HELPER FUNCTIONS ---

def _server_error(what):
    current_app.logger.exception(what)
    return jsonify({"error": "Server error"}), 500


def _post_not_found():
    return jsonify({"error": "Post not found"}), 404


def _int_arg(name, default):
    """Query-string int; missing, garbage or zero all mean the default."""
    try:
        value = int(request.args.get(name, ''))
    except ValueError:
        return default
    return value or default


def _author(row, populate=True):
    if not populate:
        return row['author_id']
    return {"_id": row['author_id'], "name": row['author_name'], "email": row['author_email']}


def comment_json(row, populate=True):
    return {
        "_id": row['id'],
        "author": _author(row, populate),
        "text": row['text'],
        "createdAt": row['created_at'],
        "updatedAt": row['updated_at'],
    }


def post_json(db, row, populate_comments=False, populate_author=True):
    """
    Builds the post document the frontend expects: author populated (a bare
    id right after a write, like a freshly saved document), likes as a list
    of user ids and comments embedded.
    """
    likes = db.execute('SELECT user_id FROM post_likes WHERE post_id = ? ORDER BY rowid',
                       (row['id'],)).fetchall()
    comments = db.execute(COMMENT_QUERY + ' WHERE c.post_id = ? ORDER BY c.id ASC',
                          (row['id'],)).fetchall()
    return {
        "_id": row['id'],
        "title": row['title'],
        "body": row['body'],
        "author": _author(row, populate_author),
        "likes": [like['user_id'] for like in likes],
        "comments": [comment_json(c, populate_comments) for c in comments],
        "createdAt": row['created_at'],
        "updatedAt": row['updated_at'],
    }


def find_post(db, post_id):
    return db.execute(POST_QUERY + ' WHERE p.id = ?', (post_id,)).fetchone()


def find_comment(db, post_id, comment_id):
    return db.execute(COMMENT_QUERY + ' WHERE c.id = ? AND c.post_id = ?',
                      (comment_id, post_id)).fetchone()


def _cleaned(data, *fields):
    """Sanitized copy of the supplied string fields; absent fields stay absent."""
    out = {}
    for field in fields:
        if field in data:
            value = data[field]
            out[field] = clean_text(value) if isinstance(value, str) else value
    return out


def _gate(text):
    """
    Runs the sentiment check. Returns a ready 400 response when the text reads
    negative, otherwise None.
    """
    result = check_comment(text)
    if result['sentiment'] != "negative":
        return None

    current_app.logger.warning("Comment by user %s held back as negative", g.user['id'])
    return jsonify({
        "warning": True,
        "message": "Your comment seems negative or inappropriate.",
        "suggestion": result['rephrased'],
    }), 400


# --- MAIN POST ROUTES ---

@posts_bp.route('/posts', methods=['GET'])
def list_posts():
    """Newest first, paginated with ?page= and ?limit=."""
    limit = max(1, min(MAX_LIMIT, _int_arg('limit', DEFAULT_LIMIT)))
    # Keeps (page - 1) * limit inside SQLite's 64-bit OFFSET
    page = max(1, min(_int_arg('page', 1), MAX_OFFSET // limit + 1))
    skip = (page - 1) * limit

    db = get_db()
    rows = db.execute(POST_QUERY + ' ORDER BY p.created_at DESC, p.id DESC LIMIT ? OFFSET ?',
                      (limit, skip)).fetchall()
    total = db.execute('SELECT COUNT(*) FROM posts').fetchone()[0]

    return jsonify({
        "posts": [post_json(db, row) for row in rows],
        "meta": {"page": page, "limit": limit, "total": total},
    })


@posts_bp.route('/posts', methods=['POST'])
@auth_required
@admin_only
def create_post():
    data = _cleaned(json_body(request), 'title', 'body')
    errors = validate_post(data)
    if errors:
        return jsonify({"errors": errors}), 400

    db = get_db()
    now = utc_now()
    try:
        cur = db.execute('INSERT INTO posts (title, body, author_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?)',
                         (data['title'], data['body'], g.user['id'], now, now))
        db.commit()
    except sqlite3.Error:
        return _server_error("Creating post failed")

    return jsonify(post_json(db, find_post(db, cur.lastrowid), populate_author=False)), 201


@posts_bp.route('/posts/<int:post_id>', methods=['GET'])
def get_post(post_id):
    db = get_db()
    row = find_post(db, post_id)
    if row is None:
        return _post_not_found()
    return jsonify(post_json(db, row, populate_comments=True))


@posts_bp.route('/posts/<int:post_id>', methods=['PUT'])
@auth_required
@admin_only
def update_post(post_id):
    """Partial update: only the fields present in the body change."""
    db = get_db()
    row = find_post(db, post_id)
    if row is None:
        return _post_not_found()

    data = _cleaned(json_body(request), 'title', 'body')
    errors = validate_post(data, partial=True)
    if errors:
        return jsonify({"errors": errors}), 400

    try:
        db.execute('UPDATE posts SET title = ?, body = ?, updated_at = ? WHERE id = ?',
                   (data.get('title', row['title']), data.get('body', row['body']), utc_now(), post_id))
        db.commit()
    except sqlite3.Error:
        return _server_error("Updating post failed")

    return jsonify(post_json(db, find_post(db, post_id), populate_author=False))


@posts_bp.route('/posts/<int:post_id>', methods=['DELETE'])
@auth_required
@admin_only
def delete_post(post_id):
    db = get_db()
    try:
        # likes and comments go with it (ON DELETE CASCADE)
        deleted = db.execute('DELETE FROM posts WHERE id = ?', (post_id,)).rowcount
        db.commit()
    except sqlite3.Error:
        return _server_error("Deleting post failed")

    if not deleted:
        return _post_not_found()
    return jsonify({"message": "Post deleted"})


# --- ENGAGEMENT ---

@posts_bp.route('/posts/<int:post_id>/like', methods=['POST'])
@auth_required
def toggle_like(post_id):
    """Likes the post, or takes the like back if the caller already liked it."""
    db = get_db()
    if find_post(db, post_id) is None:
        return _post_not_found()

    user_id = g.user['id']
    try:
        with db:  # Context manager commits or rolls back the toggle as one unit
            removed = db.execute('DELETE FROM post_likes WHERE post_id = ? AND user_id = ?',
                                 (post_id, user_id)).rowcount
            if not removed:
                db.execute('INSERT INTO post_likes (post_id, user_id) VALUES (?, ?)', (post_id, user_id))
    except sqlite3.Error:
        return _server_error("Toggling like failed")

    count = db.execute('SELECT COUNT(*) FROM post_likes WHERE post_id = ?', (post_id,)).fetchone()[0]
    return jsonify({"message": "Post unliked" if removed else "Post liked", "likesCount": count})


# --- COMMENT MANAGEMENT ---

@posts_bp.route('/posts/<int:post_id>/comments', methods=['POST'])
@auth_required
def add_comment(post_id):
    data = _cleaned(json_body(request), 'text')
    errors = validate_comment(data)
    if errors:
        return jsonify({"errors": errors}), 400

    db = get_db()
    if find_post(db, post_id) is None:
        return _post_not_found()

    held = _gate(data['text'])
    if held:
        return held

    try:
        cur = db.execute('INSERT INTO comments (post_id, author_id, text, created_at) VALUES (?, ?, ?, ?)',
                         (post_id, g.user['id'], data['text'], utc_now()))
        db.commit()
    except sqlite3.Error:
        return _server_error("Adding comment failed")

    return jsonify({
        "message": "Comment added successfully",
        "comment": comment_json(find_comment(db, post_id, cur.lastrowid)),
    }), 201


@posts_bp.route('/posts/<int:post_id>/comments/<int:comment_id>', methods=['PUT'])
@auth_required
def edit_comment(post_id, comment_id):
    """Only the comment author may edit; edits go through the sentiment gate too."""
    data = _cleaned(json_body(request), 'text')
    errors = validate_comment(data)
    if errors:
        return jsonify({"errors": errors}), 400

    db = get_db()
    if find_post(db, post_id) is None:
        return _post_not_found()

    comment = find_comment(db, post_id, comment_id)
    if comment is None:
        return jsonify({"error": "Comment not found"}), 404

    if comment['author_id'] != g.user['id']:
        return jsonify({"error": "Only the comment author can edit this comment"}), 403

    held = _gate(data['text'])
    if held:
        return held

    try:
        db.execute('UPDATE comments SET text = ?, updated_at = ? WHERE id = ?',
                   (data['text'], utc_now(), comment_id))
        db.commit()
    except sqlite3.Error:
        return _server_error("Editing comment failed")

    return jsonify({"message": "Comment updated", "comment": comment_json(find_comment(db, post_id, comment_id))})


@posts_bp.route('/posts/<int:post_id>/comments/<int:comment_id>', methods=['DELETE'])
@auth_required
def delete_comment(post_id, comment_id):
    db = get_db()
    if find_post(db, post_id) is None:
        return _post_not_found()

    comment = find_comment(db, post_id, comment_id)
    if comment is None:
        return jsonify({"error": "Comment not found"}), 404

    is_author = comment['author_id'] == g.user['id']
    is_admin = g.user['role'] == 'admin'
    if not is_author and not is_admin:
        return jsonify({"error": "Not authorized to delete this comment"}), 403

    try:
        db.execute('DELETE FROM comments WHERE id = ?', (comment_id,))
        db.commit()
    except sqlite3.Error:
        return _server_error("Deleting comment failed")

    return jsonify({"message": "Comment deleted"})
