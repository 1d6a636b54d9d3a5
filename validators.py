"""
Request-body validation and text sanitizing shared by the blueprints.

Every rule returns a list of error dicts; an empty list means the body is fine.
The dicts use the same shape for every endpoint so the frontend can print them:
{"msg": ..., "path": <field>, "location": "body"}
"""
import re

TITLE_MAX = 300
COMMENT_MAX = 1000

# something@something.tld with no whitespace
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def json_body(request):
    """
    The request body as a dict. Absent, unparsable or non-object JSON
    (arrays, strings, numbers) all come back as {} so validation rejects them.
    """
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _error(field, msg):
    return {"msg": msg, "path": field, "location": "body"}


def _text(data, field):
    value = data.get(field)
    return value if isinstance(value, str) else ''


def clean_text(text):
    """
    Sanitizes input but ALLOWS basic HTML formatting (bold, italic, lists).
    Only script/style blocks, inline event handlers and javascript: URLs go.
    """
    if not text: return ""

    text = re.sub(r'<script.*?>.*?</script>', '', text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r'<style.*?>.*?</style>', '', text, flags=re.DOTALL | re.IGNORECASE)

    #Removes event handlers (e.g. onclick="...")
    text = re.sub(r'\s+on\w+\s*=\s*"[^"]*"', '', text, flags=re.IGNORECASE)
    text = re.sub(r"\s+on\w+\s*=\s*'[^']*'", '', text, flags=re.IGNORECASE)
    text = re.sub(r'javascript:', '', text, flags=re.IGNORECASE)

    return text.strip()


def normalize_email(email):
    return (email or '').strip().lower()


# --- AUTH ---

def validate_register(data):
    errors = []
    if len(_text(data, 'name').strip()) < 2:
        errors.append(_error('name', 'Name must have at least 2 characters'))
    if not EMAIL_RE.match(normalize_email(_text(data, 'email'))):
        errors.append(_error('email', 'Invalid email'))
    if len(_text(data, 'password')) < 6:
        errors.append(_error('password', 'Password must be at least 6 chars'))
    return errors


def validate_login(data):
    errors = []
    if not EMAIL_RE.match(normalize_email(_text(data, 'email'))):
        errors.append(_error('email', 'Invalid email'))
    if data.get('password') is None:
        errors.append(_error('password', 'Password required'))
    return errors


# --- POSTS ---

def _title_errors(title):
    if len(title.strip()) < 2:
        return [_error('title', 'Title is required')]
    if len(title) > TITLE_MAX:
        return [_error('title', f'Title must be at most {TITLE_MAX} characters')]
    return []


def _body_errors(body):
    if not body.strip():
        return [_error('body', 'Body is required')]
    return []


def validate_post(data, partial=False):
    """
    Full validation for create; with partial=True only the supplied fields
    are checked, which is what an edit needs.
    """
    errors = []
    if not partial or 'title' in data:
        errors += _title_errors(_text(data, 'title'))
    if not partial or 'body' in data:
        errors += _body_errors(_text(data, 'body'))
    return errors


# --- COMMENTS ---

def validate_comment(data):
    text = _text(data, 'text')
    if not text.strip():
        return [_error('text', 'Comment text is required')]
    if len(text) > COMMENT_MAX:
        return [_error('text', f'Comment must be at most {COMMENT_MAX} characters')]
    return []
