import logging
import os

from dotenv import load_dotenv
load_dotenv()  # Load .env file (DATABASE_URL, PORT, etc.)

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from analyzer import analyze_cv
from blueprint import apply_blueprint
from cv_reader import MAX_CV_BYTES, UnrecognisedFormatError, UploadTooLargeError, read_cv_upload
from models import db
from site_service import (
    ItemNotFound,
    PayloadError,
    create_category,
    create_entry,
    create_message,
    delete_category,
    delete_entry,
    delete_message,
    list_messages,
    update_category,
    update_entry,
    update_homepage,
    update_message,
    update_profile,
)
from site_views import (
    category_options,
    enrich_entries,
    enrich_homepage,
    entry_options,
    site_payload,
    with_category_counts,
)
from state_store import load_state, state_transaction

logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
                    format='%(asctime)s [%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)

app = Flask(__name__)
# Leave room for multipart overhead; the CV size bound itself is enforced in cv_reader
app.config['MAX_CONTENT_LENGTH'] = MAX_CV_BYTES + 256 * 1024

# ---------------------------------------------------------------------------
# Database: Postgres via DATABASE_URL, else a local SQLite file
# ---------------------------------------------------------------------------
database_url = os.environ.get('DATABASE_URL', '')
if database_url:
    # Hosted Postgres URLs often start with postgres:// but SQLAlchemy needs postgresql://
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
else:
    _db_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'site.db')
    app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{_db_path}'
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
db.init_app(app)
with app.app_context():
    db.create_all()


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise PayloadError('Invalid payload')
    return body


# ---------------------------------------------------------------------------
# Response headers and error handlers
# ---------------------------------------------------------------------------

@app.after_request
def add_api_headers(response):
    if request.path.startswith('/api/'):
        response.headers['Cache-Control'] = 'no-store'
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Methods'] = 'GET,POST,PUT,DELETE,OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response


@app.errorhandler(PayloadError)
def handle_payload_error(e):
    return jsonify({'error': str(e)}), 400


@app.errorhandler(ItemNotFound)
def handle_item_not_found(e):
    return jsonify({'error': 'Not Found'}), 404


@app.errorhandler(UnrecognisedFormatError)
@app.errorhandler(UploadTooLargeError)
def handle_rejected_upload(e):
    return jsonify({'error': str(e)}), 400


@app.errorhandler(HTTPException)
def handle_http_error(e):
    return jsonify({'error': e.name}), e.code


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    logger.error('API error: %s', e, exc_info=True)
    return jsonify({'error': 'Internal Server Error'}), 500


# ---------------------------------------------------------------------------
# Profile, site and onboarding
# ---------------------------------------------------------------------------

@app.route('/api/profile', methods=['GET'])
def get_profile():
    return jsonify(load_state()['profile'])


@app.route('/api/profile', methods=['PUT', 'POST'])
def save_profile():
    body = _json_body()
    with state_transaction() as state:
        profile = update_profile(state, body)
    return jsonify(profile)


@app.route('/api/site', methods=['GET'])
def get_site():
    return jsonify(site_payload(load_state()))


@app.route('/api/onboarding', methods=['POST'])
def onboarding():
    body = _json_body()
    with state_transaction() as state:
        result = apply_blueprint(state, body)
    logger.info('Onboarding complete: %d categories, %d entries',
                len(result['categories']), len(result['entries']))
    return jsonify(result)


# ---------------------------------------------------------------------------
# CV upload and analysis preview
# ---------------------------------------------------------------------------

@app.route('/api/cv/upload', methods=['POST'])
def upload_cv():
    file = request.files.get('cv_file')
    if not file or not file.filename:
        raise PayloadError('Select a CV file to upload')
    filename, text = read_cv_upload(file)
    return jsonify({'filename': filename, 'cvText': text, 'analysis': analyze_cv(text)})


@app.route('/api/cv/analyze', methods=['POST'])
def analyze_cv_text():
    body = _json_body()
    cv_text = body.get('cvText')
    return jsonify(analyze_cv(cv_text if isinstance(cv_text, str) else ''))


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

@app.route('/api/categories', methods=['GET'])
def list_categories():
    return jsonify(with_category_counts(load_state()))


@app.route('/api/categories/options', methods=['GET'])
def list_category_options():
    return jsonify(category_options(load_state()))


@app.route('/api/categories', methods=['POST'])
def add_category():
    body = _json_body()
    with state_transaction() as state:
        category = create_category(state, body)
    return jsonify(category), 201


@app.route('/api/categories/<category_id>', methods=['PUT'])
def edit_category(category_id):
    body = _json_body()
    with state_transaction() as state:
        category = update_category(state, category_id, body)
    return jsonify(category)


@app.route('/api/categories/<category_id>', methods=['DELETE'])
def remove_category(category_id):
    with state_transaction() as state:
        delete_category(state, category_id)
    return jsonify({})


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

@app.route('/api/entries', methods=['GET'])
def list_entries():
    return jsonify(enrich_entries(load_state()))


@app.route('/api/entries/options', methods=['GET'])
def list_entry_options():
    return jsonify(entry_options(load_state()))


@app.route('/api/entries', methods=['POST'])
def add_entry():
    body = _json_body()
    with state_transaction() as state:
        entry = create_entry(state, body)
    return jsonify(entry), 201


@app.route('/api/entries/<entry_id>', methods=['PUT'])
def edit_entry(entry_id):
    body = _json_body()
    with state_transaction() as state:
        entry = update_entry(state, entry_id, body)
    return jsonify(entry)


@app.route('/api/entries/<entry_id>', methods=['DELETE'])
def remove_entry(entry_id):
    with state_transaction() as state:
        delete_entry(state, entry_id)
    return jsonify({})


# ---------------------------------------------------------------------------
# Homepage
# ---------------------------------------------------------------------------

@app.route('/api/homepage', methods=['GET'])
def get_homepage():
    return jsonify(enrich_homepage(load_state()))


@app.route('/api/homepage', methods=['PUT'])
def save_homepage():
    body = _json_body()
    with state_transaction() as state:
        update_homepage(state, body)
        homepage = enrich_homepage(state)
    return jsonify(homepage)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

@app.route('/api/messages', methods=['GET'])
def get_messages():
    return jsonify(list_messages(load_state()))


@app.route('/api/messages', methods=['POST'])
def add_message():
    body = _json_body()
    with state_transaction() as state:
        message = create_message(state, body)
    return jsonify(message), 201


@app.route('/api/messages/<message_id>', methods=['PUT'])
def edit_message(message_id):
    body = _json_body()
    with state_transaction() as state:
        message = update_message(state, message_id, body)
    return jsonify(message)


@app.route('/api/messages/<message_id>', methods=['DELETE'])
def remove_message(message_id):
    with state_transaction() as state:
        delete_message(state, message_id)
    return jsonify({})


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5050))
    app.run(debug=True, port=port)
