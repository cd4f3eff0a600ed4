import io
import logging
import os
import uuid

from flask import Flask, request, session, redirect, url_for, render_template, send_file, Response, jsonify
from flask.logging import default_handler
from flask_wtf import CSRFProtect
from werkzeug.exceptions import RequestEntityTooLarge
from dotenv import load_dotenv

from csvmap.columns import detect_lat_lng_columns
from csvmap.config import load_config
from csvmap.exceptions import GeocodingError, MalformedInputError, MapGenerationError
from csvmap.file_processing import read_uploaded_csv
from csvmap.geocoding import create_geocoder, geocode_column
from csvmap.map_generation import create_folium_map, render_map_html
from csvmap.sample_data import create_sample_csv
from csvmap.state import AppState, SessionStore
from csvmap.validation import validate_column, validate_str_length

basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from .env file
load_dotenv(os.path.join(basedir, '.env'))

# Initialize Flask app and security configs
app = Flask(__name__)
app.config.update(load_config())
app.logger.setLevel(app.config['LOG_LEVEL'])
# Send csvmap module logs through the same handler as app.logger
package_logger = logging.getLogger('csvmap')
package_logger.setLevel(app.config['LOG_LEVEL'])
if default_handler not in package_logger.handlers:
    package_logger.addHandler(default_handler)
# Disable template caching for development
app.config['TEMPLATES_AUTO_RELOAD'] = True
app.config['SEND_FILE_MAX_AGE_DEFAULT'] = 0
csrf = CSRFProtect(app)

# All state is in-process and lost on restart
sessions = SessionStore(app.config['MAX_SESSIONS'])


# Handle file too large errors
@app.errorhandler(RequestEntityTooLarge)
def handle_file_too_large(e):
    limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
    return render_template('error.html', error_code=413,
                           message=f"File too large. Maximum size is {limit_mb}MB."), 413


# Add cache-busting headers
@app.after_request
def add_no_cache_headers(response):
    """Add headers to prevent caching of pages that reflect session state"""
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate, public, max-age=0'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response


def current_state(create=True):
    session_id = session.get('sid')
    if not create:
        # Read-only pages do not allocate state for new visitors
        state = sessions.find(session_id) if session_id else None
        return state if state is not None else AppState()
    if not session_id:
        session_id = session['sid'] = uuid.uuid4().hex
    return sessions.get(session_id)


def get_geocoder():
    return create_geocoder(app.config)


def build_map_for(state):
    return create_folium_map(state.visible_markers(), state.style(), state.theme, state.cluster)


@app.route("/", methods=["GET"])
def index():
    state = current_state(create=False)
    visible = state.visible_markers()
    map_html = render_map_html(create_folium_map(visible, state.style(), state.theme, state.cluster))
    return render_template(
        "index.html",
        state=state,
        map_html=map_html,
        visible_count=len(visible),
        facet_options=state.facet_options(app.config['FACET_VALUE_CEILING']),
    )


@app.route("/upload", methods=["POST"])
def upload():
    state = current_state()
    try:
        filename, table = read_uploaded_csv(request.files.get("file"))
    except MalformedInputError as e:
        app.logger.warning(f"Rejected upload: {e}")
        state.reset()
        state.error = str(e)
        return redirect(url_for("index"))

    lat_column, lng_column = detect_lat_lng_columns(table.headers)
    state.load_table(table, lat_column, lng_column, filename=filename)
    app.logger.info(f"Loaded {filename}: {len(table)} rows, {len(table.headers)} columns")
    if lat_column and lng_column:
        app.logger.info(f"Detected coordinate columns {lat_column!r}/{lng_column!r}: "
                        f"{len(state.markers)}/{len(table)} rows mapped")
    else:
        app.logger.info("No coordinate columns detected; waiting for a geocoding column")
    return redirect(url_for("index"))


@app.route("/clear", methods=["POST"])
def clear():
    current_state(create=False).reset()
    return redirect(url_for("index"))


@app.route("/geocode", methods=["POST"])
def geocode():
    state = current_state()
    column = validate_column(state.table, request.form.get("column", ""))
    token = state.begin_geocode()
    try:
        locations = geocode_column(state.table, column, get_geocoder())
    except GeocodingError as e:
        app.logger.error(f"Geocoding column {column!r} failed: {e}")
        state.fail_geocode(token, str(e))
        return redirect(url_for("index"))

    if state.apply_geocode(token, column, locations):
        app.logger.info(f"Geocoding complete: {len(state.markers)}/{len(state.table)} rows mapped "
                        f"from column {column!r}")
    else:
        app.logger.info(f"Discarded stale geocoding response for column {column!r}")
    return redirect(url_for("index"))


@app.route("/filters", methods=["POST"])
def update_filters():
    state = current_state()
    if request.form.get("action") == "reset":
        state.reset_filters()
        return redirect(url_for("index"))

    max_length = app.config['MAX_SEARCH_LENGTH']
    state.search = validate_str_length(request.form.get("search", ""), max_length)
    category = request.form.get("category", "")
    if category:
        validate_column(state.table, category)
    state.category = category
    state.cluster = request.form.get("cluster") == "true"
    for column in state.facet_options(app.config['FACET_VALUE_CEILING']):
        value = validate_str_length(request.form.get(f"filter:{column}", ""), max_length)
        state.set_filter(column, value)
    return redirect(url_for("index"))


@app.route("/theme", methods=["POST"])
def toggle_theme():
    current_state().toggle_theme()
    return redirect(url_for("index"))


@app.route("/sidebar", methods=["POST"])
def toggle_sidebar():
    current_state().toggle_sidebar()
    return redirect(url_for("index"))


@app.route("/map")
def map_page():
    html = render_map_html(build_map_for(current_state(create=False)), full_page=True)
    return Response(html, mimetype="text/html")


@app.route("/api/markers")
def api_markers():
    state = current_state(create=False)
    visible = state.visible_markers()
    return jsonify({
        "status": state.status,
        "total": len(state.markers),
        "markers": [
            {"id": m.id, "lat": m.lat, "lng": m.lng, "data": m.data}
            for m in visible
        ],
    })


@app.route("/download_template")
def download_template():
    output = io.BytesIO(create_sample_csv().encode("utf-8"))
    return send_file(output, mimetype="text/csv", download_name="sample_locations.csv", as_attachment=True)


# ------------------------------------------
# Error handling framework
# ------------------------------------------
@app.errorhandler(400)
def bad_request(e):
    return render_template('error.html', error_code=400, message=getattr(e, 'description', str(e))), 400

@app.errorhandler(404)
def not_found(e):
    return render_template('error.html', error_code=404, message='Resource not found'), 404

@app.errorhandler(MapGenerationError)
def map_generation_failed(e):
    app.logger.error(f"Map generation failed: {e}", exc_info=True)
    return render_template('error.html', error_code=500, message='The map could not be drawn. Please try again.'), 500

@app.errorhandler(500)
def internal_error(e):
    return render_template('error.html', error_code=500, message='An internal server error occurred'), 500


if __name__ == "__main__":
    app.run(host='0.0.0.0', port=5050, debug=app.config.get('DEBUG', False))
