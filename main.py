import os
import contextlib
import sys
import logging
from flask import Flask, current_app
import requests

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from clients import ServiceClients, open_clients
from fanout import SENTENCES, ResponseBuffer, fan_out

# ----------------------
# Configuration
# ----------------------
DEFAULT_PORT = "8080"
PROJECT_ID = os.getenv("GOOGLE_CLOUD_PROJECT", "zatar-demo")
SPANNER_INSTANCE = os.getenv("SPANNER_INSTANCE", "test-instance")
TRANSLATE_LOCATION = os.getenv("TRANSLATE_LOCATION", "us-central1")
BIGQUERY_LOCATION = os.getenv("BIGQUERY_LOCATION", "US")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

TOP_TERMS_QUERY = (
    "-- This query shows a list of the daily top Google Search terms.\n"
    "SELECT\n   "
    "refresh_date AS Day,\n   "
    "term AS Top_Term,\n       "
    "-- These search terms are in the top 25 in the US each day.\n "
    "rank,\n"
    "FROM `bigquery-public-data.google_trends.top_terms`\n"
    "WHERE  rank = 1\n       "
    "-- Choose only the top term each day.\n "
    "AND refresh_date >= DATE_SUB(CURRENT_DATE(), INTERVAL 1 WEEK)\n       "
    "-- Filter to the last 1 weeks. \n"
    "GROUP BY Day, Top_Term, rank \n"
    "ORDER BY Day DESC"
)

# errors a failed cloud call can raise
REMOTE_ERRORS = (GoogleAPIError, GoogleAuthError, requests.RequestException)

TEXT_PLAIN = {"Content-Type": "text/plain; charset=utf-8"}

# Logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger("cloud-client-demo")

# ----------------------
# App Setup
# ----------------------
app = Flask(__name__)

# ----------------------
# Helpers
# ----------------------
def get_clients() -> ServiceClients:
    """Service clients installed by main() before serving."""
    return current_app.extensions["service_clients"]

def get_port() -> str:
    port = os.getenv("PORT")
    if not port:
        port = DEFAULT_PORT
        logger.info("Defaulting to port %s", port)
    return port

def instance_path() -> str:
    return f"projects/{PROJECT_ID}/instances/{SPANNER_INSTANCE}"

def location_path() -> str:
    return f"projects/{PROJECT_ID}/locations/{TRANSLATE_LOCATION}"

def format_row(row) -> str:
    return "[" + " ".join(str(value) for value in row.values()) + "]"

def failure(lines, message: str):
    logger.error(message)
    return "".join(lines) + message, 500, TEXT_PLAIN

# ----------------------
# Endpoints
# ----------------------
@app.route("/", methods=["GET"])
def index():
    return "Hello and Welcome!", 200, TEXT_PLAIN

# lists databases in the test spanner instance
@app.route("/spannergrpc", methods=["GET"])
def spanner_grpc():
    parent = instance_path()
    lines = [f"Databases for instance/[{parent}]\n"]
    try:
        for database in get_clients().spanner_admin.list_databases(parent=parent):
            lines.append(f"{database.name}\n")
    except REMOTE_ERRORS as e:
        return failure(lines, f"error iterating through response: {e}")

    lines.append("listing database was successful!")
    return "".join(lines), 200, TEXT_PLAIN

# runs a simple query and returns the rows
@app.route("/bigqueryhttp", methods=["GET"])
def bigquery_http():
    client = get_clients().bigquery

    # Location must match that of the dataset(s) referenced in the query.
    try:
        job = client.query(TOP_TERMS_QUERY, location=BIGQUERY_LOCATION)
    except REMOTE_ERRORS as e:
        return failure([], f"can not run query: {e}")

    try:
        rows = job.result()
    except REMOTE_ERRORS as e:
        return failure([], f"error waiting on job to finish: {e}")

    if job.error_result:
        return failure([], f"error in job status: {job.error_result.get('message', job.error_result)}")

    lines = []
    try:
        for row in rows:
            lines.append(format_row(row) + "\n")
    except REMOTE_ERRORS as e:
        return failure(lines, f"error iterating results: {e}")

    logger.info("query is done!")
    return "".join(lines), 200, TEXT_PLAIN

def translate_all(client, target_language: str):
    out = ResponseBuffer()
    fan_out(client, SENTENCES, target_language, location_path(), out)
    return out.to_response()

# concurrently translates sentences, using the grpc client
@app.route("/translategrpc", methods=["GET"])
def translate_grpc():
    return translate_all(get_clients().translate_grpc, "zh")

# concurrently translates sentences, using the http client
@app.route("/translatehttp", methods=["GET"])
def translate_http():
    return translate_all(get_clients().translate_rest, "ar")

# ----------------------
# Entry point
# ----------------------
def main():
    port = get_port()

    with contextlib.ExitStack() as stack:
        try:
            clients = stack.enter_context(open_clients(PROJECT_ID))
        except (GoogleAuthError, GoogleAPIError) as e:
            logger.error("can not create service clients: %s", e)
            sys.exit(1)

        app.extensions["service_clients"] = clients
        logger.info("Listening on port %s", port)
        # werkzeug reports a bind failure itself and exits with status 1
        app.run(host="0.0.0.0", port=int(port), threaded=True)

if __name__ == "__main__":
    main()
