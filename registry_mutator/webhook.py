import json
import logging
import os
import sys

from flask import Flask, request, jsonify

from registry_mutator.admission import review_response
from registry_mutator.config import load_config
from registry_mutator.errors import ConfigError, DecodeError

TLS_CERT = os.environ.get("TLS_CERT", "/tls/tls.crt")
TLS_KEY = os.environ.get("TLS_KEY", "/tls/tls.key")
PORT = int(os.environ.get("PORT", "8443"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

app = Flask(__name__)


@app.route('/mutate', methods=['POST'])
def mutate():
    review = request.get_json(silent=True)
    if not isinstance(review, dict):
        app.logger.error("AdmissionReview request is not a JSON object")
        return jsonify({"error": "Invalid AdmissionReview request"}), 400
    app.logger.debug(f"AdmissionReview request: {json.dumps(review)}")

    try:
        response = review_response(review, app.config["MUTATOR_CONFIG"])
    except DecodeError as e:
        app.logger.error(f"Error mutating review: {e}")
        return jsonify({"error": str(e)}), 500
    return jsonify(response)


@app.route('/healthz', methods=['GET'])
def healthz():
    return "ok", 200


def main():
    logging.basicConfig()
    try:
        logging.getLogger().setLevel(LOG_LEVEL)
    except ValueError as e:
        app.logger.error(f"Invalid LOG_LEVEL {LOG_LEVEL}: {e}")
        sys.exit(1)
    try:
        app.config["MUTATOR_CONFIG"] = load_config()
    except ConfigError as e:
        app.logger.error(f"Could not load config. Please set MUTATE_CONFIG env variable. Error: {e}")
        sys.exit(1)

    config = app.config["MUTATOR_CONFIG"]
    app.logger.info(f"Default domain {config.default_domain}, mapping {dict(config.domain_mapping)}")
    try:
        app.logger.info("Starting webhook server...")
        if not os.path.isfile(TLS_CERT):
            app.logger.error(f"TLS certificate not found at {TLS_CERT}")
        if not os.path.isfile(TLS_KEY):
            app.logger.error(f"TLS key not found at {TLS_KEY}")
        # Use 8443 to allow running as non-root without NET_BIND_SERVICE
        app.run(host='0.0.0.0', port=PORT, ssl_context=(TLS_CERT, TLS_KEY))
    except Exception as e:
        print(f"Failed to start Flask server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
