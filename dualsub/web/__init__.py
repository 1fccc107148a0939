"""Flask application factory for the DualSub HTTP API."""

from flask import Flask, jsonify

from dualsub.cache import DEFAULT_TTL, TTLCache


def create_app(cache: TTLCache | None = None) -> Flask:
    app = Flask(__name__)
    app.config["CACHE"] = cache if cache is not None else TTLCache(ttl=DEFAULT_TTL)
    app.config["MAX_CONTENT_LENGTH"] = 20 * 1024 * 1024  # 20 MB

    from dualsub.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "Request too large"}), 413

    return app
