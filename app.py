import logging
import os

from flask import Flask, jsonify

from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from zkpcs.hyrax.config import SETTINGS

from pcs_routes import pcs_bp, init_pcs_bp


def open_db(path=None):
    """ZKPCS_DB_PATH가 ':memory:'이면 메모리 DB, 아니면 파일 DB."""
    path = path or os.environ.get("ZKPCS_DB_PATH", "db.json")
    if path == ":memory:":
        return TinyDB(storage=MemoryStorage)   #Memory DB
    return TinyDB(path)                        #Storage DB


def create_app(db=None):
    logging.basicConfig(
        level=getattr(logging, SETTINGS.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = os.environ.get("ZKPCS_SECRET_KEY", "key")

    if db is None:
        db = open_db()
    init_pcs_bp(db.table("pcs"))
    app.register_blueprint(pcs_bp)

    @app.route("/")
    def main():
        return jsonify({
            "endpoints": [
                "POST /pcs/setup",
                "POST /pcs/commit",
                "POST /pcs/open",
                "POST /pcs/prove",
                "POST /pcs/verify",
                "GET /pcs/state",
                "POST /pcs/reset",
            ],
            "workers": SETTINGS.workers,
        })

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
