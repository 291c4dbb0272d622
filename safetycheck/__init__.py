"""Flask application factory for the worker safety-check service."""

from __future__ import annotations

import logging

from flask import Flask

import config
from safetycheck.db import bcrypt, db, init_db


def create_app(overrides=None):
    from safetycheck.auth import auth_bp
    from safetycheck.routes_admin import admin_bp
    from safetycheck.routes_worker import worker_bp

    app = Flask(__name__)
    app.config.from_object(config)
    if overrides:
        app.config.update(overrides)
    db.init_app(app)
    bcrypt.init_app(app)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    with app.app_context():
        init_db()
    app.register_blueprint(auth_bp)
    app.register_blueprint(worker_bp, url_prefix="/worker")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.route("/healthz")
    def healthz():
        return {"status": "ok"}

    logging.info("Safety check API ready on %s", app.config["SQLALCHEMY_DATABASE_URI"])
    return app
