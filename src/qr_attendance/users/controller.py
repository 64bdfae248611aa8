from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.web import error_response, login_required
from ..core.exceptions import AuthenticationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or {}
        try:
            s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))
        except AuthenticationError as e:
            logger.info("Failed login for %r", data.get("username"))
            return error_response(e)
        except Exception as e:
            return error_response(e)

        session.clear()
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        return jsonify({"success": True, "user_id": s_user.user_id, "role": s_user.role.value}), 200

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True}), 200

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify({"user_id": session["user_id"], "name": session.get("name"), "role": session["role"]}), 200
