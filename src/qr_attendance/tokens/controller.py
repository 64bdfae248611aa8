from __future__ import annotations

import io

import qrcode
from flask import Flask, jsonify, send_file

from ..common.datetime_utils import to_iso
from ..common.web import current_user, error_response, roles_required
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..container import Container
from .model import SessionToken


def register(app: Flask, container: Container) -> None:
    def _ensure_can_manage(session_id: int) -> None:
        user_id, role = current_user()
        if role != Role.FACULTY:
            return
        class_session = container.sessions_repo.get_by_id(session_id)
        # A missing session is reported by the token service itself.
        if class_session and class_session.faculty_id != user_id:
            raise AuthorizationError("Faculty can only manage their own sessions")

    def _token_payload(token: SessionToken) -> dict:
        return {
            "sessionId": token.session_id,
            "token": token.token,
            "expiresAt": to_iso(token.expires_at),
            "rotationIntervalSeconds": container.token_service.policy.rotation_interval_seconds,
        }

    @app.route("/api/sessions/<int:session_id>/token", methods=["GET"], endpoint="session_token")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def session_token(session_id: int):
        try:
            _ensure_can_manage(session_id)
            token = container.token_service.get_or_create_active_token(session_id)
        except Exception as e:
            return error_response(e)
        return jsonify(_token_payload(token)), 200

    @app.route("/api/sessions/<int:session_id>/token/rotate", methods=["POST"], endpoint="session_token_rotate")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def session_token_rotate(session_id: int):
        """Manual override of the scheduled rotation tick."""
        try:
            _ensure_can_manage(session_id)
            token = container.token_service.rotate(session_id, force=True)
            if token is None:
                token = container.token_service.get_or_create_active_token(session_id)
        except Exception as e:
            return error_response(e)
        return jsonify(_token_payload(token)), 200

    @app.route("/api/sessions/<int:session_id>/token/qr.png", methods=["GET"], endpoint="session_token_qr")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def session_token_qr(session_id: int):
        """Current token rendered as a QR image for the classroom display."""
        try:
            _ensure_can_manage(session_id)
            token = container.token_service.get_or_create_active_token(session_id)
        except Exception as e:
            return error_response(e)

        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(token.token)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        buf.seek(0)

        response = send_file(buf, mimetype="image/png")
        response.headers["Cache-Control"] = "no-store"
        response.headers["X-Token-Expires-At"] = to_iso(token.expires_at)
        return response
