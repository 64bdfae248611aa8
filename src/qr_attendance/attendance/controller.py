from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_user, error_response, roles_required
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container
from .model import AttendanceRecord


def _record_payload(r: AttendanceRecord) -> dict:
    return {
        "attendanceId": r.attendance_id,
        "sessionId": r.session_id,
        "studentId": r.student_id,
        "status": r.status.value,
        "markedAt": r.marked_at.isoformat(),
        "markedBy": r.marked_by.value,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @roles_required(Role.STUDENT)
    def attendance_checkin():
        """Student submits a scanned token.

        A repeated scan for an already marked student is answered with 200 and
        ``created: false``; clients may retry on timeout.
        """
        data = request.get_json(silent=True) or {}
        user_id, _ = current_user()
        try:
            student_id = data.get("studentId", user_id)
            try:
                student_id = int(student_id)
            except (TypeError, ValueError):
                raise ValidationError("studentId must be an integer") from None
            if student_id != user_id:
                raise AuthorizationError("Students can only check themselves in")

            result = container.checkin_service.check_in(str(data.get("token") or ""), student_id)
        except Exception as e:
            return error_response(e)

        return jsonify({"success": True, **result.to_dict()}), 200

    @app.route("/api/sessions/<int:session_id>/attendance", methods=["GET"], endpoint="session_attendance")
    @roles_required(Role.FACULTY, Role.ADMIN)
    def session_attendance(session_id: int):
        user_id, role = current_user()
        try:
            records = container.correction_service.list_for_session(
                current_role=role, user_id=user_id, session_id=session_id
            )
        except Exception as e:
            return error_response(e)
        return jsonify({"sessionId": session_id, "records": [_record_payload(r) for r in records]}), 200

    @app.route(
        "/api/sessions/<int:session_id>/attendance/<int:student_id>/correct",
        methods=["POST"],
        endpoint="session_attendance_correct",
    )
    @roles_required(Role.FACULTY, Role.ADMIN)
    def session_attendance_correct(session_id: int, student_id: int):
        data = request.get_json(silent=True) or {}
        user_id, role = current_user()
        try:
            try:
                status = AttendanceStatus(str(data.get("status", "")).upper())
            except ValueError:
                raise ValidationError("status must be one of PRESENT, ABSENT, LATE") from None

            record = container.correction_service.correct(
                current_role=role,
                corrected_by=user_id,
                session_id=session_id,
                student_id=student_id,
                status=status,
                reason=str(data.get("reason") or ""),
            )
        except Exception as e:
            return error_response(e)
        return jsonify({"success": True, "record": _record_payload(record)}), 200
