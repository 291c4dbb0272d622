"""Authentication routes for admin and worker login."""

from __future__ import annotations

from flask import Blueprint, jsonify, request, session
from flask_bcrypt import check_password_hash

from safetycheck.models import AdminUser, Employee
from safetycheck.session import UserProfile

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login/admin", methods=["POST"])
def login_admin():
    data = request.get_json(force=True)
    username = data.get("username")
    password = data.get("password") or ""
    admin = AdminUser.query.filter_by(username=username).first()
    if not admin or not check_password_hash(admin.password_hash, password):
        return jsonify({"error": "Invalid credentials"}), 401
    session.clear()
    session["role"] = "admin"
    session["admin_id"] = admin.id
    return jsonify({"message": "ok", "role": "admin"})


@auth_bp.route("/login/worker", methods=["POST"])
def login_worker():
    data = request.get_json(force=True)
    name = data.get("name")
    emp_num = data.get("emp_num")
    if not name or not emp_num:
        return jsonify({"error": "name and emp_num are required"}), 400
    employee = Employee.query.filter_by(emp_num=emp_num).first()
    if not employee:
        return jsonify({"error": "Unknown employee number"}), 404
    if employee.name != name:
        return jsonify({"error": "Invalid credentials"}), 401
    session.clear()
    session["role"] = "worker"
    session["emp_num"] = employee.emp_num
    return jsonify({"message": "ok", "role": "worker", "emp_num": employee.emp_num, "dept": employee.dept})


@auth_bp.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"message": "logged out"})


def ensure_admin():
    return session.get("role") == "admin"


def ensure_worker():
    return session.get("role") == "worker" and bool(session.get("emp_num"))


def current_profile():
    """Profile of the logged-in worker, or None."""
    employee = Employee.query.filter_by(emp_num=session.get("emp_num")).first()
    if employee is None:
        return None
    return UserProfile(
        user_id=f"emp-{employee.id}",
        emp_num=employee.emp_num,
        name=employee.name,
        dept=employee.dept,
    )
