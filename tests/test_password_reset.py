from datetime import timedelta

from app.models.common import utcnow
from app.models.user import User

UNIFORM = {
    "success": True,
    "message": "If your email is registered, you will receive a password reset link.",
}


def request_reset(client, email):
    return client.post("/user/forgot-password", json={"email": email})


def reset(client, token, new_password="resetpass1"):
    return client.post("/user/reset-password", json={"token": token, "newPassword": new_password})


def test_forgot_password_sends_token(client, register, email_service, db):
    register("reset@example.com")
    response = request_reset(client, "reset@example.com")
    assert response.status_code == 200
    assert response.json() == UNIFORM

    token = email_service.last_reset_token("reset@example.com")
    assert token is not None and len(token) == 64
    user = db.query(User).filter(User.email == "reset@example.com").one()
    assert user.reset_token == token
    assert user.reset_token_expiry > utcnow()


def test_forgot_password_unknown_email_is_indistinguishable(client, register, email_service):
    register("known@example.com")
    known = request_reset(client, "known@example.com")
    unknown = request_reset(client, "unknown@example.com")

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json() == UNIFORM
    assert [m["to"] for m in email_service.sent if m["kind"] == "reset"] == ["known@example.com"]


def test_forgot_password_email_failure_stays_uniform(client, register, email_service):
    register("known@example.com")
    email_service.fail = True
    response = request_reset(client, "known@example.com")
    assert response.status_code == 200
    assert response.json() == UNIFORM


def test_forgot_password_invalid_email(client):
    response = request_reset(client, "nope")
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_reset_password_once(client, register, email_service):
    register("reset@example.com")
    request_reset(client, "reset@example.com")
    token = email_service.last_reset_token("reset@example.com")

    response = reset(client, token)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Password has been reset successfully."}

    login = client.post("/user/login", json={"email": "reset@example.com", "password": "resetpass1"})
    assert login.status_code == 200

    # le token est consommé
    again = reset(client, token, "anotherpass1")
    assert again.status_code == 400
    assert again.json()["message"] == "Invalid reset token. Please request a new password reset link."


def test_reset_password_expired_token(client, register, email_service, db):
    register("reset@example.com")
    request_reset(client, "reset@example.com")
    token = email_service.last_reset_token("reset@example.com")

    user = db.query(User).filter(User.email == "reset@example.com").one()
    user.reset_token_expiry = utcnow() - timedelta(minutes=1)
    db.commit()

    response = reset(client, token)
    assert response.status_code == 400
    assert response.json()["message"] == "Reset token has expired. Please request a new one."

    # l'ancien mot de passe marche encore
    login = client.post("/user/login", json={"email": "reset@example.com", "password": "longpass1"})
    assert login.status_code == 200


def test_reset_password_unknown_token(client):
    response = reset(client, "deadbeef")
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Invalid reset token. Please request a new password reset link.",
    }


def test_new_request_replaces_previous_token(client, register, email_service):
    register("reset@example.com")
    request_reset(client, "reset@example.com")
    first = email_service.last_reset_token("reset@example.com")
    request_reset(client, "reset@example.com")
    second = email_service.last_reset_token("reset@example.com")

    assert first != second
    assert reset(client, first).status_code == 400
    assert reset(client, second).status_code == 200


def test_reset_password_too_short(client):
    response = reset(client, "whatever", "short")
    assert response.status_code == 400
