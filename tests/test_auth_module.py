# run with: pytest tests/test_auth_module.py -v

REGISTRATION = {
    "firstName": "Asha",
    "lastName": "Rao",
    "username": "asha@example.com",
    "phoneNumber": "9876543210",
    "password": "Secret@123",
    "confirmPassword": "Secret@123",
    "termsAccepted": True,
}


def test_login_sets_session(client, fake_backend):
    r = client.post("/api/auth/login", json={"username": "asha@example.com", "password": "Secret@123"})

    assert r.status_code == 200
    assert r.json["user"]["username"] == "asha@example.com"
    assert r.json["next"] == "/"

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert fake_backend.calls[-1].headers["Authorization"] == "Bearer tok-123"


def test_unverified_user_is_sent_to_otp(client, fake_backend):
    fake_backend.on(
        "POST",
        r"/auth/login",
        lambda call: (200, {"token": "tok-123", "user": {"id": 8, "username": "new@example.com", "role": "CUSTOMER", "emailVerified": False}}),
    )
    r = client.post("/api/auth/login", json={"username": "new@example.com", "password": "Secret@123"})
    assert r.json["next"] == "/verify-otp?email=new@example.com"


def test_admin_is_sent_to_dashboard(client, fake_backend):
    fake_backend.on(
        "POST",
        r"/auth/login",
        lambda call: (200, {"token": "tok-123", "user": {"id": 1, "username": "owner@example.com", "role": "ADMIN", "emailVerified": True}}),
    )
    r = client.post("/api/auth/login", json={"username": "owner@example.com", "password": "Secret@123"})
    assert r.json["next"] == "/admin"


def test_login_bad_credentials(client):
    r = client.post("/api/auth/login", json={"username": "asha@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json["error"]["code"] == "invalid_credentials"


def test_login_missing_fields(client, fake_backend):
    r = client.post("/api/auth/login", json={"username": ""})
    assert r.status_code == 400
    assert set(r.json["error"]["details"]["fields"]) == {"username", "password"}
    assert not fake_backend.calls


def test_logout(logged_in):
    assert logged_in.post("/api/auth/logout").status_code == 200
    assert logged_in.get("/api/auth/me").status_code == 401


def test_register_then_verify(client, fake_backend):
    r = client.post("/api/auth/register", json=REGISTRATION)
    assert r.status_code == 201
    assert r.json["next"] == "/verify-otp?email=asha@example.com"
    sent = fake_backend.calls_to("POST", "/auth/register")[0].body
    assert "termsAccepted" not in sent

    r = client.post("/api/auth/verify", json={"email": "asha@example.com", "otp": "123456"})
    assert r.status_code == 200
    assert fake_backend.calls[-1].params == {"otp": "123456", "email": "asha@example.com"}


def test_register_validation_blocks_request(client, fake_backend):
    r = client.post("/api/auth/register", json=dict(REGISTRATION, confirmPassword="Secret@999"))
    assert r.status_code == 400
    assert r.json["error"]["details"]["fields"]["confirmPassword"] == "Passwords do not match"
    assert not fake_backend.calls


def test_verify_wrong_otp(client):
    r = client.post("/api/auth/verify", json={"email": "asha@example.com", "otp": "000000"})
    assert r.status_code == 400
    assert r.json["error"]["message"] == "Invalid OTP"


def test_password_strength(client):
    r = client.post("/api/auth/password-strength", json={"password": "Abcdefg1"})
    assert r.json == {"score": 4, "label": "Medium"}


def test_password_reset_flow(client, fake_backend):
    fake_backend.on("POST", r"/auth/forgot-password", lambda call: (200, {"message": "OTP sent."}))
    fake_backend.on("POST", r"/auth/verify-reset-otp", lambda call: (200, {"message": "OTP verified."}))
    fake_backend.on("POST", r"/auth/reset-password", lambda call: (200, {"message": "Password reset successfully."}))

    assert client.post("/api/auth/forgot-password", json={"email": "asha@example.com"}).json["message"] == "OTP sent."
    assert client.post("/api/auth/verify-reset-otp", json={"email": "asha@example.com", "otp": "654321"}).status_code == 200
    r = client.post(
        "/api/auth/reset-password",
        json={"email": "asha@example.com", "password": "Newer@123", "confirmPassword": "Newer@123"},
    )
    assert r.status_code == 200
    assert r.json["next"] == "/login"
    assert fake_backend.calls[-1].params["confirmPassword"] == "Newer@123"
