from admissions.config import Settings, validate_settings

STRONG_SECRET = "s" * 40


def test_default_test_settings_are_clean():
    assert validate_settings(Settings(jwt_secret=STRONG_SECRET)) == []


def test_missing_jwt_secret_warns():
    warnings = validate_settings(Settings(jwt_secret=""))
    assert any("JWT_SECRET is not set" in w for w in warnings)


def test_short_jwt_secret_warns():
    warnings = validate_settings(Settings(jwt_secret="short"))
    assert any("shorter than 32 characters" in w for w in warnings)


def test_localhost_database_in_production_warns(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    warnings = validate_settings(
        Settings(
            jwt_secret=STRONG_SECRET,
            database_url="postgresql+psycopg://u:p@localhost:5432/admissions",
        )
    )
    assert warnings == ["DATABASE_URL points to localhost in production"]


def test_lockout_threshold_must_be_positive():
    warnings = validate_settings(
        Settings(jwt_secret=STRONG_SECRET, max_failed_login_attempts=0)
    )
    assert warnings == ["MAX_FAILED_LOGIN_ATTEMPTS must be at least 1"]


def test_lockout_defaults():
    s = Settings()
    assert s.max_failed_login_attempts == 5
    assert s.lockout_minutes == 30
    assert s.document_max_size_bytes == 10 * 1024 * 1024
