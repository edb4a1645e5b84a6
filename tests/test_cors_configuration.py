import pytest

from school_directory.app.config import _parse_bool, _parse_csv, load_settings, prepare_cors_settings


def test_parse_csv_strips_trailing_slash():
    assert _parse_csv(" http://localhost:3000/ ", default=None) == ["http://localhost:3000"]


def test_parse_csv_deduplicates_and_trims():
    result = _parse_csv("http://api.test, http://api.test/ , https://app.test/", default=None)

    assert result == ["http://api.test", "https://app.test"]


def test_parse_csv_falls_back_to_default_when_empty():
    assert _parse_csv(" ,  , ", default=["https://fallback.test/"]) == ["https://fallback.test"]


def test_parse_csv_preserves_wildcard_origin():
    assert _parse_csv(None, default=["*"]) == ["*"]
    assert _parse_csv("*", default=None) == ["*"]


def test_parse_csv_supports_json_and_newline_separated_values():
    assert _parse_csv("http://one.test\nhttps://two.test/", default=None) == [
        "http://one.test",
        "https://two.test",
    ]

    assert _parse_csv('["https://json.test", "https://json.test/"]', default=None) == [
        "https://json.test"
    ]


def test_parse_csv_strips_quotes():
    assert _parse_csv("'https://quoted.test/'", default=None) == ["https://quoted.test"]


def test_prepare_cors_settings_handles_wildcard_only():
    origins, regex = prepare_cors_settings(["*"])

    assert origins == []
    assert regex == ".*"


def test_prepare_cors_settings_mixes_specific_and_wildcard():
    origins, regex = prepare_cors_settings(["https://one.test", "*", "http://two.test"])

    assert origins == ["https://one.test", "http://two.test"]
    assert regex == ".*"


def test_prepare_cors_settings_without_wildcard():
    origins, regex = prepare_cors_settings(["https://one.test"])

    assert origins == ["https://one.test"]
    assert regex is None


@pytest.mark.parametrize(
    "raw, default, expected",
    [
        (None, False, False),
        ("", True, True),
        ("true", False, True),
        (" Yes ", False, True),
        ("1", False, True),
        ("off", True, False),
        ("nope", True, False),
    ],
)
def test_parse_bool(raw, default, expected):
    assert _parse_bool(raw, default=default) is expected


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://db.test/schools")
    monkeypatch.setenv("CORS_ORIGINS", "https://app.test/, https://admin.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("SQL_ECHO", "true")
    monkeypatch.setenv("AUTO_CREATE_TABLES", "false")
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "schools-test")

    settings = load_settings()

    assert settings.database_url == "postgresql+psycopg://db.test/schools"
    assert settings.cors_origins == ["https://app.test", "https://admin.test"]
    assert settings.log_level == "DEBUG"
    assert settings.sql_echo is True
    assert settings.auto_create_tables is False
    assert settings.firebase_project_id == "schools-test"


def test_load_settings_defaults(monkeypatch):
    for name in ("DATABASE_URL", "CORS_ORIGINS", "LOG_LEVEL", "SQL_ECHO", "AUTO_CREATE_TABLES"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.database_url is None
    assert settings.cors_origins == ["*"]
    assert settings.log_level == "INFO"
    assert settings.sql_echo is False
    assert settings.auto_create_tables is True
