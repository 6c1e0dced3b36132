import pytest

from todo_api.settings import Settings, get_settings

ENV_VARS = (
    "PERSISTENCE_BACKEND",
    "SQLITE_DB_PATH",
    "CORS_ALLOW_ORIGINS",
    "USER_ID_HEADER",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestGetSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings == Settings()
        assert settings.persistence_backend == "memory"
        assert settings.cors_allow_origins == ["*"]
        assert settings.user_id_header == "X-User-Id"
        assert settings.log_format == "text"

    def test_sqlite_backend_is_normalized(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "  SQLite ")
        monkeypatch.setenv("SQLITE_DB_PATH", "/tmp/tasks.db")
        settings = get_settings()
        assert settings.persistence_backend == "sqlite"
        assert settings.sqlite_db_path == "/tmp/tasks.db"

    def test_unknown_backend_falls_back_to_memory(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "postgres")
        assert get_settings().persistence_backend == "memory"

    def test_empty_value_uses_default(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "")
        assert get_settings().persistence_backend == "memory"

    def test_unknown_log_format_falls_back_to_text(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        assert get_settings().log_format == "text"

    def test_json_log_format_and_level(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "JSON")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = get_settings()
        assert settings.log_format == "json"
        assert settings.log_level == "DEBUG"

    def test_cors_origins_are_split_and_trimmed(self, monkeypatch):
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", " https://a.example , ,https://b.example")
        assert get_settings().cors_allow_origins == ["https://a.example", "https://b.example"]

    def test_user_id_header_override(self, monkeypatch):
        monkeypatch.setenv("USER_ID_HEADER", "X-Forwarded-User")
        assert get_settings().user_id_header == "X-Forwarded-User"


def test_app_reads_caller_from_configured_header(monkeypatch):
    from fastapi.testclient import TestClient

    from todo_api.main import create_app
    from todo_api.repositories import InMemoryRepository

    monkeypatch.setenv("USER_ID_HEADER", "X-Forwarded-User")
    client = TestClient(create_app(get_settings(), repository=InMemoryRepository()))

    assert client.get("/api/v1/todos/", headers={"X-User-Id": "alice"}).status_code == 401
    res = client.post("/api/v1/todos/", json={"title": "t"}, headers={"X-Forwarded-User": "alice"})
    assert res.status_code == 201
    assert res.json()["owner_id"] == "alice"
