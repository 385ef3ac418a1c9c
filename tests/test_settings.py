from blogcache.settings import Settings


def test_database_connect_args_default_empty(monkeypatch) -> None:
    monkeypatch.delenv("DATABASE_CONNECT_ARGS", raising=False)

    assert Settings().database_connect_args == {}


def test_database_connect_args_from_json_env(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_CONNECT_ARGS", '{"ssl": false, "timeout": 20}')

    assert Settings().database_connect_args == {"ssl": False, "timeout": 20}


def test_async_database_url_upgrades_plain_postgres_scheme(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/blog")

    assert Settings().async_database_url == "postgresql+asyncpg://u:p@db:5432/blog"
