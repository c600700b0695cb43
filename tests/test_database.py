from sqlalchemy import text

from database import build_engine, normalize_url


class TestDatabaseUrl:
    def test_rewrites_heroku_style_postgres_url(self):
        assert normalize_url("postgres://u:p@host:5432/shop") == "postgresql://u:p@host:5432/shop"

    def test_leaves_other_urls_alone(self):
        for url in ("postgresql://u@host/shop", "sqlite:///./storefront.db"):
            assert normalize_url(url) == url


class TestBuildEngine:
    def test_builds_sqlite_engine(self):
        engine = build_engine("sqlite://")
        try:
            with engine.connect() as conn:
                assert conn.execute(text("select 1")).scalar() == 1
        finally:
            engine.dispose()
