import os


def _split_csv(value):
    """Split a comma-separated env value into a list of trimmed, non-empty items."""
    return [item.strip().lower() for item in (value or "").split(",") if item.strip()]


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    # --- Domain routing ---
    # First-party hostnames. Exact match or any subdomain of these is served
    # by the builder app itself; every other host is a tenant custom domain.
    APP_DOMAINS = _split_csv(
        os.environ.get("APP_DOMAINS", "localhost,127.0.0.1")
    )

    # --- Public site rendering ---
    SITE_CACHE_TTL = int(os.environ.get("SITE_CACHE_TTL", 60))  # seconds, 0 = off
    PUBLIC_SITE_URL = os.environ.get("PUBLIC_SITE_URL", "http://localhost:5000")
    DEFAULT_SITE_TITLE = os.environ.get("DEFAULT_SITE_TITLE", "Site")
    DEFAULT_LOCALE = os.environ.get("DEFAULT_LOCALE", "he_IL")

    # --- Supabase ---
    SUPABASE_URL = os.environ.get("SUPABASE_URL")            # e.g. https://xyz.supabase.co
    SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY")  # used to validate bearer tokens

    # --- Hosting provider (custom domains) ---
    VERCEL_API_URL = os.environ.get("VERCEL_API_URL", "https://api.vercel.com")
    VERCEL_TOKEN = os.environ.get("VERCEL_TOKEN")
    VERCEL_PROJECT_ID = os.environ.get("VERCEL_PROJECT_ID")
    VERCEL_TEAM_ID = os.environ.get("VERCEL_TEAM_ID")  # only for team accounts

    # --- DNS verification ---
    DNS_RESOLVER_URL = os.environ.get(
        "DNS_RESOLVER_URL", "https://cloudflare-dns.com/dns-query"
    )
    DOMAIN_EXPECTED_A_RECORD = os.environ.get(
        "DOMAIN_EXPECTED_A_RECORD", "185.158.133.1"
    )
    DOMAIN_TXT_PREFIX = os.environ.get("DOMAIN_TXT_PREFIX", "_sitepress")

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
            "APP_DOMAINS",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI or "sqlite:///sitepress-dev.db"


class TestConfig(Config):
    """Testing — in-memory SQLite, outbound services faked."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    APP_DOMAINS = ["localhost", "127.0.0.1", "sitepress.test"]
    SITE_CACHE_TTL = 0  # tests opt in to caching explicitly
    PUBLIC_SITE_URL = "https://sitepress.test"
    SUPABASE_URL = "https://supabase.test"
    SUPABASE_ANON_KEY = "anon-test-key"
    VERCEL_TOKEN = "vercel-test-token"
    VERCEL_PROJECT_ID = "prj_test"
    VERCEL_TEAM_ID = None
    RATELIMIT_ENABLED = False  # disable rate limiting in tests

    @staticmethod
    def validate():
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
