import os


class ConfigError(RuntimeError):
    pass


def get_secret(secret_name: str) -> str | None:
    secret_path = f'/run/secrets/{secret_name}'
    try:
        with open(secret_path, 'r', encoding='utf-8') as secret_file:
            return secret_file.read().strip()
    except IOError:
        return os.getenv(secret_name)


def _build_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    user = os.getenv("POSTGRES_USER")
    password = get_secret("db_password")
    db_name = os.getenv("POSTGRES_DB")
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    if user and password and db_name:
        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}"
    raise ConfigError("Can't build DATABASE_URL: set DATABASE_URL or POSTGRES_USER/db_password/POSTGRES_DB")


DATABASE_URL = _build_database_url()
SECRET_KEY = get_secret('secret_key')
REDIS_URL = os.getenv("REDIS_URL")

ALGORITHM = "HS256"
JWT_ISSUER = os.getenv("JWT_ISSUER", "boxoffice-auth")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "boxoffice-api")

# Upper bound on tickets issued by a single purchase request
MAX_TICKETS_PER_RESERVATION = int(os.getenv("MAX_TICKETS_PER_RESERVATION", "10"))
RESERVATION_MAX_ATTEMPTS = int(os.getenv("RESERVATION_MAX_ATTEMPTS", "3"))
TICKET_NUMBER_LENGTH = int(os.getenv("TICKET_NUMBER_LENGTH", "12"))

AUDIT_STREAM = os.getenv("AUDIT_STREAM", "audit:boxoffice")
