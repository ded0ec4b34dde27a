"""Configuration settings for the transfer tracker."""

import os


def get_event_store_backend():
    """Get event log backend: 'memory' (default) or 'sql'."""
    return os.environ.get("EVENT_STORE", "memory").lower()


def get_database_uri():
    """Get database URI for the SQL event log from environment variables."""
    uri = os.environ.get("DATABASE_URL")
    if uri:
        return uri
    host = os.environ.get("DB_HOST", "localhost")
    port = 5433 if host == "localhost" else 5432
    password = os.environ.get("DB_PASSWORD", "transfers_pass")
    user = os.environ.get("DB_USER", "transfers_user")
    db_name = os.environ.get("DB_NAME", "transfers_db")
    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}"


def get_redis_host_and_port():
    """Get Redis connection details from environment variables."""
    host = os.environ.get("REDIS_HOST", "localhost")
    port = int(os.environ.get("REDIS_PORT", "6379"))
    return dict(host=host, port=port)


def get_redis_url():
    """Get Redis URL from environment variables."""
    redis_config = get_redis_host_and_port()
    return f"redis://{redis_config['host']}:{redis_config['port']}"


def get_publish_enabled():
    """Whether transfer updates are published to Redis."""
    return os.environ.get("PUBLISH_TRANSFER_EVENTS", "false").lower() == "true"


def get_transfer_events_channel():
    """Get Redis channel for transfer update notifications."""
    return os.environ.get("TRANSFER_EVENTS_CHANNEL", "transfers:updates")


def get_api_port():
    """Get port the API listens on."""
    return int(os.environ.get("API_PORT", "8000"))


def get_api_url():
    """Get API URL from environment variables."""
    host = os.environ.get("API_HOST", "localhost")
    return f"http://{host}:{get_api_port()}"


def get_log_level():
    """Get log level name from environment variables."""
    return os.environ.get("LOG_LEVEL", "INFO").upper()
