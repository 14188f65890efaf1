from pydantic import BaseModel


class PersistenceConfig(BaseModel):
    """Configuration for the persistence API client."""

    base_url: str = "http://localhost:3000"
    api_token: str = ""
    timeout_seconds: float = 10.0
    max_connections: int = 20
    max_keepalive_connections: int = 10
    max_retries: int = 3
    retry_backoff_seconds: float = 1.0
