"""Settings for the subscriber."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    broker_backend: str = Field("rabbitmq", validation_alias="BROKER_BACKEND")
    broker_host: str = Field("localhost", validation_alias="BROKER_HOST")
    broker_port: int = Field(5672, validation_alias="BROKER_PORT")
    broker_user: str = Field("guest", validation_alias="BROKER_USER")
    broker_password: str = Field("guest", validation_alias="BROKER_PASSWORD")
    broker_vhost: str = Field("/", validation_alias="BROKER_VHOST")
    prefetch_count: int = Field(1, validation_alias="PREFETCH_COUNT")

    # Empty queue name means "generate one".
    queue_name: str = Field("", validation_alias="QUEUE_NAME")
    exchange: str = Field("", validation_alias="EXCHANGE")
    routing_key: str = Field("", validation_alias="ROUTING_KEY")
    queue_durable: bool = Field(False, validation_alias="QUEUE_DURABLE")
    queue_auto_delete: bool = Field(True, validation_alias="QUEUE_AUTO_DELETE")

    # 0 keeps receiving until a shutdown signal arrives.
    expected_messages: int = Field(1, validation_alias="EXPECTED_MESSAGES")
    receive_timeout_seconds: float = Field(30.0, validation_alias="RECEIVE_TIMEOUT_SECONDS")

    initial_backoff_seconds: float = Field(1.0, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(30.0, validation_alias="MAX_BACKOFF_SECONDS")
    max_connection_attempts: int = Field(5, validation_alias="MAX_CONNECTION_ATTEMPTS")
    backoff_multiplier: float = Field(2.0, validation_alias="BACKOFF_MULTIPLIER")
