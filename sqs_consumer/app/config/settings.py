from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    queue_url: str = Field(..., validation_alias="QUEUE_URL")
    queue_backend: str = Field("sqs", validation_alias="QUEUE_BACKEND")
    consumer_strategy: str = Field("pooled", validation_alias="CONSUMER_STRATEGY")

    num_workers: int = Field(10, ge=1, validation_alias="NUM_WORKERS")
    message_pool_size: int = Field(100, ge=1, validation_alias="MESSAGE_POOL_SIZE")

    receive_wait_seconds: int = Field(15, ge=0, le=20, validation_alias="RECEIVE_WAIT_SECONDS")
    receive_max_messages: int = Field(10, ge=1, le=10, validation_alias="RECEIVE_MAX_MESSAGES")
    poll_interval_seconds: float = Field(0.001, ge=0, validation_alias="POLL_INTERVAL_SECONDS")

    # Applies to both receive and ack retries. MAX_ACK_ATTEMPTS=0 retries transient ack failures forever.
    retry_delay_seconds: float = Field(1.0, ge=0, validation_alias="RETRY_DELAY_SECONDS")
    retry_backoff_multiplier: float = Field(1.0, ge=1.0, le=10.0, validation_alias="RETRY_BACKOFF_MULTIPLIER")
    max_retry_delay_seconds: float = Field(30.0, ge=0, validation_alias="MAX_RETRY_DELAY_SECONDS")
    max_ack_attempts: int = Field(0, ge=0, validation_alias="MAX_ACK_ATTEMPTS")

    handler_path: str = Field("", validation_alias="HANDLER_PATH")
    handler_decorators: str = Field("", validation_alias="HANDLER_DECORATORS")

    aws_region: str = Field("us-east-1", validation_alias="AWS_REGION")
    sqs_endpoint_url: str = Field("", validation_alias="SQS_ENDPOINT_URL")
    sqs_connect_timeout_seconds: float = Field(3.0, gt=0, validation_alias="SQS_CONNECT_TIMEOUT_SECONDS")
    sqs_read_timeout_seconds: float = Field(30.0, gt=0, validation_alias="SQS_READ_TIMEOUT_SECONDS")
    sqs_client_max_attempts: int = Field(3, ge=1, validation_alias="SQS_CLIENT_MAX_ATTEMPTS")
    inmemory_visibility_timeout: int = Field(30, ge=0, validation_alias="INMEMORY_VISIBILITY_TIMEOUT")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_serialize: bool = Field(False, validation_alias="LOG_SERIALIZE")
