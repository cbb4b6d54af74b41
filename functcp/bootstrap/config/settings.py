from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from functcp.bootstrap.config.loader import get_configfile
from functcp.core.models.config import (
    DEFAULT_MAX_MESSAGE_SIZE,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_WORKER_COUNT,
    MAX_PORT,
    MIN_PORT,
    ServerConfig,
)
from functcp.core.transport.handler import Handler


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: Annotated[
        str,
        Field(
            description="Bind address of the listening socket.",
            default="127.0.0.1"
        )
    ]

    port: Annotated[
        int,
        Field(
            description="TCP port to listen on. 0 lets the OS pick a free port.",
            default=0,
            ge=MIN_PORT,
            le=MAX_PORT,
        )
    ]

    worker_count: Annotated[
        int,
        Field(
            description=(
                "Number of threads serving accepted connections.\n"
                "Fixed for the lifetime of a running server."
            ),
            default=DEFAULT_WORKER_COUNT,
            gt=0,
        )
    ]

    read_timeout: Annotated[
        float,
        Field(
            description=(
                "Seconds a worker waits for a request before closing the\n"
                "connection and returning its thread to the pool."
            ),
            default=DEFAULT_READ_TIMEOUT,
            gt=0,
        )
    ]

    backlog: Annotated[
        int,
        Field(
            description="Maximum number of pending TCP connections.",
            default=128,
            ge=0,
        )
    ]

    limit_concurrency: Annotated[
        int | None,
        Field(
            description=(
                "Maximum number of accepted connections queued or being served.\n"
                "Connections above this limit are closed immediately.\n"
                "Defaults to 1024, or to worker_count when that is larger."
            ),
            default=None,
            gt=0,
        )
    ]

    max_message_size: Annotated[
        int,
        Field(
            description="Maximum allowed size for a single encoded request or reply.",
            default=DEFAULT_MAX_MESSAGE_SIZE,
            gt=0,
        )
    ]

    poll_interval: Annotated[
        float,
        Field(
            description="How often the accept loop checks for a shutdown request.",
            default=0.5,
            gt=0,
        )
    ]

    @model_validator(mode="after")
    def validate_limits(self) -> Self:
        if self.limit_concurrency is not None and self.limit_concurrency < self.worker_count:
            raise ValueError(
                f"limit_concurrency ({self.limit_concurrency}) must be at least "
                f"worker_count ({self.worker_count})"
            )
        return self


class FuncTCPConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FUNCTCP_",
        env_nested_delimiter="__",
        extra="forbid"
    )

    handler: Annotated[
        str,
        Field(
            description=(
                "Import path of the request handler, as 'package.module:function'.\n"
                "The function receives one decoded request and returns the reply,\n"
                "or None when no reply must be sent."
            ),
            default="functcp.bootstrap.handlers.echo:echo"
        )
    ]

    server: Annotated[
        ServerSettings,
        Field(
            description=(
                "Listening socket and worker pool configuration.\n"
                "Controls where the server listens, how many connections it\n"
                "serves concurrently and how long an idle connection is kept."
            ),
            default_factory=ServerSettings
        )
    ]

    @field_validator("handler")
    @classmethod
    def validate_handler(cls, v: str) -> str:
        module_name, sep, attr = v.partition(":")
        if not sep or not module_name or not attr:
            raise ValueError(f"expected 'module:function', got {v!r}")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)

        configfile = get_configfile()
        if configfile is not None:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=configfile),)

        return sources

    def get_server_config(self, handler: Handler) -> ServerConfig:
        server = self.server
        return ServerConfig(
            handler=handler,
            host=server.host,
            port=server.port,
            worker_count=server.worker_count,
            read_timeout=server.read_timeout,
            backlog=server.backlog,
            limit_concurrency=server.limit_concurrency,
            max_message_size=server.max_message_size,
            poll_interval=server.poll_interval,
        )
