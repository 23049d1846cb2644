"""Logfire observability for the Digital Library lending engine."""

import functools
import inspect
import logging
import os
from collections.abc import Callable
from datetime import datetime
from typing import Any

import logfire
from pydantic import BaseModel, Field

from .errors import LibraryError

logger = logging.getLogger(__name__)


class ObservabilityConfig(BaseModel):
    """Configuration for Logfire observability."""

    token: str = Field(default_factory=lambda: os.getenv("LOGFIRE_TOKEN", ""))
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))

    enabled: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_ENABLED", "true").lower() == "true"
    )
    console_output: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_CONSOLE", "false").lower() == "true"
    )
    send_to_logfire: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_SEND", "false").lower() == "true"
    )


def initialize_observability(config: ObservabilityConfig | None = None) -> ObservabilityConfig:
    """Configure Logfire once at server start."""
    config = config or ObservabilityConfig()

    if not config.enabled:
        logger.debug("Observability disabled via configuration")
        return config

    logfire.configure(
        token=config.token or None,
        environment=config.environment,
        send_to_logfire=config.send_to_logfire,
        console=None if config.console_output else False,
    )
    return config


def trace_workflow(name: str):
    """
    Wrap a service operation in a ``workflow.<name>`` span.

    Business rejections are recorded as ``workflow.rejected`` with their
    reason code; anything else is recorded as an error. Both re-raise.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            arguments = signature.bind(*args, **kwargs).arguments
            arguments.pop("self", None)
            with logfire.span(f"workflow.{name}", workflow=name) as span:
                _add_attributes(span, "input", arguments)
                try:
                    result = func(*args, **kwargs)
                except LibraryError as e:
                    span.set_attribute("workflow.success", False)
                    span.set_attribute("workflow.rejected", e.reason)
                    raise
                except Exception as e:
                    span.set_attribute("workflow.success", False)
                    span.set_attribute("workflow.error", str(e))
                    raise
                span.set_attribute("workflow.success", True)
                return result

        return wrapper

    return decorator


def trace_tool(tool_name: str):
    """Decorator to trace MCP tool execution."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(arguments: dict[str, Any]):
            with logfire.span(f"tool.execution.{tool_name}", tool_name=tool_name) as span:
                start_time = datetime.now()
                _add_attributes(span, "input", arguments)

                result = await func(arguments)

                span.set_attribute("tool.success", not result.get("isError", False))
                span.set_attribute(
                    "tool.duration_ms", (datetime.now() - start_time).total_seconds() * 1000
                )
                return result

        return wrapper

    return decorator


def _add_attributes(span, prefix: str, data: dict):
    for key, value in data.items():
        if isinstance(value, str | int | float | bool):
            span.set_attribute(f"{prefix}.{key}", value)
