"""CLI for the container stats agent.

Provides a command-line interface using Typer for:
- Running the monitoring agent
- Listing running containers with their derived labels
- Inspecting the metric document of a single stats sample
- Generating a sample configuration file

Sink settings fall back to the LOGGER_ADDR / LOGGER_INDEX environment
variables, so the agent runs unchanged as a container with only env config.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stats_agent.core.config import AgentConfig, config_from_env, load_config
from stats_agent.core.constants import (
    ENV_DOCKER_URL,
    ENV_INDEX_PREFIX,
    ENV_LOG_LEVEL,
    ENV_SINK_ADDRESS,
)
from stats_agent.core.errors import ConfigurationError, StatsAgentError
from stats_agent.core.schemas import RawStatsSample
from stats_agent.monitoring.metrics import build_metric_document, extract_labels
from stats_agent.monitoring.supervisor import MonitoringSupervisor
from stats_agent.publishing.publisher import HttpMetricPublisher
from stats_agent.runtime.discovery import DockerDiscoveryClient
from stats_agent.utils.logging import setup_logging

app = typer.Typer(
    name="stats-agent",
    help="Container stats agent",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)


def _default_log_level() -> str:
    return "DEBUG" if os.environ.get(ENV_LOG_LEVEL, "").lower() == "debug" else "INFO"


def _resolve_config(
    config_path: Path | None,
    sink: str | None = None,
    index: str | None = None,
    docker_url: str | None = None,
    log_level: str | None = None,
) -> AgentConfig:
    """Merge config file, environment and CLI options (highest priority)."""
    environ = dict(os.environ)
    if sink:
        environ[ENV_SINK_ADDRESS] = sink
    if index:
        environ[ENV_INDEX_PREFIX] = index
    if docker_url:
        environ[ENV_DOCKER_URL] = docker_url

    if config_path is not None:
        config = load_config(config_path, environ)
    else:
        config = config_from_env(environ)

    if log_level:
        try:
            config = AgentConfig.model_validate({**config.model_dump(), "log_level": log_level})
        except ValidationError as e:
            raise ConfigurationError(f"invalid log level {log_level!r}") from e
    return config


@app.command()
def run(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to agent configuration file (YAML/JSON)"
    ),
    sink: str | None = typer.Option(
        None, "--sink", "-s", envvar=ENV_SINK_ADDRESS, help="Metrics sink address (host:port)"
    ),
    index: str | None = typer.Option(
        None, "--index", "-i", envvar=ENV_INDEX_PREFIX, help="Index name prefix"
    ),
    docker_url: str | None = typer.Option(
        None, "--docker-url", envvar=ENV_DOCKER_URL, help="Docker daemon URL"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Logging level"),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file in addition to console"
    ),
    json_logs: bool = typer.Option(
        False, "--json-logs", help="Output logs in JSON format (for programmatic parsing)"
    ),
) -> None:
    """Run the monitoring agent until interrupted."""
    level = (log_level or _default_log_level()).upper()
    if not isinstance(logging.getLevelName(level), int):
        # rejected below by config validation
        level = "INFO"
    setup_logging(level=level, log_file=log_file, json_format=json_logs, rich_console=not json_logs)

    try:
        agent_config = _resolve_config(config, sink, index, docker_url, log_level)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.critical(str(e))
        raise typer.Exit(1) from e

    if agent_config.log_level != level:
        setup_logging(
            level=agent_config.log_level,
            log_file=log_file,
            json_format=json_logs,
            rich_console=not json_logs,
        )

    discovery = DockerDiscoveryClient(docker_url=agent_config.docker_url)
    publisher = HttpMetricPublisher(
        agent_config.sink_address,
        index_prefix=agent_config.index_prefix,
        timeout_seconds=agent_config.publish_timeout_seconds,
    )
    supervisor = MonitoringSupervisor.from_config(agent_config, discovery, publisher)

    logger.info(f"setup metrics client to {agent_config.sink_address}")
    if not discovery.ping():
        logger.warning("Docker daemon is not reachable yet, retrying on every poll")

    try:
        supervisor.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    finally:
        discovery.close()


@app.command()
def containers(
    docker_url: str | None = typer.Option(
        None, "--docker-url", envvar=ENV_DOCKER_URL, help="Docker daemon URL"
    ),
) -> None:
    """List running containers and the labels their metrics would carry."""
    setup_logging(level=_default_log_level())
    discovery = DockerDiscoveryClient(docker_url=docker_url)

    try:
        container_ids = discovery.list_running_containers()
    except StatsAgentError as e:
        console.print(f"[bold red]Error listing containers: {e}[/]")
        raise typer.Exit(1) from e

    table = Table(title="Running Containers")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Host")
    table.add_column("App ID")

    try:
        for container_id in container_ids:
            try:
                descriptor = discovery.inspect_container(container_id)
            except StatsAgentError as e:
                console.print(f"[yellow]Skipping {container_id[:12]}: {e}[/]")
                continue
            host, app_id = extract_labels(descriptor.env)
            table.add_row(descriptor.short_id, descriptor.name, host, app_id)
    finally:
        discovery.close()

    console.print(table)


@app.command()
def sample(
    container_id: str = typer.Argument(..., help="Container ID or name"),
    docker_url: str | None = typer.Option(
        None, "--docker-url", envvar=ENV_DOCKER_URL, help="Docker daemon URL"
    ),
) -> None:
    """Read one stats sample and print the derived metric document (not published)."""
    setup_logging(level=_default_log_level())
    discovery = DockerDiscoveryClient(docker_url=docker_url)

    try:
        descriptor = discovery.inspect_container(container_id)
        host, app_id = extract_labels(descriptor.env)
        descriptor = descriptor.model_copy(update={"host": host, "app_id": app_id})

        stream = discovery.stream_stats(container_id)
        try:
            frame = next(stream, None)
        finally:
            stream.close()
    except StatsAgentError as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise typer.Exit(1) from e
    finally:
        discovery.close()

    if frame is None:
        console.print("[bold yellow]Stats stream ended without a sample[/]")
        raise typer.Exit(1)

    try:
        raw = RawStatsSample.from_docker_stats(frame)
    except ValidationError as e:
        console.print(f"[bold red]Error: malformed stats sample: {escape(str(e))}[/]")
        raise typer.Exit(1) from e

    document = build_metric_document(descriptor, raw)
    console.print_json(json.dumps(document.model_dump(by_alias=True)))


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("stats-agent.yaml"), "--output", "-o", help="Output configuration file"
    ),
) -> None:
    """Generate a sample configuration file."""
    sample_config = """\
# Container stats agent configuration
# LOGGER_ADDR / LOGGER_INDEX / LOG_LEVEL environment variables override these values.

# Metrics sink (Elasticsearch / Logstash HTTP endpoint)
sink_address: "localhost:9200"
index_prefix: "logstash-docker"

# Seconds between two container discovery passes
poll_interval_seconds: 5

# Timeout of one metric POST
publish_timeout_seconds: 10

# Docker daemon; omit to use DOCKER_HOST or the default socket
# docker_url: "unix:///var/run/docker.sock"

# Container environment keys the appID / host labels are read from
app_id_env_key: "MARATHON_APP_ID"
host_env_key: "HOST"

log_level: "INFO"
"""

    if output.exists():
        console.print(f"[bold yellow]{output} already exists, not overwriting[/]")
        raise typer.Exit(1)

    output.write_text(sample_config)
    console.print(f"[bold green]Created sample configuration: {output}[/]")


@app.command()
def show_config(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to agent configuration file (YAML/JSON)"
    ),
) -> None:
    """Validate and display the effective configuration."""
    try:
        agent_config = _resolve_config(config)
    except (ConfigurationError, FileNotFoundError) as e:
        console.print(f"[bold red]Error loading config: {e}[/]")
        raise typer.Exit(1) from e

    table = Table(title="Agent Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in agent_config.model_dump().items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


if __name__ == "__main__":
    app()
