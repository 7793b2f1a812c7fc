"""Derived metric calculation.

Turns a raw stats frame into the integer CPU / memory percentages published
per sample, and extracts the host/appID labels from a container's declared
environment.
"""

from __future__ import annotations

from collections.abc import Iterable

from stats_agent.core.constants import APP_ID_ENV_KEY, HOST_ENV_KEY, SENTINEL_LABEL
from stats_agent.core.schemas import ContainerDescriptor, MetricDocument, RawStatsSample


def calculate_cpu_percent(cpu_delta: int, system_delta: int, num_cpus: int) -> int:
    """CPU utilization of a container over one sampling period.

    Returns ``floor(cpu_delta / system_delta * num_cpus * 100)``, or 0 unless
    both deltas are strictly positive. Integer arithmetic keeps the floor exact.
    """
    if cpu_delta <= 0 or system_delta <= 0 or num_cpus <= 0:
        return 0
    return (cpu_delta * num_cpus * 100) // system_delta


def calculate_memory_percent(usage: int, limit: int) -> int:
    """Memory usage as a truncated percentage of the limit.

    A zero limit (runtime reported no limit) yields 0.
    """
    if limit <= 0:
        return 0
    return (usage * 100) // limit


def sample_cpu_count(sample: RawStatsSample) -> int:
    """Number of logical CPUs the sample's counters cover.

    The per-CPU usage list length is authoritative; cgroup v2 runtimes omit
    that list, in which case ``online_cpus`` is used.
    """
    return sample.percpu_count or sample.online_cpus


def cpu_percent_from_sample(sample: RawStatsSample) -> int:
    """Calculate CPU percentage from the current/previous pair in a sample."""
    cpu_delta = sample.cpu_total_usage - sample.precpu_total_usage
    system_delta = sample.system_cpu_usage - sample.presystem_cpu_usage
    return calculate_cpu_percent(cpu_delta, system_delta, sample_cpu_count(sample))


def memory_percent_from_sample(sample: RawStatsSample) -> int:
    return calculate_memory_percent(sample.memory_usage, sample.memory_limit)


def extract_labels(
    env: Iterable[str],
    app_id_key: str = APP_ID_ENV_KEY,
    host_key: str = HOST_ENV_KEY,
) -> tuple[str, str]:
    """Extract the (host, app_id) labels from 'KEY=VALUE' environment strings.

    The first entry for each key wins. The app id is stripped of surrounding
    slashes and whitespace (Marathon ids look like '/group/app'); the host
    value is used verbatim. Missing keys yield the sentinel '-'.

    Args:
        env: Container environment in declaration order
        app_id_key: Key holding the application identifier
        host_key: Key holding the host label

    Returns:
        Tuple of (host, app_id)
    """
    app_prefix = f"{app_id_key}="
    host_prefix = f"{host_key}="
    host: str | None = None
    app_id: str | None = None

    for entry in env:
        if app_id is None and entry.startswith(app_prefix):
            app_id = entry[len(app_prefix) :].strip("/ \t\r\n")
        elif host is None and entry.startswith(host_prefix):
            host = entry[len(host_prefix) :]

    return (
        host if host is not None else SENTINEL_LABEL,
        app_id if app_id is not None else SENTINEL_LABEL,
    )


def build_metric_document(descriptor: ContainerDescriptor, sample: RawStatsSample) -> MetricDocument:
    """Assemble the metric document for one sample of a container."""
    return MetricDocument(
        host=descriptor.host,
        app_id=descriptor.app_id,
        name=descriptor.name,
        container_id=descriptor.id,
        cpu_percent=cpu_percent_from_sample(sample),
        mem_usage=sample.memory_usage,
        mem_limit=sample.memory_limit,
        max_mem_usage=sample.memory_max_usage,
        mem_percent=memory_percent_from_sample(sample),
    )
