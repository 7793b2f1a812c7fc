"""Tests for DockerDiscoveryClient."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from docker.errors import APIError, DockerException, NotFound

from stats_agent.core.errors import (
    ContainerNotFoundError,
    QueryError,
    RuntimeConnectionError,
    StreamError,
)
from stats_agent.runtime.discovery import DockerDiscoveryClient


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


class TestListRunningContainers:
    """Tests for listing running containers."""

    def test_returns_ids(self, client) -> None:
        client.api.containers.return_value = [{"Id": "aaa"}, {"Id": "bbb"}]
        discovery = DockerDiscoveryClient(client=client)

        assert discovery.list_running_containers() == ["aaa", "bbb"]
        client.api.containers.assert_called_once_with(filters={"status": "running"})

    def test_connection_error(self, client) -> None:
        client.api.containers.side_effect = requests.ConnectionError("socket missing")
        discovery = DockerDiscoveryClient(client=client)

        with pytest.raises(RuntimeConnectionError):
            discovery.list_running_containers()

    def test_api_error(self, client) -> None:
        client.api.containers.side_effect = APIError("500 Server Error")
        discovery = DockerDiscoveryClient(client=client)

        with pytest.raises(QueryError):
            discovery.list_running_containers()

    def test_client_creation_failure(self) -> None:
        with patch("stats_agent.runtime.discovery.docker.from_env") as from_env:
            from_env.side_effect = DockerException("Error while fetching server API version")
            discovery = DockerDiscoveryClient()

            with pytest.raises(RuntimeConnectionError):
                discovery.list_running_containers()

    def test_explicit_url(self) -> None:
        with patch("stats_agent.runtime.discovery.docker.DockerClient") as docker_client:
            discovery = DockerDiscoveryClient(docker_url="unix:///run/docker.sock")
            assert discovery.client is docker_client.return_value
            docker_client.assert_called_once_with(base_url="unix:///run/docker.sock")


class TestInspectContainer:
    """Tests for inspecting a container."""

    def test_descriptor(self, client) -> None:
        client.api.inspect_container.return_value = {
            "Id": "aaa111",
            "Name": "/web-1",
            "Config": {"Env": ["MARATHON_APP_ID=/foo", "HOST=bar"]},
        }
        discovery = DockerDiscoveryClient(client=client)

        descriptor = discovery.inspect_container("aaa111")

        assert descriptor.id == "aaa111"
        assert descriptor.name == "/web-1"
        assert descriptor.env == ["MARATHON_APP_ID=/foo", "HOST=bar"]
        # labels are extracted by the supervisor
        assert descriptor.host == "-"
        assert descriptor.app_id == "-"

    def test_null_env(self, client) -> None:
        client.api.inspect_container.return_value = {"Id": "aaa", "Name": "/x", "Config": {"Env": None}}
        discovery = DockerDiscoveryClient(client=client)

        assert discovery.inspect_container("aaa").env == []

    def test_not_found(self, client) -> None:
        client.api.inspect_container.side_effect = NotFound("No such container")
        discovery = DockerDiscoveryClient(client=client)

        with pytest.raises(ContainerNotFoundError) as exc_info:
            discovery.inspect_container("gone")
        assert exc_info.value.container_id == "gone"

    def test_not_found_is_query_error(self, client) -> None:
        client.api.inspect_container.side_effect = NotFound("No such container")
        discovery = DockerDiscoveryClient(client=client)

        with pytest.raises(QueryError):
            discovery.inspect_container("gone")

    def test_api_error(self, client) -> None:
        client.api.inspect_container.side_effect = APIError("boom")
        discovery = DockerDiscoveryClient(client=client)

        with pytest.raises(QueryError):
            discovery.inspect_container("aaa")


class TestStreamStats:
    """Tests for the stats stream."""

    def test_yields_frames(self, client) -> None:
        client.api.stats.return_value = iter([{"n": 1}, {"n": 2}])
        discovery = DockerDiscoveryClient(client=client)

        assert list(discovery.stream_stats("aaa")) == [{"n": 1}, {"n": 2}]
        client.api.stats.assert_called_once_with("aaa", stream=True, decode=True)

    def test_lazy(self, client) -> None:
        discovery = DockerDiscoveryClient(client=client)

        discovery.stream_stats("aaa")

        client.api.stats.assert_not_called()

    def test_break_mid_stream(self, client) -> None:
        def frames():
            yield {"n": 1}
            raise requests.exceptions.ChunkedEncodingError("connection broken")

        client.api.stats.return_value = frames()
        discovery = DockerDiscoveryClient(client=client)

        received = []
        with pytest.raises(StreamError) as exc_info:
            for frame in discovery.stream_stats("aaa"):
                received.append(frame)

        assert received == [{"n": 1}]
        assert exc_info.value.container_id == "aaa"
        assert "connection broken" in exc_info.value.reason

    def test_open_fails(self, client) -> None:
        client.api.stats.side_effect = NotFound("No such container")
        discovery = DockerDiscoveryClient(client=client)

        with pytest.raises(StreamError):
            list(discovery.stream_stats("aaa"))


class TestPing:
    """Tests for the daemon health check."""

    def test_ping_ok(self, client) -> None:
        client.ping.return_value = True
        assert DockerDiscoveryClient(client=client).ping() is True

    def test_ping_fails(self, client) -> None:
        client.ping.side_effect = requests.ConnectionError("refused")
        assert DockerDiscoveryClient(client=client).ping() is False

    def test_close(self, client) -> None:
        discovery = DockerDiscoveryClient(client=client)
        discovery.close()
        client.close.assert_called_once()
