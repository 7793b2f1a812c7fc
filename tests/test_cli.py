"""Tests for the stats agent CLI."""

from unittest.mock import patch

from typer.testing import CliRunner

from stats_agent.cli import app
from stats_agent.core.schemas import ContainerDescriptor

runner = CliRunner()


class TestRunCommand:
    """Tests for the run command."""

    def test_missing_sink_address_exits(self, monkeypatch) -> None:
        monkeypatch.delenv("LOGGER_ADDR", raising=False)

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 1

    def test_starts_supervisor(self, monkeypatch) -> None:
        monkeypatch.setenv("LOGGER_ADDR", "es.local:9200")

        with (
            patch("stats_agent.cli.DockerDiscoveryClient") as discovery_cls,
            patch("stats_agent.cli.MonitoringSupervisor") as supervisor_cls,
        ):
            discovery_cls.return_value.ping.return_value = True
            result = runner.invoke(app, ["run", "--index", "metrics"])

        assert result.exit_code == 0
        supervisor_cls.from_config.return_value.run_forever.assert_called_once()
        config = supervisor_cls.from_config.call_args.args[0]
        assert config.sink_address == "es.local:9200"
        assert config.index_prefix == "metrics"
        discovery_cls.return_value.close.assert_called_once()

    def test_invalid_log_level_exits(self, monkeypatch) -> None:
        monkeypatch.setenv("LOGGER_ADDR", "es.local:9200")

        with patch("stats_agent.cli.MonitoringSupervisor") as supervisor_cls:
            result = runner.invoke(app, ["run", "--log-level", "loud"])

        assert result.exit_code == 1
        supervisor_cls.from_config.assert_not_called()


class TestContainersCommand:
    """Tests for the containers listing."""

    def test_lists_labels(self) -> None:
        with patch("stats_agent.cli.DockerDiscoveryClient") as discovery_cls:
            discovery = discovery_cls.return_value
            discovery.list_running_containers.return_value = ["abc123"]
            discovery.inspect_container.return_value = ContainerDescriptor(
                id="abc123", name="/web-1", env=["MARATHON_APP_ID=/shop/", "HOST=node-7"]
            )
            result = runner.invoke(app, ["containers"])

        assert result.exit_code == 0
        assert "web-1" in result.output
        assert "shop" in result.output
        assert "node-7" in result.output


class TestConfigCommands:
    """Tests for config helper commands."""

    def test_init_config(self, tmp_path) -> None:
        output = tmp_path / "agent.yaml"

        result = runner.invoke(app, ["init-config", "--output", str(output)])

        assert result.exit_code == 0
        assert "sink_address" in output.read_text()

    def test_init_config_does_not_overwrite(self, tmp_path) -> None:
        output = tmp_path / "agent.yaml"
        output.write_text("keep me")

        result = runner.invoke(app, ["init-config", "--output", str(output)])

        assert result.exit_code == 1
        assert output.read_text() == "keep me"

    def test_show_config(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("LOGGER_ADDR", raising=False)
        monkeypatch.delenv("LOGGER_INDEX", raising=False)
        output = tmp_path / "agent.yaml"
        runner.invoke(app, ["init-config", "--output", str(output)])

        result = runner.invoke(app, ["show-config", "--config", str(output)])

        assert result.exit_code == 0
        assert "localhost:9200" in result.output


class TestSampleCommand:
    """Tests for the one-off sample command."""

    def run_sample(self, frame):
        with patch("stats_agent.cli.DockerDiscoveryClient") as discovery_cls:
            discovery = discovery_cls.return_value
            discovery.inspect_container.return_value = ContainerDescriptor(
                id="abc123", name="/web-1", env=["MARATHON_APP_ID=/shop/", "HOST=node-7"]
            )
            discovery.stream_stats.return_value = (f for f in [frame])
            result = runner.invoke(app, ["sample", "abc123"])
        discovery.close.assert_called_once()
        return result

    def test_prints_document(self, stats_frame) -> None:
        result = self.run_sample(stats_frame())

        assert result.exit_code == 0
        assert '"cpuPercent": 40' in result.output
        assert '"appID": "shop"' in result.output

    def test_malformed_sample_exits(self, stats_frame) -> None:
        frame = stats_frame()
        frame["memory_stats"]["usage"] = -5

        result = self.run_sample(frame)

        assert result.exit_code == 1
        assert "malformed stats sample" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
