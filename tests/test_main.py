"""Tests for the command line sender in main.py."""

import pytest

from main import build_parser, main
from zabbix_sender.collector import reject_all
from zabbix_sender.models import Metric


@pytest.fixture(autouse=True)
def _isolated_env(clean_env):
    pass


class TestBuildParser:
    def test_short_options(self):
        args = build_parser().parse_args(
            ["-z", "zbx", "-p", "10052", "-s", "web01", "-k", "cpu.load", "-o", "0.5"]
        )
        assert args.server == "zbx"
        assert args.port == 10052
        assert (args.host, args.key, args.value) == ("web01", "cpu.load", "0.5")
        assert args.with_timestamps is False


class TestMain:
    def test_single_metric(self, start_collector, capsys):
        collector, port = start_collector()
        code = main(["-z", "127.0.0.1", "-p", str(port), "-s", "web01", "-k", "cpu.load", "-o", "0.5"])

        assert code == 0
        assert collector.requests == [[Metric("web01", "cpu.load", "0.5")]]
        assert "Processed 1 Failed 0 Total 1" in capsys.readouterr().out

    def test_input_file_with_timestamps(self, start_collector, tmp_path):
        collector, port = start_collector()
        input_file = tmp_path / "metrics.txt"
        input_file.write_text(
            "web01 cpu.load 1700000000 0.5\n- mem.used 1700000001 1024\n",
            encoding="utf-8",
        )

        code = main([
            "-z", "127.0.0.1", "-p", str(port), "-s", "web02",
            "-i", str(input_file), "-T",
        ])

        assert code == 0
        assert collector.requests == [[
            Metric("web01", "cpu.load", "0.5", 1700000000),
            Metric("web02", "mem.used", "1024", 1700000001),
        ]]

    def test_yaml_config(self, start_collector, tmp_path):
        collector, port = start_collector()
        config_file = tmp_path / "sender.yaml"
        config_file.write_text(
            f"sender:\n  server_host: 127.0.0.1\n  server_port: {port}\n",
            encoding="utf-8",
        )

        code = main(["--config", str(config_file), "-s", "h", "-k", "k", "-o", "1"])

        assert code == 0
        assert len(collector.requests) == 1

    def test_rejected_batch(self, start_collector, capsys):
        _, port = start_collector(responder=reject_all)
        code = main(["-z", "127.0.0.1", "-p", str(port), "-s", "h", "-k", "k", "-o", "1"])
        assert code == 1
        assert "rejected" in capsys.readouterr().err

    def test_missing_metric_arguments(self, capsys):
        code = main(["-z", "127.0.0.1", "-s", "h"])
        assert code == 1
        assert "--input-file" in capsys.readouterr().err

    def test_connection_refused(self, capsys):
        code = main(["-z", "127.0.0.1", "-p", "1", "-s", "h", "-k", "k", "-o", "1"])
        assert code == 1
        assert "Error" in capsys.readouterr().err

    def test_missing_input_file(self, tmp_path, capsys):
        code = main(["-z", "127.0.0.1", "-i", str(tmp_path / "nope.txt")])
        assert code == 1
        assert "Error" in capsys.readouterr().err
