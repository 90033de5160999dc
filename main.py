"""zabbix-sender — submit metrics to a Zabbix server or proxy from the command line."""

import logging
import sys
from argparse import ArgumentParser

from zabbix_sender.config import load_config, load_yaml_config
from zabbix_sender.errors import SenderError
from zabbix_sender.input_file import read_input
from zabbix_sender.sender import SenderClient

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="zabbix-sender",
        description="Send metrics to a Zabbix server or proxy trapper.",
    )
    parser.add_argument("--config", help="YAML file with sender settings")
    parser.add_argument("-z", "--server", help="Collector hostname or IP")
    parser.add_argument("-p", "--port", type=int, help="Collector port (default: 10051)")
    parser.add_argument("-t", "--timeout", type=float, help="Connect timeout in seconds (default: 30)")
    parser.add_argument("--protocol-header", help="4-character message tag (default: ZBXD)")
    parser.add_argument("--protocol-version", type=int, help="Protocol version byte (default: 1)")
    parser.add_argument("-s", "--host", help="Host the metric belongs to")
    parser.add_argument("-k", "--key", help="Item key")
    parser.add_argument("-o", "--value", help="Item value")
    parser.add_argument(
        "-i",
        "--input-file",
        help="Read metrics from a file, one per line ('-' for stdin)",
    )
    parser.add_argument(
        "-T",
        "--with-timestamps",
        action="store_true",
        help="Input file lines carry a unix timestamp before the value",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def queue_metrics(client: SenderClient, args) -> int:
    """Add the metrics named on the command line or in the input file. Returns the count."""
    if args.input_file:
        if args.input_file == "-":
            metrics = list(read_input(sys.stdin, args.with_timestamps, args.host))
        else:
            with open(args.input_file, "r", encoding="utf-8") as f:
                metrics = list(read_input(f, args.with_timestamps, args.host))
        for metric in metrics:
            client.add_metric(metric.host, metric.key, metric.value, metric.clock)
        return len(metrics)

    if not (args.host and args.key and args.value is not None):
        raise ValueError("either --input-file or all of --host, --key and --value are required")
    client.add_metric(args.host, args.key, args.value)
    return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(args, load_yaml_config(args.config))
        client = SenderClient.from_config(config)
        count = queue_metrics(client, args)
        logger.info("Sending %d metrics to %s:%d", count, config.server_host, config.server_port)
        succeeded = client.send()
    except (SenderError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not succeeded:
        print("Collector rejected the batch", file=sys.stderr)
        return 1

    print(f"Response from {config.server_host}:{config.server_port}: {client.last_response_info}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
