"""Custom transfer agent entry point.

Configure Git LFS to use it with::

    git config lfs.standalonetransferagent courier
    git config lfs.customtransfer.courier.path courier
    git config lfs.customtransfer.courier.args transfer
"""
import logging
import sys
from pathlib import Path
from typing import IO, Any

from courier import config
from courier.codec import read_events, write_event
from courier.exc import CourierError
from courier.mapping import MappingCache
from courier.transfer import TransferAgent
from courier.util import build_component

LOG_FORMAT = "%(asctime)-15s %(name)-15s %(levelname)s %(message)s"

USAGE = "Usage: {prog} transfer\n"

_log = logging.getLogger(__name__)


def init_agent(
    additional_config: dict[str, Any] | None = None,
) -> TransferAgent:
    """Transfer agent initialization."""
    settings = config.configure(additional_config)

    # Configure logging; stdout is reserved for protocol messages
    _configure_logging(settings)

    storage = build_component(
        settings.storage_provider.factory, settings.storage_provider.options
    )
    store = build_component(
        settings.mapping_store.factory, settings.mapping_store.options
    )
    _log.debug(
        "Loaded storage provider %s, mapping store %s",
        type(storage).__name__,
        type(store).__name__,
    )

    mapping = MappingCache(
        store,
        transfer_name=settings.transfer_name,
        scheme=settings.address_scheme or storage.address_scheme,
    )
    return TransferAgent(storage, mapping, download_dir=settings.download_dir)


def run_session(
    agent: TransferAgent, input_stream: IO[str], output_stream: IO[str]
) -> int:
    """Run a transfer session between two text streams, and return the
    process exit status.
    """
    try:
        for event in agent.process(read_events(input_stream)):
            write_event(output_stream, event)
    except CourierError as e:
        _log.error("Transfer session failed: %s", e)
        sys.stderr.write(f"courier: {e}\n")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv != ["transfer"]:
        sys.stderr.write(USAGE.format(prog=Path(sys.argv[0]).name))
        return 1

    agent = init_agent()
    return run_session(agent, sys.stdin, sys.stdout)


def _configure_logging(settings: config.Settings) -> None:
    level = logging.DEBUG if settings.debug else logging.WARNING
    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            format=LOG_FORMAT, level=level, filename=settings.log_file
        )
    else:
        logging.basicConfig(format=LOG_FORMAT, level=level, stream=sys.stderr)


def _main() -> None:
    sys.exit(main())


if __name__ == "__main__":
    _main()
