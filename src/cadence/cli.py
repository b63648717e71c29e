"""
Cadence CLI - Entry point

Wires the process-wide playback session to an mpv device and the catalog,
and serves the control API.
"""

import argparse
import sys
from typing import Optional

from loguru import logger

from cadence.core.config import Config, get_config_path, get_log_file_path, load_config
from cadence.core.output import set_queue_mode, setup_loguru
from cadence.domain.library.catalog import CatalogClient
from cadence.domain.playback.device import TransportDevice
from cadence.domain.playback.mpv_device import MpvDevice, check_mpv_available
from cadence.domain.playback.notifications import LogNotifier
from cadence.domain.playback.session import PlaybackSession


def build_session(config: Config, device: TransportDevice) -> tuple[PlaybackSession, CatalogClient]:
    """Construct the catalog and the single playback session for this process."""
    catalog = CatalogClient(config.catalog.base_url, timeout=config.catalog.timeout)
    session = PlaybackSession(
        device,
        catalog,
        LogNotifier(),
        default_volume=config.player.default_volume,
        unmute_volume=config.player.unmute_volume,
    )
    return session, catalog


def run_serve(host: Optional[str] = None, port: Optional[int] = None) -> int:
    """Start mpv and serve the control API until interrupted.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    import uvicorn

    from cadence.web.main import create_app

    config = load_config()
    setup_loguru(
        get_log_file_path(config),
        level=config.logging.level,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
        console_output=config.logging.console_output,
    )

    if not check_mpv_available():
        print("mpv not found. Install mpv first.", file=sys.stderr)
        return 1

    device = MpvDevice(config.player)
    if not device.start():
        print("Failed to start mpv (see log for details).", file=sys.stderr)
        return 1

    session, catalog = build_session(config, device)
    app = create_app(
        session,
        catalog,
        background=[device.watch],
        allowed_origins=config.web.allowed_origins,
    )

    set_queue_mode(True)
    host = host or config.web.host
    port = port or config.web.port
    logger.info(f"Serving player API on {host}:{port} (catalog: {config.catalog.base_url})")

    try:
        uvicorn.run(app, host=host, port=port, log_level=config.logging.level.lower())
    finally:
        set_queue_mode(False)
        device.stop()
        logger.info("Player stopped")

    return 0


def run_check() -> int:
    """Report whether the prerequisites for serving are in place."""
    config_path = get_config_path()
    print(f"Config: {config_path}{'' if config_path.exists() else ' (not created yet)'}")

    if check_mpv_available():
        print("mpv: available")
        return 0

    print("mpv: not found", file=sys.stderr)
    return 1


def main() -> None:
    """Main entry point for the cadence command."""
    parser = argparse.ArgumentParser(
        description="Cadence - playback session for a music-streaming catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start mpv and serve the player API")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    subparsers.add_parser("check", help="Check that mpv is installed")

    args = parser.parse_args()

    if args.subcommand == "serve":
        sys.exit(run_serve(args.host, args.port))

    elif args.subcommand == "check":
        sys.exit(run_check())

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
