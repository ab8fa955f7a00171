"""
Command-line interface for the URL uploader.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import PROVIDERS, CloudConfig, ServerSettings, load_config
from .exceptions import UploaderError
from .models import BatchSummary, ItemStatus, UploadItem
from .orchestrator import BatchOrchestrator
from .remote import RemoteCredentialBroker
from .tracker import BatchTracker

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: Whether to enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_cloud_config(args: argparse.Namespace, file_config: dict) -> CloudConfig:
    """Build the credential store from the loaded config file and CLI overrides."""
    cloud_config = CloudConfig.from_dict(file_config)
    if getattr(args, 'provider', None):
        cloud_config.select_provider(args.provider)
    return cloud_config


def create_orchestrator(args: argparse.Namespace, file_config: dict) -> BatchOrchestrator:
    """Create an orchestrator that prints item transitions.

    Args:
        args: Command line arguments
        file_config: Contents of the config file

    Returns:
        Configured BatchOrchestrator instance
    """
    tracker = BatchTracker()
    tracker.register_callback(print_item)

    broker = None
    server_url = args.server_url or file_config.get('server_url')
    if server_url:
        broker = RemoteCredentialBroker(server_url)

    return BatchOrchestrator(broker=broker, tracker=tracker)


def print_item(item: UploadItem) -> None:
    # Progress updates are frequent; only report state changes
    if item.status == ItemStatus.UPLOADING and item.progress:
        return
    line = f"[{item.status.value:>9}] {item.url}"
    if item.file_name and item.status == ItemStatus.SUCCESS:
        line += f" -> {item.file_name}"
    if item.error:
        line += f" ({item.error})"
    print(line)


def print_summary(summary: BatchSummary) -> None:
    print(f"\nBatch: {summary.batch_id}")
    print(f"Uploaded: {summary.successful_uploads}/{summary.total_items}")
    print(f"Failed: {summary.failed_uploads}")


def handle_upload(args: argparse.Namespace) -> int:
    """Handle the upload command.

    Args:
        args: Command line arguments

    Returns:
        Process exit code
    """
    file_config = load_config(args.config)
    cloud_config = create_cloud_config(args, file_config)
    orchestrator = create_orchestrator(args, file_config)

    try:
        if args.file:
            summary = orchestrator.run_file(args.file, cloud_config)
        elif len(args.urls) == 1 and not any(sep in args.urls[0] for sep in ",\n"):
            summary = orchestrator.run_single(args.urls[0], cloud_config)
        else:
            summary = orchestrator.run_bulk("\n".join(args.urls), cloud_config)
    except UploaderError as e:
        logger.error(f"Upload not started: {e}")
        return 1

    print_summary(summary)
    return 0 if summary.all_succeeded else 1


def handle_check(args: argparse.Namespace) -> int:
    """Handle the check command.

    Args:
        args: Command line arguments

    Returns:
        Process exit code
    """
    cloud_config = create_cloud_config(args, load_config(args.config))
    missing = cloud_config.active.missing_fields()
    if missing:
        print(f"{cloud_config.provider.upper()} not configured, missing: {', '.join(missing)}")
        return 1
    print(f"{cloud_config.provider.upper()} configured")
    return 0


def handle_serve(args: argparse.Namespace) -> int:
    """Handle the serve command.

    Args:
        args: Command line arguments

    Returns:
        Process exit code
    """
    import uvicorn

    from .server import create_app

    settings = ServerSettings.from_env()
    port = args.port or settings.port
    logger.info(f"Server running on port {port}")
    logger.info(f"Environment: {settings.environment}")
    uvicorn.run(create_app(settings), host=args.host, port=port, log_config=None)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Upload files from URLs to cloud storage")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose logging")
    parser.add_argument('-c', '--config', type=Path,
                        help="Path to config file")

    subparsers = parser.add_subparsers(dest='command', required=True)

    # Upload command
    upload_parser = subparsers.add_parser('upload',
                                          help="Upload files from URLs")
    upload_parser.add_argument('urls', nargs='*', default=[],
                               help="Source URLs (comma or space separated)")
    upload_parser.add_argument('-f', '--file', type=Path,
                               help="Text file listing source URLs")
    upload_parser.add_argument('-p', '--provider', choices=PROVIDERS,
                               help="Storage provider to use")
    upload_parser.add_argument('-s', '--server-url', type=str,
                               help="Request credentials from this credential service")

    # Check command
    check_parser = subparsers.add_parser('check',
                                         help="Check the provider configuration")
    check_parser.add_argument('-p', '--provider', choices=PROVIDERS,
                              help="Provider to check")

    # Serve command
    serve_parser = subparsers.add_parser('serve',
                                         help="Run the credential service")
    serve_parser.add_argument('--host', type=str, default="127.0.0.1",
                              help="Interface to bind")
    serve_parser.add_argument('--port', type=int,
                              help="Port to bind (default: $PORT or 3001)")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command == 'upload' and not args.urls and not args.file:
        parser.error("upload needs at least one URL or --file")

    try:
        if args.command == 'upload':
            exit_code = handle_upload(args)
        elif args.command == 'check':
            exit_code = handle_check(args)
        else:
            exit_code = handle_serve(args)

    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == '__main__':
    main()
