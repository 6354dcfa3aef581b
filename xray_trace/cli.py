"""Command-line interface for X-Ray traces."""

import argparse
import logging

import uvicorn

from .config import LOG_LEVELS, Settings
from .server import create_app
from .xray import XRay


def build_xray(service_name: str | None) -> XRay:
    default_metadata = {"service": service_name} if service_name else {}
    return XRay(default_metadata=default_metadata)


def run_serve(args: argparse.Namespace, settings: Settings) -> None:
    """Run the traces API server."""
    xray = build_xray(args.service)
    app = create_app(xray, cors_origins=settings.cors_origins)

    print("Starting X-Ray traces server...")
    print(f"  Listening on: http://{args.host}:{args.port}")
    print(f"  Traces API:   http://{args.host}:{args.port}/api/traces")
    if args.service:
        print(f"  Service:      {args.service}")
    print()

    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="X-Ray - record and inspect decision trails of multi-step pipelines"
    )
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Start the traces API server")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to listen on (default: {settings.port})",
    )
    serve_parser.add_argument(
        "--host",
        type=str,
        default=settings.host,
        help=f"Host to bind to (default: {settings.host})",
    )
    serve_parser.add_argument(
        "--service",
        type=str,
        default=settings.service_name,
        help="Service name added to every trace's metadata",
    )
    serve_parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    return parser


def main(argv: list[str] | None = None):
    """Main entry point for the CLI."""
    settings = Settings.load()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(args, "log_level", settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "serve":
        run_serve(args, settings)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
