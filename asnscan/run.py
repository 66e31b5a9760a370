import sys
import argparse
import logging

from asnscan.core.dataset import DatasetStore
from asnscan.core.display import display
from asnscan.core.errors import ASNScanError
from asnscan.core.resolver import ResolutionService
from asnscan.core.utils import build_settings, load_config, setup_logging
from asnscan.recon.hackertarget import HackerTargetClient
from asnscan.report.renderers import FORMATS, render

logger = logging.getLogger("asnscan.cli")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="asnscan",
        description="Resolve IPs/domains to their ASN, or list the prefixes an ASN announces.",
    )
    query = parser.add_mutually_exclusive_group()
    query.add_argument("--ip2asn", metavar="QUERY", help="resolve IP or domain to ASN and info")
    query.add_argument("--asn2ips", metavar="ASN", help="list ranges for ASN (13335, AS13335, as13335)")

    parser.add_argument("--format", default="text", type=str.lower,
                        help=f"output format: {', '.join(FORMATS)} (default: text)")
    parser.add_argument("-o", "--output", help="optional output file")
    parser.add_argument("--use-api", action="store_true", help="use hackertarget API instead of local DB")
    parser.add_argument("--update-db", action="store_true", help="re-download the local ASN database")
    parser.add_argument("--cache-dir", help="local ASN database directory")
    parser.add_argument("--config", help="JSON settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--no-banner", action="store_true", help="do not print the banner")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.no_banner:
        display.print_banner()

    if args.ip2asn is None and args.asn2ips is None and not args.update_db:
        parser.print_help(sys.stderr)
        return 0

    # 1. Init
    settings = build_settings(load_config(args.config), {"cache_dir": args.cache_dir})
    setup_logging(settings.log_file, verbose=args.verbose)
    display.set_verbose(args.verbose)
    logger.info(f"ip2asn={args.ip2asn!r} asn2ips={args.asn2ips!r} format={args.format} use_api={args.use_api}")

    store = DatasetStore(
        settings.cache_dir,
        dataset_url=settings.dataset_url,
        timeout=settings.timeout,
        user_agent=settings.user_agent,
        progress=display.progress,
    )
    remote = HackerTargetClient(settings.api_url, timeout=settings.timeout, user_agent=settings.user_agent)
    service = ResolutionService(store, remote=remote)

    # 2. Local database (bootstrapped even in API mode)
    try:
        if args.update_db:
            display.log("Refreshing ASN database...", "INFO")
            store.refresh()
            display.log("ASN database ready.", "SUCCESS")
        elif not store.is_populated():
            display.log("ASN database not found. Downloading for faster local lookups...", "WARNING")
            store.ensure_populated()
            display.log("ASN database ready.", "SUCCESS")
    except ASNScanError as e:
        logger.info(f"Setup failed: {e}")
        display.error("Error setting up ASN data:", e)
        return 1

    if args.ip2asn is None and args.asn2ips is None:
        return 0

    # 3. Resolution
    try:
        if args.ip2asn is not None:
            show_prefixes = False
            info = service.resolve_ip_to_asn(args.ip2asn, use_remote=args.use_api)
        else:
            show_prefixes = True
            info = service.resolve_asn_to_prefixes(args.asn2ips, use_remote=args.use_api)
    except ASNScanError as e:
        logger.info(f"Lookup failed: {e}")
        display.error("Error:", e)
        return 1

    # 4. Output
    try:
        render(info, args.format, show_prefixes=show_prefixes, output=args.output)
    except OSError as e:
        logger.info(f"Output failed: {e}")
        display.error(f"Error writing {args.format.upper()}:", e)
        return 1
    return 0


def cli():
    """Entry point for console_scripts."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        display.log("Interrupted by user.", "WARNING")
        sys.exit(130)


if __name__ == "__main__":
    cli()
