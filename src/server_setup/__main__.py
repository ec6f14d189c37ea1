# --- Standard library imports ---
import sys
import logging
import argparse

# --- Project imports ---
from .config import Config
from .errors import ServerSetupError
from .reconciler import root_domain
from .logger import get_logger, setup_logging
from .provision import STEP_NAMES, Provisioner, StepStatus


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="server-setup",
        description="One-time provisioning of a fresh Debian/Ubuntu server.",
    )
    parser.add_argument(
        "api_token",
        metavar="CLOUDFLARE_API_TOKEN",
        help="Cloudflare API token ('-' reads CLOUDFLARE_API_TOKEN from the environment)",
    )
    parser.add_argument(
        "domain_name",
        metavar="DOMAIN_NAME",
        help="Hostname whose A record should point at this server (e.g. vpn.example.com)",
    )
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        default=Config.ASSUME_YES,
        help="Do not wait for Enter before the firewall and installer steps",
    )
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        choices=STEP_NAMES,
        metavar="STEP",
        help=f"Skip a step; repeatable. One of: {', '.join(STEP_NAMES)}",
    )
    parser.add_argument(
        "--dns-only",
        action="store_true",
        help="Only run the Cloudflare DNS update",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the provisioning run.

    Returns:
        Process exit status: 0 when every step succeeded or was skipped,
        1 on an aborting error or a failed step.
    """
    args = build_parser().parse_args(argv)

    setup_logging(level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))
    logger = get_logger("main")

    api_token = args.api_token
    if api_token == "-":
        api_token = Config.CLOUDFLARE_API_TOKEN
    if not api_token:
        logger.error("Missing Cloudflare API token")
        return 1

    skip = set(args.skip)
    if args.dns_only:
        skip = set(STEP_NAMES) - {"dns"}

    logger.info("🚀 Starting the initial server setup")
    logger.debug(f"Python version: {sys.version}")

    try:
        # Reject an unusable DNS name before touching the system
        root_domain(args.domain_name)

        provisioner = Provisioner(
            api_token,
            args.domain_name,
            assume_yes=args.yes,
            skip=skip,
        )
        results = provisioner.run()
    except ServerSetupError as e:
        logger.error(f"Server setup aborted: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Server setup interrupted")
        return 130
    except EOFError:
        logger.error("No operator input available; rerun with --yes to skip prompts")
        return 1

    if any(r.status is StepStatus.FAILED for r in results):
        logger.warning("Server setup finished with failed steps")
        return 1

    logger.info("🏁 All server setup tasks are complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
