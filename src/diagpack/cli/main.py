#!/usr/bin/env python3
"""
DIAGPACK CLI - Diagnostic Bundle Collector
------------------------------------------
Primary interface: resolves flags, settings file and wizard answers into a
validated RunConfig, runs one DiagnosticSession and maps the outcome to an
exit status (0 success or user abort, 1 fatal error, 130 interrupted).

Author: DiagPack Team
Date: 2026-10-18
"""

import sys
import signal
import logging
import argparse
from typing import Any, Callable, Dict, List, Optional

from diagpack.cli.formatter import DiagFormatter
from diagpack.cli.wizard import ConfigWizard
from diagpack.core import settings
from diagpack.core.engine import DiagnosticSession
from diagpack.core.errors import FatalError, UserCancelled
from diagpack.core.models import (
    DEFAULT_LOG_LINES,
    DEFAULT_MAX_CONTAINERS,
    DEFAULT_MAX_PODS,
    DEFAULT_NAMESPACE,
    DEFAULT_SECRET_NAME,
    DeploymentType,
    RunConfig,
)
from diagpack.validator.validator import DiagValidator, RawInputs

__version__ = "1.0.0"

logger = logging.getLogger("diagpack.cli")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130

EPILOG = """\
The domain accepts anomalo.your-domain.com, https://anomalo.your-domain.com,
http://anomalo.your-domain.com or www.anomalo.your-domain.com; it is normalized.

Run without parameters to be guided through an interactive wizard.

Examples:
  diagpack -t kubernetes -n anomalo -d anomalo.your-domain.com
  diagpack -t docker -d anomalo.your-domain.com -l 500
"""


class DiagCLI:
    """
    CLI wrapper that translates user flags into a DiagnosticSession.
    Provides the wizard, safety confirmations and the final report.
    """

    def __init__(self, formatter: Optional[DiagFormatter] = None,
                 wizard: Optional[ConfigWizard] = None,
                 validator: Optional[DiagValidator] = None,
                 session_factory: Callable[..., DiagnosticSession] = DiagnosticSession):
        self.formatter = formatter or DiagFormatter()
        self.wizard = wizard or ConfigWizard(self.formatter)
        self.validator = validator or DiagValidator(self.formatter)
        self.session_factory = session_factory
        self.parser = argparse.ArgumentParser(
            prog="diagpack",
            description="Collect Anomalo deployment diagnostics into a single zip archive",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=EPILOG,
        )
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags. Defaults are applied after the settings file."""
        p = self.parser
        p.add_argument("--version", action="version", version=f"diagpack v{__version__}")
        p.add_argument("-t", "--type", metavar="{kubernetes,docker}",
                       help="Type of deployment (default: kubernetes)")
        p.add_argument("-n", "--namespace", help=f"Namespace to gather information from (default: {DEFAULT_NAMESPACE})")
        p.add_argument("-d", "--domain", help="Base domain of your Anomalo instance")
        p.add_argument("-o", "--output", help="Output directory (default: auto-generated timestamped name)")
        p.add_argument("-l", "--logs", help=f"Log lines to collect per pod/container (default: {DEFAULT_LOG_LINES})")
        p.add_argument("-p", "--max-pods", help=f"Maximum number of pods to process (default: {DEFAULT_MAX_PODS})")
        p.add_argument("-c", "--max-containers",
                       help=f"Maximum number of containers to process (default: {DEFAULT_MAX_CONTAINERS})")
        p.add_argument("--include-secret", nargs="?", const=DEFAULT_SECRET_NAME, metavar="NAME",
                       help=f"Also collect the body of one secret (default name: {DEFAULT_SECRET_NAME}). "
                            "Contains sensitive data.")
        p.add_argument("--non-interactive", action="store_true",
                       help="Never prompt: use defaults, truncate large collections, refuse to overwrite")
        p.add_argument("--overwrite", action="store_true", help="Replace an existing output directory")
        p.add_argument("--config", help=f"YAML settings file (default: ${settings.ENV_VAR} or ./{settings.DEFAULT_FILENAME})")
        p.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    def resolve(self, args: argparse.Namespace) -> RawInputs:
        """Flags > settings file > wizard > built-in defaults."""
        file_settings = settings.load(settings.locate(args.config))

        def pick(flag: Any, key: str) -> Any:
            return flag if flag is not None else file_settings.get(key)

        values: Dict[str, Any] = {
            "type": pick(args.type, "type"),
            "namespace": pick(args.namespace, "namespace"),
            "domain": pick(args.domain, "domain"),
            "output": pick(args.output, "output"),
            "logs": pick(args.logs, "logs"),
        }
        interactive = not (args.non_interactive or bool(file_settings.get("non_interactive", False)))

        # The domain has no default, so its absence means a guided run
        if interactive and values["domain"] is None:
            values = self.wizard.run(values)

        max_pods = pick(args.max_pods, "max_pods")
        max_containers = pick(args.max_containers, "max_containers")

        return RawInputs(
            deployment_type=values["type"] or DeploymentType.KUBERNETES.value,
            namespace=values["namespace"] if values["namespace"] is not None else DEFAULT_NAMESPACE,
            domain=values["domain"],
            output=values["output"],
            log_lines=values["logs"] if values["logs"] is not None else DEFAULT_LOG_LINES,
            max_pods=max_pods if max_pods is not None else DEFAULT_MAX_PODS,
            max_containers=max_containers if max_containers is not None else DEFAULT_MAX_CONTAINERS,
            pods_limit_preset=max_pods is not None,
            containers_limit_preset=max_containers is not None,
            interactive=interactive,
            include_secret=pick(args.include_secret, "include_secret"),
            overwrite=args.overwrite,
            health_connect_timeout=file_settings.get("health_connect_timeout", 30.0),
            health_total_timeout=file_settings.get("health_total_timeout", 60.0),
        )

    def build_config(self, argv: Optional[List[str]] = None) -> RunConfig:
        args = self.parser.parse_args(argv)
        configure_logging(args.verbose)
        return self.validator.validate(self.resolve(args))

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit status."""
        self.formatter.print_header()
        try:
            config = self.build_config(argv)
            self.session_factory(config, formatter=self.formatter).run()
        except UserCancelled as e:
            self.formatter.info(str(e) or "Cancelled by user.")
            return EXIT_OK
        except FatalError as e:
            logger.debug("Fatal error", exc_info=True)
            self.formatter.error(str(e))
            return EXIT_FATAL
        return EXIT_OK


def configure_logging(verbosity: int = 0):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")


def _terminate(signum, frame):
    # Unwind normally so finally blocks and the cleanup hook run
    raise SystemExit(EXIT_INTERRUPTED)


def main():
    """Application entry point with interrupt handling."""
    signal.signal(signal.SIGTERM, _terminate)
    cli = DiagCLI()
    try:
        code = cli.run()
    except KeyboardInterrupt:
        cli.formatter.console.print("\n[bold red]Terminated by user.[/bold red]")
        code = EXIT_INTERRUPTED
    sys.exit(code)


if __name__ == "__main__":
    main()
