"""Interactive configuration wizard for values missing from flags and settings."""

from typing import Any, Callable, Dict, Optional

from diagpack.cli.formatter import DiagFormatter
from diagpack.core.models import DEFAULT_LOG_LINES, DEFAULT_NAMESPACE, DeploymentType
from diagpack.core.errors import ValidationError
from diagpack.validator.validator import default_output_name


class ConfigWizard:
    """
    Prompts for each missing value, showing the default that an empty
    answer selects. Only the domain has no default.
    """

    def __init__(self, formatter: Optional[DiagFormatter] = None,
                 prompt: Optional[Callable[[str], str]] = None):
        self.formatter = formatter or DiagFormatter()
        self.console = self.formatter.console
        self._prompt = prompt or self.console.input

    def ask(self, question: str, default: str = "") -> str:
        answer = self._prompt(f"{question}: ").strip()
        value = answer or default
        if value:
            self.console.print(f"Selected: {value}\n", highlight=False)
        return value

    def run(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Fills the None entries of `values` (type, namespace, domain, output, logs)."""
        values = dict(values)
        self.console.print("\n[bold]=== Configuration Wizard ===[/bold]\n")

        if values.get("type") is None:
            self.console.print("Deployment type options:\n  1) kubernetes (default)\n  2) docker\n")
            answer = self.ask(f"Enter deployment type [{DeploymentType.KUBERNETES.value}]",
                              DeploymentType.KUBERNETES.value)
            # Accept the menu number as well as the name
            values["type"] = {"1": "kubernetes", "2": "docker"}.get(answer, answer)

        kind = str(values["type"]).strip().lower()
        if values.get("namespace") is None and kind == DeploymentType.KUBERNETES.value:
            self.console.print(f"Kubernetes namespace:\n  Default: {DEFAULT_NAMESPACE}\n")
            values["namespace"] = self.ask(f"Enter namespace [{DEFAULT_NAMESPACE}]", DEFAULT_NAMESPACE)

        if values.get("domain") is None:
            self.console.print("Anomalo instance domain:\n"
                               "  Examples: anomalo.your-domain.com, https://anomalo.company.com\n")
            domain = self.ask("Enter base domain")
            if not domain:
                raise ValidationError("domain", "Base domain is required.")
            values["domain"] = domain

        if values.get("output") is None:
            self.console.print(f"Output directory:\n  Default: {default_output_name()}\n")
            values["output"] = self.ask("Enter custom output directory (press Enter for default)") or None

        if values.get("logs") is None:
            self.console.print(f"Number of log lines to collect:\n  Default: {DEFAULT_LOG_LINES}\n"
                               "  Examples: 100 (smaller files), 500 (more detail), 1000 (comprehensive)\n")
            values["logs"] = self.ask(f"Enter number of log lines [{DEFAULT_LOG_LINES}]", str(DEFAULT_LOG_LINES))

        self.console.print("[bold]=== Configuration Complete ===[/bold]\n")
        return values
