"""Deploy command - Publish Move packages and write a deploy report"""

from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click
from click.core import ParameterSource
from rich.console import Console

from jayce.base import BaseCommand
from jayce.constants import FAUCET_FUND_AMOUNT
from jayce.core.address_resolver import resolve_addresses
from jayce.core.config_loader import resolve_config
from jayce.core.module_loader import load_modules
from jayce.core.orchestrator import DeploymentOrchestrator
from jayce.core.report_writer import ReportWriter
from jayce.exceptions import ReportWriteError
from jayce.models.config import DeployConfig, FailurePolicy, ModuleType, Network
from jayce.services.rest_transport import RestTransport
from jayce.services.signer import Ed25519Signer, Signer
from jayce.services.transport import Transport
from jayce.ui_components import results_table
from jayce.utils import parse_address_map

TransportFactory = Callable[[DeployConfig, Signer], Transport]


def default_transport(config: DeployConfig, signer: Signer) -> Transport:
    return RestTransport(config.rest_url, signer, faucet_url=config.faucet_url)


class DeployCommand(BaseCommand):
    """Resolve, publish and report on a set of Move packages."""

    def __init__(
        self,
        cli_values: Dict[str, Any],
        config_path: Optional[Path] = None,
        verbose: bool = False,
        console: Optional[Console] = None,
        transport_factory: TransportFactory = default_transport,
    ):
        super().__init__(verbose=verbose, console=console)
        self.cli_values = cli_values
        self.config_path = config_path
        self.transport_factory = transport_factory

    def execute(self) -> int:
        """Execute deploy command."""
        # Everything up to the confirmation prompt is local: a failure here
        # leaves the network untouched and writes no report
        config = resolve_config(self.cli_values, self.config_path)
        signer = self._signer(config)
        modules = load_modules(config)
        plan = resolve_addresses(
            modules, config.module_type, signer.address, config.deployed_addresses
        )

        self.show_header(
            title="Deploy",
            details={
                "Network": config.network.value,
                "Module type": config.module_type.value,
                "Account": signer.address,
                "Order": " → ".join(plan.order),
            },
        )

        logger = self.init_logger(config.network.value, "deploy")
        logger.log(f"Config: {config!r}")
        logger.log(f"Resolution order: {', '.join(plan.order)}")

        if not config.yes and not self.confirm(
            f"Deploy {len(plan.modules)} package(s) to {config.network.value}?"
        ):
            self.print_warning("Deployment cancelled")
            return 1

        transport = self.transport_factory(config, signer)

        if not config.private_key:
            logger.step("Funding generated account")
            logger.warning(f"No private key given; using new key {signer.private_key_hex}")
            transport.fund_account(signer.address, FAUCET_FUND_AMOUNT)
            logger.success(f"Funded {signer.address}")

        reporter = ReportWriter(
            config.output_json,
            network=config.network.value,
            account=signer.address,
            module_type=config.module_type.value,
            order=plan.order,
        )
        orchestrator = DeploymentOrchestrator(
            plan,
            transport,
            account=signer.address,
            module_type=config.module_type,
            reporter=reporter,
            failure_policy=config.failure_policy,
            max_attempts=config.max_attempts,
            max_workers=config.max_workers,
            timeout=config.timeout_secs,
            logger=logger,
        )

        logger.step(f"Publishing {len(plan.modules)} package(s)")
        try:
            orchestrator.run()
        finally:
            report = self._write_report(reporter)

        self.console.print()
        self.console.print(results_table(reporter.results))

        if report is None:
            return 1
        self.console.print(f"\n[dim]Report written to:[/dim] {config.output_json}")
        self._logs_hint()

        if orchestrator.interrupted:
            return 130
        if report.success:
            self.print_success("All packages deployed")
            return 0
        self.print_error("Deployment incomplete")
        return 1

    def _signer(self, config: DeployConfig) -> Ed25519Signer:
        if config.private_key:
            return Ed25519Signer(config.private_key)
        return Ed25519Signer.generate()

    def _write_report(self, reporter: ReportWriter):
        try:
            return reporter.write()
        except ReportWriteError as e:
            if self.logger:
                self.logger.log_error(e.message, context=e.context)
            return None


def _split(values) -> Optional[list[str]]:
    """Flatten repeated and comma-separated option values."""
    if not values:
        return None
    items: list[str] = []
    for value in values:
        items.extend(part.strip() for part in str(value).split(",") if part.strip())
    return items


def _address_map_option(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_address_map(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


# click parameter name -> config field
CLI_FIELDS = {
    "private_key": "private_key",
    "module_type": "module_type",
    "modules_path": "modules_path",
    "addresses_name": "addresses_name",
    "network": "network",
    "yes": "yes",
    "output_json": "output_json",
    "deployed_addresses": "deployed_addresses",
    "rest_url": "rest_url",
    "faucet_url": "faucet_url",
    "failure_policy": "failure_policy",
    "max_attempts": "max_attempts",
    "max_workers": "max_workers",
    "timeout": "timeout_secs",
}

EXPLICIT_SOURCES = (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT)


def collect_cli_values(ctx: click.Context, params: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the values the user actually supplied."""
    values: Dict[str, Any] = {}
    for param_name, field_name in CLI_FIELDS.items():
        if ctx.get_parameter_source(param_name) not in EXPLICIT_SOURCES:
            continue
        value = params[param_name]
        if param_name in ("modules_path", "addresses_name"):
            value = _split(value)
        values[field_name] = value
    return values


@click.command(name="deploy")
@click.option("--private-key", envvar="JAYCE_PRIVATE_KEY", help="Private key of the deployer account")
@click.option(
    "--modules-path",
    multiple=True,
    help="Package directory to deploy (repeatable or comma-separated)",
)
@click.option(
    "--addresses-name",
    multiple=True,
    help="Named address of each package, same order as --modules-path",
)
@click.option(
    "--config-path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="TOML configuration file",
)
@click.option(
    "--network",
    type=click.Choice([n.value for n in Network], case_sensitive=False),
    default=Network.DEVNET.value,
    show_default=True,
    help="Network to deploy to",
)
@click.option(
    "--module-type",
    type=click.Choice([m.value for m in ModuleType], case_sensitive=False),
    default=ModuleType.OBJECT.value,
    show_default=True,
    help="Publish under a new object or under the deployer account",
)
@click.option("--output-json", type=click.Path(path_type=Path), help="Report path [default: deploy-report.json]")
@click.option(
    "--deployed-addresses",
    callback=_address_map_option,
    help="Already deployed addresses, e.g. lib_addr=0x1,other=0x2",
)
@click.option("--rest-url", help="Node REST url (required for local)")
@click.option("--faucet-url", help="Faucet url, used when no private key is given")
@click.option(
    "--failure-policy",
    type=click.Choice([p.value for p in FailurePolicy]),
    default=FailurePolicy.ABORT_ON_FIRST_FAILURE.value,
    show_default=True,
    help="What to do with remaining packages after a failure",
)
@click.option("--max-attempts", type=click.IntRange(min=1), default=3, show_default=True, help="Submission attempts per package")
@click.option("--max-workers", type=click.IntRange(min=1), default=4, show_default=True, help="Packages deployed in parallel")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Run-wide timeout in seconds")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def deploy(ctx, config_path, verbose, **params):
    """
    Deploy Move packages to an Aptos network

    Packages are published in dependency order; named addresses of earlier
    packages are substituted into later ones. A JSON report is written when
    the run ends.

    \b
    Examples:
      jayce deploy --modules-path ./lib --addresses-name lib_addr
      jayce deploy --modules-path ./lib,./app --addresses-name lib_addr,app_addr -y
      jayce deploy --config-path deploy.toml --network testnet
    """
    cli_values = collect_cli_values(ctx, params)
    DeployCommand(cli_values, config_path=config_path, verbose=verbose).run()
