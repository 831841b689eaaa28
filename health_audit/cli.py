"""
Command-line interface for Health Audit.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from . import __version__
from .audit.engine import AuditEngine, DeviceFactory
from .audit.profiles import Host, get_profile, list_profiles
from .audit.report import write_report
from .audit.results import AuditRunResult
from .checks import CHECK_REGISTRY, OnError
from .core.config import AuditConfig
from .core.credentials import credential_manager
from .core.logging_config import get_logger, setup_logging
from .delivery.mail import MailDelivery
from .devices.ssh_host import SSHHost
from .policy.tables import HostPolicy, PolicyTables, load_policy_tables

console = Console()

app = typer.Typer(
    help="Health Audit - daily SSH health audits of OSS-RC, ENIQ, ENM, OMBS and UAS servers",
    no_args_is_help=True,
)
logger = get_logger(__name__)


def version_callback(value: bool):
    if value:
        console.print(f"Health Audit version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information",
    ),
):
    """
    Health Audit - daily SSH health audits of OSS-RC, ENIQ, ENM, OMBS and UAS servers
    """


def load_config(config_file: Optional[Path]) -> AuditConfig:
    try:
        return AuditConfig.load(config_file)
    except Exception as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        logger.error("Error loading configuration: %s", e)
        raise typer.Exit(1)


def load_policy(config: AuditConfig, policy_file: Optional[Path]) -> PolicyTables:
    if policy_file is None and config.policy_file:
        policy_file = Path(config.policy_file).expanduser()
    try:
        return load_policy_tables(policy_file)
    except Exception as e:
        console.print(f"[red]Error loading policy: {e}[/red]")
        logger.error("Error loading policy: %s", e)
        raise typer.Exit(1)


def make_device_factory(config: AuditConfig) -> DeviceFactory:
    """SSHHost factory using the SSH settings of config."""
    ssh = config.ssh

    def factory(host: Host) -> SSHHost:
        return SSHHost(
            host=host.target,
            username=ssh.username,
            password=ssh.password,
            private_key=ssh.private_key,
            port=host.port or ssh.port,
            timeout=ssh.timeout,
            known_hosts=ssh.known_hosts,
            command_timeout=ssh.command_timeout,
        )

    return factory


@app.command()
def run(
    profile_name: str = typer.Argument(..., metavar="PROFILE", help="Audit profile to run"),
    hosts: Optional[List[str]] = typer.Option(
        None, "--host", help="Audit only this host of the profile (repeatable)"
    ),
    output_file: Optional[Path] = typer.Option(
        None, "-f", "--output-file", help="Write the report to this file instead of stdout"
    ),
    mail: bool = typer.Option(False, "--mail", help="Mail the report to the profile's group"),
    mail_group: Optional[str] = typer.Option(
        None, "--mail-group", help="Recipient group to mail the report to"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
    policy_file: Optional[Path] = typer.Option(
        None, "--policy", help="Policy file replacing built-in roles"
    ),
    baseline_dir: Optional[Path] = typer.Option(
        None, "--baseline-dir", help="Directory of the service baseline files"
    ),
    parallel: bool = typer.Option(False, "--parallel", help="Audit hosts concurrently"),
    non_interactive: bool = typer.Option(
        False,
        "--non-interactive",
        help="Non-interactive mode (no prompts, fail if credentials needed)",
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Append debug logs of the run to this file"
    ),
    verbose: int = typer.Option(
        0, "-v", "--verbose", count=True, help="Increase verbosity (-v, -vv)"
    ),
):
    """Run an audit profile and print or save its report."""
    setup_logging(min(verbose, 2), log_file=str(log_file) if log_file else None)

    config = load_config(config_file)
    credential_manager.set_non_interactive(
        non_interactive or AuditConfig.non_interactive_from_env()
    )
    tables = load_policy(config, policy_file)

    try:
        profile = get_profile(profile_name, config.profiles).with_overrides(config.hosts)
        if hosts:
            profile = profile.with_hosts(hosts)
    except Exception as e:
        console.print(f"[red]Error loading profile: {e}[/red]")
        logger.error("Error loading profile: %s", e)
        raise typer.Exit(1)

    engine = AuditEngine(tables, baseline_dir=baseline_dir or Path(config.baseline_dir))
    console.print(
        f"[bold blue]Starting {profile.title} Audit of {len(profile.hosts)} host(s)...[/bold blue]"
    )

    try:
        result = asyncio.run(engine.run(profile, make_device_factory(config), parallel))
    except Exception as e:
        console.print(f"[red]Error during audit: {e}[/red]")
        logger.error("Error during audit: %s", e)
        raise typer.Exit(1)

    report = result.render_report()
    if output_file:
        write_report(report, output_file)
        console.print(f"✓ Report saved to {output_file}")
        logger.info("Report saved to %s", output_file)
    else:
        write_report(report)

    display_run_summary(result)

    if mail:
        group = mail_group or result.mail_group
        delivery = MailDelivery(config.mail, config.ssh)
        remote_name = output_file.name if output_file else None
        sent = asyncio.run(
            delivery.deliver(report, result.mail_sender, result.subject, group, remote_name)
        )
        if sent:
            console.print(f"✓ Report mailed to group {group}")
        else:
            console.print(f"[yellow]Report could not be mailed to group {group}[/yellow]")


@app.command()
def checks():
    """List the registered checks."""
    table = Table(title="Registered Checks")
    table.add_column("Check", style="cyan")
    table.add_column("On failed command", style="yellow")
    table.add_column("Description", style="white")

    for name in sorted(CHECK_REGISTRY):
        check = CHECK_REGISTRY[name]
        on_error = "pass" if check.on_error is OnError.PASS else "fail"
        table.add_row(name, on_error, check.description)

    console.print(table)


@app.command()
def profiles(
    config_file: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
):
    """List the audit profiles."""
    config = load_config(config_file)

    table = Table(title="Audit Profiles")
    table.add_column("Profile", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Hosts", style="white")
    table.add_column("Checks", style="white")

    for name in list_profiles(config.profiles):
        profile = get_profile(name, config.profiles)
        table.add_row(
            name,
            profile.title,
            ", ".join(host.name for host in profile.hosts),
            str(len(profile.checks)),
        )

    console.print(table)


@app.command()
def show_policy(
    role: str = typer.Argument(..., help="Host role, e.g. oss-master"),
    policy_file: Optional[Path] = typer.Option(
        None, "--policy", help="Policy file replacing built-in roles"
    ),
):
    """Show the policy of a host role."""
    config = AuditConfig()
    tables = load_policy(config, policy_file)
    try:
        policy = tables.for_role(role)
    except KeyError as e:
        console.print(f"[red]{e}[/red]")
        console.print(f"Known roles: {', '.join(sorted(tables.roles))}")
        raise typer.Exit(1)

    display_policy(policy)


@app.command()
def create_example(
    output_file: Path = typer.Argument(..., help="Output file path for example configuration"),
    policy_output: Optional[Path] = typer.Option(
        None, "--policy-output", help="Also write the built-in policy tables to this file"
    ),
):
    """Create an example configuration (and optionally a policy file)."""
    console.print("Creating example configuration...")
    AuditConfig.example().save_to_file(output_file)
    console.print(f"✓ Example configuration created: {output_file}")

    if policy_output:
        policy_output.parent.mkdir(parents=True, exist_ok=True)
        policy_output.write_text(
            yaml.safe_dump(PolicyTables.builtin().to_dict(), sort_keys=False)
        )
        console.print(f"✓ Built-in policy written: {policy_output}")


def display_run_summary(result: AuditRunResult):
    """Display audit run summary."""
    console.print(f"\n[bold]{result.title} Audit Summary[/bold]")

    table = Table()
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Verdict", "[green]PASSED[/green]" if result.passed else "[red]FAILED[/red]")
    table.add_row("Hosts Audited", str(result.hosts_audited))
    table.add_row("Unreachable Hosts", ", ".join(result.unreachable_hosts) or "-")
    table.add_row("Failed Hosts", ", ".join(result.failed_hosts) or "-")
    table.add_row("Checks Recorded", str(result.total_checks))
    table.add_row("Failed Checks", str(result.failed_checks))

    console.print(table)


def display_policy(policy: HostPolicy):
    """Display the thresholds and expectations of a role."""
    console.print(f"\n[bold]Policy of {policy.role}[/bold] {policy.description}")

    table = Table()
    table.add_column("Check", style="cyan")
    table.add_column("Item", style="white")
    table.add_column("Rule", style="white")

    for check, rule in policy.thresholds.items():
        table.add_row(check, "", str(rule))
    for check, items in policy.item_thresholds.items():
        for item, rule in items.items():
            table.add_row(check, item, str(rule))
    for check, values in policy.expected_sets.items():
        table.add_row(check, "expected", f"{len(values)} entries")
    for check, counts in policy.expected_counts.items():
        table.add_row(check, "expected counts", f"{len(counts)} entries")
    for check, schedule in policy.schedules.items():
        for item, days in schedule.items():
            table.add_row(check, item, days)

    console.print(table)


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
