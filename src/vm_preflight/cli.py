"""
vm-preflight CLI - Preflight checks for VM provisioning.

Commands:
    before      Checks to run before the VM is created
    after       Checks to run once the VM is reachable over SSH
    run         Both phases, stopping at the first fatal failure
    list        Show all checks with their override keys
    config      Manage persistent overrides
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import tomli
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from vm_preflight.config import PreflightConfig, keys

if TYPE_CHECKING:
    from vm_preflight.drivers import SSHDriver
    from vm_preflight.preflight import CheckDescriptor, PhaseResults

app = typer.Typer(
    name="vm-preflight",
    help="Preflight checks for hypervisor-backed VM provisioning",
    no_args_is_help=True,
)

console = Console(highlight=False, soft_wrap=True)

# Sub-command groups
config_app = typer.Typer(help="Manage persistent check overrides")

app.add_typer(config_app, name="config")


def _check_names() -> dict[str, "CheckDescriptor"]:
    from vm_preflight.preflight import all_checks

    return {d.name: d for d in all_checks()}


def _load_config(
    config_path: Optional[Path],
    skip: Optional[list[str]] = None,
    warn: Optional[list[str]] = None,
    extra: Optional[dict[str, str]] = None,
) -> PreflightConfig:
    """Load the config file and apply one-off --skip/--warn overrides."""
    descriptors = _check_names()
    overrides: dict[str, object] = {}

    for name in skip or []:
        if name not in descriptors:
            raise typer.BadParameter(f"Unknown check '{name}'", param_hint="--skip")
        overrides[descriptors[name].skip_key] = True

    for name in warn or []:
        if name not in descriptors:
            raise typer.BadParameter(f"Unknown check '{name}'", param_hint="--warn")
        overrides[descriptors[name].warn_key] = True

    for key, value in (extra or {}).items():
        if value:
            overrides[key] = value

    return _open_config(config_path, overrides)


def _open_config(
    config_path: Optional[Path],
    overrides: Optional[dict[str, object]] = None,
) -> PreflightConfig:
    """Read the config file, exiting cleanly if it is not valid TOML."""
    try:
        return PreflightConfig(path=config_path, overrides=overrides)
    except tomli.TOMLDecodeError as e:
        console.print(f"[red]Invalid TOML in config file:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1)


def _finish(results: "PhaseResults") -> None:
    """Exit non-zero if the phase stopped on a fatal failure."""
    if results.has_fatal:
        raise typer.Exit(1)


def _make_driver(
    host: str,
    user: str,
    port: int,
    identity_file: Optional[Path],
    timeout: Optional[float],
) -> "SSHDriver":
    from vm_preflight.drivers import SSHDriver

    return SSHDriver(
        host=host,
        user=user,
        port=port,
        identity_file=identity_file,
        timeout=timeout,
    )


ConfigOption = typer.Option(None, "--config", "-c", help="Path to config.toml")
SkipOption = typer.Option(None, "--skip", help="Skip a check by name (repeatable)")
WarnOption = typer.Option(None, "--warn", help="Treat a check's failure as a warning (repeatable)")


@app.command()
def before(
    vm_driver: Optional[str] = typer.Option(None, "--vm-driver", "-d", help="Hypervisor driver (xhyve, kvm, hyperv, ...)"),
    skip: Optional[list[str]] = SkipOption,
    warn: Optional[list[str]] = WarnOption,
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """
    Preflight checks to run before the VM is created.

    Verifies the driver plug-in for the selected hypervisor is installed and
    configured. Drivers without a check produce no output.

    Example:
        vm-preflight before --vm-driver kvm
    """
    from vm_preflight.preflight import PreflightOrchestrator

    config = _load_config(config_path, skip, warn, {keys.VM_DRIVER: vm_driver})
    orchestrator = PreflightOrchestrator(config, console)

    _finish(orchestrator.run_before_host_creation())


@app.command()
def after(
    host: str = typer.Option(..., "--host", "-H", help="VM address"),
    user: str = typer.Option("docker", "--user", "-u", help="SSH user"),
    port: int = typer.Option(22, "--port", "-p", help="SSH port"),
    identity_file: Optional[Path] = typer.Option(None, "--identity-file", "-i", help="SSH private key"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-command timeout in seconds"),
    ping_host: Optional[str] = typer.Option(None, "--ping-host", help="Host to ping from the VM"),
    http_url: Optional[str] = typer.Option(None, "--http-url", help="URL to retrieve from the VM"),
    skip: Optional[list[str]] = SkipOption,
    warn: Optional[list[str]] = WarnOption,
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """
    Preflight checks to run once the VM is reachable over SSH.

    Checks, in order:
    - VM has an IPv4 address
    - External host is reachable by ping
    - External URL is reachable over HTTP
    - Persistent storage volume is mounted
    - Persistent storage volume has free space

    Example:
        vm-preflight after --host 192.168.64.2 -i ~/.ssh/id_rsa
    """
    from vm_preflight.preflight import PreflightOrchestrator

    config = _load_config(config_path, skip, warn, {
        keys.CHECK_NETWORK_PING_HOST: ping_host,
        keys.CHECK_NETWORK_HTTP_HOST: http_url,
    })
    driver = _make_driver(host, user, port, identity_file, timeout)
    orchestrator = PreflightOrchestrator(config, console)

    _finish(orchestrator.run_after_host_creation(driver))


@app.command()
def run(
    host: str = typer.Option(..., "--host", "-H", help="VM address"),
    vm_driver: Optional[str] = typer.Option(None, "--vm-driver", "-d", help="Hypervisor driver"),
    user: str = typer.Option("docker", "--user", "-u", help="SSH user"),
    port: int = typer.Option(22, "--port", "-p", help="SSH port"),
    identity_file: Optional[Path] = typer.Option(None, "--identity-file", "-i", help="SSH private key"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-command timeout in seconds"),
    ping_host: Optional[str] = typer.Option(None, "--ping-host", help="Host to ping from the VM"),
    http_url: Optional[str] = typer.Option(None, "--http-url", help="URL to retrieve from the VM"),
    skip: Optional[list[str]] = SkipOption,
    warn: Optional[list[str]] = WarnOption,
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """
    Run both phases against an existing VM.

    A fatal failure before host creation stops the after-host checks.

    Example:
        vm-preflight run --vm-driver kvm --host 192.168.42.10
    """
    from vm_preflight.preflight import PreflightOrchestrator

    config = _load_config(config_path, skip, warn, {
        keys.VM_DRIVER: vm_driver,
        keys.CHECK_NETWORK_PING_HOST: ping_host,
        keys.CHECK_NETWORK_HTTP_HOST: http_url,
    })
    orchestrator = PreflightOrchestrator(config, console)

    before_results = orchestrator.run_before_host_creation()
    _finish(before_results)

    driver = _make_driver(host, user, port, identity_file, timeout)
    after_results = orchestrator.run_after_host_creation(driver)
    _finish(after_results)

    if after_results.warnings:
        console.print(f"\n[yellow]{after_results.summary()}[/yellow]", highlight=False)
    else:
        console.print(f"\n[green]{after_results.summary()}[/green]", highlight=False)


@app.command("list")
def list_checks() -> None:
    """List all checks and the keys that override them."""
    from vm_preflight.preflight import BEFORE_HOST_CHECKS, AFTER_HOST_CHECKS

    table = Table(title="Preflight Checks")
    table.add_column("Check")
    table.add_column("Phase")
    table.add_column("Skip key")
    table.add_column("Warn key")
    table.add_column("Default")

    for kind, d in BEFORE_HOST_CHECKS.items():
        if d is None:
            continue
        table.add_row(d.name, f"before ({kind.value})", d.skip_key, d.warn_key, "warn" if d.treat_as_warning else "fail")

    for d in AFTER_HOST_CHECKS:
        table.add_row(d.name, "after", d.skip_key, d.warn_key, "warn" if d.treat_as_warning else "fail")

    console.print(table)


# Config subcommands
@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key, e.g. skip-check-storage-usage"),
    value: str = typer.Argument(..., help="Value"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Persist a setting."""
    config = _open_config(config_path)
    try:
        config.set(key, value)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    config.save()
    console.print(f"[green]Set[/green] {key}")


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Config key"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Show the effective value of a setting."""
    config = _open_config(config_path)
    if key in keys.BOOL_KEYS:
        console.print(str(config.lookup_bool(key)).lower())
    elif key in keys.STRING_KEYS:
        console.print(config.lookup_string(key), markup=False)
    else:
        console.print(f"[red]Unknown config key '{key}'[/red]")
        raise typer.Exit(1)


@config_app.command("unset")
def config_unset(
    key: str = typer.Argument(..., help="Config key"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Remove a persisted setting."""
    if key not in keys.ALL_KEYS:
        console.print(f"[red]Unknown config key '{key}'[/red]")
        raise typer.Exit(1)

    config = _open_config(config_path)
    if config.unset(key):
        config.save()
        console.print(f"[green]Unset[/green] {key}")
    else:
        console.print(f"[yellow]{key} is not set[/yellow]")


@config_app.command("view")
def config_view(
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """List persisted settings."""
    config = _open_config(config_path)
    settings = config.view()

    if not settings:
        console.print("[yellow]No settings saved[/yellow]")
        return

    for key, value in sorted(settings.items()):
        console.print(f"- {key}: {value}", markup=False)


def _version_callback(value: bool) -> None:
    if value:
        from vm_preflight import __version__
        console.print(f"vm-preflight {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version", callback=_version_callback, is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """vm-preflight: Preflight checks for hypervisor-backed VM provisioning."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


if __name__ == "__main__":
    app()
