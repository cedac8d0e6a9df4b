"""Command-line interface for pcie-exporter."""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click
import yaml

from pcie_exporter import __version__
from pcie_exporter.bandwidth import LANE_COUNTS, get_table, throughput_gbps, version_for_speed
from pcie_exporter.config import ExporterConfig, load_config, resolve_sysfs_root
from pcie_exporter.devices import Device, read_devices
from pcie_exporter.errors import ScrapeError
from pcie_exporter.parsing import format_link_summary, parse_first_int, validate_bdf


@click.group()
@click.version_option(version=__version__)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option(
    "--sysfs-root",
    type=str,
    default=None,
    help="sysfs root path override (defaults to $PCIE_EXPORTER_SYSFS or /sys)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file",
)
@click.pass_context
def main(
    ctx: click.Context,
    json_output: bool,
    sysfs_root: str | None,
    config_path: Path | None,
) -> None:
    """PCIe link health and topology exporter.

    Reads PCIe link negotiation state and topology from sysfs and serves it
    as Prometheus metrics and a JSON tree.
    """
    config = ExporterConfig()
    if config_path is not None:
        try:
            config = load_config(config_path)
        except (yaml.YAMLError, ValueError) as e:
            click.echo(f"Error: Invalid config {config_path}: {e}", err=True)
            sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["config"] = replace(config, sysfs_root=resolve_sysfs_root(sysfs_root, config))


def _expected_throughput(device: Device) -> float | None:
    """Theoretical throughput of the device's maximum link, if known."""
    entry = version_for_speed(device.max_link_speed)
    lanes = parse_first_int(device.max_link_width)
    if entry is None or lanes is None:
        return None
    try:
        return throughput_gbps(entry.version, lanes)
    except ValueError:
        return None


def _format_ratio(ratio: float | None) -> str:
    return "n/a" if ratio is None else f"{ratio:.0%}"


@main.command("serve")
@click.option("--listen-address", type=str, default=None, help="HTTP listen address (default :9808)")
@click.option("--log-level", type=str, default=None, help="Logging level (default INFO)")
@click.pass_context
def serve_command(ctx: click.Context, listen_address: str | None, log_level: str | None) -> None:
    """Serve /metrics, /pcie-tree and /healthz over HTTP."""
    from pcie_exporter.exporter.server import serve

    config: ExporterConfig = ctx.obj["config"]
    if listen_address:
        config = replace(config, listen_address=listen_address)
    if log_level:
        config = replace(config, log_level=log_level.upper())

    try:
        logging.basicConfig(
            level=config.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        serve(config)
    except KeyboardInterrupt:
        click.echo("Exporter stopped")
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"Error: Cannot listen on {config.listen_address}: {e}", err=True)
        sys.exit(1)


@main.command("list")
@click.pass_context
def list_devices(ctx: click.Context) -> None:
    """List PCIe devices and their negotiated link state."""
    config: ExporterConfig = ctx.obj["config"]

    try:
        devices = read_devices(config.sysfs_root, speed_tolerance=config.speed_tolerance)
    except ScrapeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if ctx.obj["json"]:
        output = []
        for d in devices:
            entry = version_for_speed(d.max_link_speed)
            output.append(
                {
                    "address": d.address,
                    "vendor_id": d.vendor_id,
                    "device_id": d.device_id,
                    "class": d.class_code,
                    "current_link_speed": d.current_link_speed,
                    "max_link_speed": d.max_link_speed,
                    "current_link_width": d.current_link_width,
                    "max_link_width": d.max_link_width,
                    "negotiated_ok": d.negotiated_ok,
                    "speed_ratio": d.speed_ratio,
                    "width_ratio": d.width_ratio,
                    "pcie_gen": entry.generation.value if entry else None,
                    "max_throughput_gbps": _expected_throughput(d),
                }
            )
        click.echo(json.dumps(output, indent=2))
        return

    if not devices:
        click.echo("No PCIe devices with link information found.")
        return

    click.echo(f"Found {len(devices)} device(s):")
    click.echo()
    for d in devices:
        if d.negotiated_ok:
            state = "[ok]"
        else:
            state = (
                f"[degraded speed {_format_ratio(d.speed_ratio)}"
                f" width {_format_ratio(d.width_ratio)}]"
            )
        current = format_link_summary(d.current_link_speed, d.current_link_width)
        maximum = format_link_summary(d.max_link_speed, d.max_link_width)
        click.echo(f"  {d.address}: {current} of {maximum} {state}")
        throughput = _expected_throughput(d)
        if throughput is not None:
            click.echo(f"    max throughput: {throughput:.2f} GB/s")


@main.command("tree")
@click.argument("bdf", required=False)
@click.pass_context
def show_tree(ctx: click.Context, bdf: str | None) -> None:
    """Show the PCIe topology tree.

    BDF optionally restricts output to the subtree under that device
    (e.g., 0000:00:01.0).
    """
    from pcie_exporter.exporter.tree import tree_to_json
    from pcie_exporter.topology import find_node, iter_tree, read_tree

    config: ExporterConfig = ctx.obj["config"]

    if bdf is not None:
        try:
            validate_bdf(bdf)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    try:
        roots = read_tree(config.sysfs_root)
    except ScrapeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if bdf is not None:
        node = find_node(roots, bdf)
        if node is None:
            click.echo(f"Error: Device {bdf} not found", err=True)
            sys.exit(1)
        roots = [node]

    if ctx.obj["json"]:
        click.echo(tree_to_json(roots).decode("utf-8"), nl=False)
        return

    for depth, node in iter_tree(roots):
        indent = "  " * depth
        click.echo(f"{indent}{node.bus_id} {node.name} [{node.link_status} / {node.link_capacity}]")


@main.command("metrics")
@click.pass_context
def show_metrics(ctx: click.Context) -> None:
    """Print one scrape in Prometheus text format."""
    from pcie_exporter.exporter import ScrapeCounters, render_metrics, scrape_devices

    config: ExporterConfig = ctx.obj["config"]
    counters = ScrapeCounters()
    result = scrape_devices(config.sysfs_root, counters, speed_tolerance=config.speed_tolerance)
    click.echo(render_metrics(result, counters).decode("utf-8"), nl=False)
    if not result.success:
        sys.exit(1)


@main.command("bandwidth")
@click.argument("version", required=False)
@click.argument("lanes", type=int, required=False)
@click.pass_context
def show_bandwidth(ctx: click.Context, version: str | None, lanes: int | None) -> None:
    """Show theoretical PCIe throughput.

    With VERSION and LANES (e.g., 4.0 16), show a single value; without
    arguments, show the whole table.
    """
    table = get_table()

    if version is not None and lanes is not None:
        entry = table.lookup_version(version)
        if entry is None:
            click.echo(f"Error: unsupported PCIe version {version!r}", err=True)
            sys.exit(1)
        try:
            value = table.throughput_gbps(version, lanes)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        if ctx.obj["json"]:
            result = {
                "version": entry.version,
                "pcie_gen": entry.generation.value,
                "transfer_rate_gtps": entry.transfer_rate_gtps,
                "lanes": lanes,
                "throughput_gbps": value,
            }
            click.echo(json.dumps(result, indent=2))
        else:
            click.echo(f"PCIe {entry.version} ({entry.format_specs()}) x{lanes}: {value:.2f} GB/s")
        return

    if version is not None:
        click.echo("Error: LANES is required with VERSION", err=True)
        sys.exit(1)

    if ctx.obj["json"]:
        output = [
            {
                "version": entry.version,
                "pcie_gen": entry.generation.value,
                "transfer_rate_gtps": entry.transfer_rate_gtps,
                "throughput_gbps": {str(k): v for k, v in entry.throughput_gbps.items()},
            }
            for entry in table
        ]
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(f"{'Version':<10}{'Rate':<12}" + "".join(f"{'x' + str(n):>10}" for n in LANE_COUNTS))
    for entry in table:
        row = "".join(f"{entry.throughput_gbps[n]:>10.2f}" for n in LANE_COUNTS)
        click.echo(f"{entry.version:<10}{entry.transfer_rate_gtps:<12.1f}{row}")
