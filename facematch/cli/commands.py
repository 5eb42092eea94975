"""CLI commands for face matching."""
import json
import logging
import click
from pathlib import Path

from facematch.services.match_service import MatchService
from facematch.services.classifier import MatchOutcome
from facematch.utils.config_loader import load_config, get_config
from facematch.exceptions import (
    DimensionMismatchError, NoFingerprintError, StoreUnavailableError, UnsupportedFormatError
)


@click.group()
@click.option("--ref-dir", default=None, help="Reference images directory")
@click.pass_context
def cli(ctx, ref_dir: str | None):
    """Face Match CLI."""
    cfg = load_config()
    logging.basicConfig(level=cfg.get("logging", {}).get("level", "WARNING"))
    ctx.ensure_object(dict)
    ctx.obj["ref_dir"] = ref_dir


def _service(ctx, demo: bool | None = None) -> MatchService:
    return MatchService(reference_dir=ctx.obj.get("ref_dir"), demo=demo)


def _echo_decision(decision) -> None:
    data = decision.to_dict()
    if decision.outcome is MatchOutcome.MATCHED:
        click.echo(f"Match found: {decision.filename} ({data['confidence']})")
        for metric, value in data["details"].items():
            click.echo(f"   {metric.capitalize()}: {value}")
    elif decision.outcome is MatchOutcome.POSSIBLE:
        click.echo(f"Possible match: {decision.filename} ({data['confidence']})")
        click.echo("   Manual verification required.")
    else:
        click.echo("No match found.")
        if decision.error:
            click.echo(f"Error: {decision.error}", err=True)
        elif "confidence" in data:
            click.echo(f"   Best score: {data['confidence']}")


@cli.command()
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the decision as JSON")
@click.option("--demo", is_flag=True, help="Match against the simulated demo set")
@click.pass_context
def match(ctx, image_path: str, as_json: bool, demo: bool):
    """Match an image against the reference directory."""
    service = _service(ctx, demo or None)
    count = service.reload()
    if not as_json:
        click.echo(f"Loaded {count} reference images from: {service.reference_dir}")

    try:
        decision = service.match_file(image_path)
    except DimensionMismatchError as e:
        raise click.ClickException(f"Internal error: {e}")

    if as_json:
        click.echo(json.dumps(decision.to_dict()))
    else:
        _echo_decision(decision)


@cli.command()
@click.option("--demo", is_flag=True, help="Load the simulated demo set")
@click.pass_context
def reload(ctx, demo: bool):
    """Fingerprint every image in the reference directory."""
    service = _service(ctx, demo or None)
    click.echo(f"Loading reference images from: {service.reference_dir}")
    count = service.reload()
    click.echo(f"Loaded {count} faces.")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", default=None, help="Name to store the face under")
@click.pass_context
def add(ctx, source: str, name: str | None):
    """Copy an image into the reference directory."""
    service = _service(ctx)
    content = Path(source).read_bytes()

    try:
        filename = service.add_reference(content, name or Path(source).stem)
    except (UnsupportedFormatError, NoFingerprintError, StoreUnavailableError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(f"Face added to database as {filename}.")


@cli.command()
@click.argument("filename")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def remove(ctx, filename: str, yes: bool):
    """Remove an image from the reference directory."""
    service = _service(ctx)

    if not yes:
        click.confirm(f"Remove {filename} from the database?", abort=True)

    try:
        removed = service.remove_reference(filename)
    except StoreUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    if not removed:
        click.echo(f"Not found: {filename}", err=True)
        ctx.exit(1)
    click.echo(f"Removed {filename}.")


@cli.command(name="list")
@click.pass_context
def list_references(ctx):
    """List reference images."""
    service = _service(ctx)
    try:
        images = service.list_references()
    except StoreUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(f"Face Database ({len(images)})")
    for image in images:
        click.echo(f"  {image.filename}  {image.size:,} bytes")


@cli.command()
def config():
    """Show current configuration."""
    import yaml
    click.echo(yaml.dump(get_config(), default_flow_style=False))


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", default=None, type=int, help="Port")
@click.pass_context
def serve(ctx, host: str | None, port: int | None):
    """Run the HTTP API."""
    import uvicorn
    from facematch.api.main import create_app

    api_cfg = get_config().get("api", {})
    host = host or api_cfg.get("host", "0.0.0.0")
    port = port or api_cfg.get("port", 5000)

    click.echo(f"Face Recognition Service running on port {port}")
    click.echo(f"Health check: http://localhost:{port}/health")
    uvicorn.run(create_app(_service(ctx)), host=host, port=port)


if __name__ == "__main__":
    cli()
