# cli.py
import json
import logging

import click

from vault_api.config.settings import get_settings
from vault_api.database import build_metadata_store
from vault_api.storage import S3BlobStore, build_blob_store
from vault_api.services.reconcile import ReconciliationSweep
from vault_api.utils.logging_setup import configure_logging

# Configure logging
logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for the file vault"""
    configure_logging(get_settings())


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    click.echo(f"  Deployment Mode: {settings.deployment_mode}")
    click.echo(f"  AWS Region: {settings.aws_region}")
    click.echo(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    click.echo(f"  Bucket: {settings.s3_bucket_name}")
    click.echo(f"  Storage Dir: {settings.storage_dir}")
    click.echo(f"  Database: {settings.db_path}")
    click.echo(f"  Auth Provider: {settings.auth_url}")
    click.echo(f"  Compensate Orphaned Blobs: {settings.compensate_orphaned_blobs}")


@cli.command()
def init():
    """Create the metadata schema and, for S3 modes other than aws-prod, the bucket"""
    settings = get_settings()

    build_metadata_store(settings)
    click.echo(f"Metadata store ready at {settings.db_path}")

    blob_store = build_blob_store(settings)
    if isinstance(blob_store, S3BlobStore):
        if settings.deployment_mode == "aws-prod":
            blob_store.ping()
            click.echo(f"Bucket {settings.s3_bucket_name} is reachable")
        elif blob_store.ensure_bucket():
            click.echo(f"Created bucket {settings.s3_bucket_name}")
        else:
            click.echo(f"Bucket {settings.s3_bucket_name} already exists")
    else:
        blob_store.ping()
        click.echo(f"Local blob store ready at {blob_store.root}")


@cli.command()
@click.option("--apply", "apply_fixes", is_flag=True, default=False,
              help="Remove orphaned blobs and delete dangling records")
@click.option("--min-age", type=int, default=None,
              help="Ignore blobs younger than this many seconds (default from settings)")
def reconcile(apply_fixes, min_age):
    """Find blobs without records and records without blobs"""
    settings = get_settings()
    sweep = ReconciliationSweep(
        blob_store=build_blob_store(settings),
        metadata_store=build_metadata_store(settings),
        min_age_seconds=settings.reconcile_min_age_seconds if min_age is None else min_age,
    )

    report = sweep.scan()
    click.echo(json.dumps(report.to_dict(), indent=2))

    if report.clean:
        click.echo("Stores are consistent")
        return
    if not apply_fixes:
        click.echo("Run again with --apply to repair")
        return

    result = sweep.apply(report)
    click.echo(f"Removed {len(result.removed_blobs)} orphaned blob(s), "
               f"deleted {len(result.deleted_records)} dangling record(s)")
    if result.errors:
        for error in result.errors:
            click.echo(f"  failed: {error}", err=True)
        raise SystemExit(1)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(host, port):
    """Run the API with uvicorn"""
    import uvicorn

    from vault_api.main import create_app

    uvicorn.run(create_app(get_settings()), host=host, port=port)


if __name__ == "__main__":
    cli()
