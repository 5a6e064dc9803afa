"""CLI interface for bucketsync."""

import logging
from typing import Any, Optional

import click

from . import __version__
from .config import config
from .exceptions import BucketSyncError, TooManyOpenFilesError, ValidationError
from .output import OutputFormatter
from .storage import StorageOptions
from .sync import SyncEngine, SyncOptions

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_FATAL = 3


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what commands would be executed without running them",
)
@click.option(
    "--workers",
    "-w",
    type=int,
    default=None,
    help="Number of parallel workers (default: 16, env: BUCKETSYNC_WORKERS)",
)
@click.option(
    "--endpoint-url",
    envvar="BUCKETSYNC_ENDPOINT_URL",
    default=None,
    help="Override the default S3 endpoint URL",
)
@click.option(
    "--no-verify-ssl",
    is_flag=True,
    help="Disable SSL certificate verification",
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: Any,
    quiet: bool,
    json: bool,
    verbose: bool,
    dry_run: bool,
    workers: Optional[int],
    endpoint_url: Optional[str],
    no_verify_ssl: bool,
) -> None:
    """bucketsync - Sync local directories and S3 buckets."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["dry_run"] = dry_run
    ctx.obj["workers"] = workers or config.get_default_workers()
    ctx.obj["storage_options"] = StorageOptions(
        endpoint_url=endpoint_url or config.endpoint_url,
        region=config.region,
        no_verify_ssl=no_verify_ssl or config.no_verify_ssl,
        max_retries=config.get_max_retries(),
        max_pool_connections=max(ctx.obj["workers"], 10),
    )

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("bucketsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument("source")
@click.argument("destination")
@click.option(
    "--delete",
    is_flag=True,
    help="Delete objects in destination but not in source",
)
@click.option(
    "--size-only",
    is_flag=True,
    help="Make size of object the only criteria to decide whether it is synced",
)
@click.option(
    "--exclude",
    multiple=True,
    help="Exclude objects with given pattern (can be used multiple times)",
)
@click.option("--sse", default=None, help="Server side encryption, e.g. aws:kms")
@click.option("--sse-kms-key-id", default=None, help="KMS key id for SSE")
@click.option(
    "--storage-class",
    default=None,
    help="Storage class of the destination objects, e.g. STANDARD_IA",
)
@click.option(
    "--raw",
    is_flag=True,
    help="Disable wildcard expansion of the source",
)
@click.option("--source-region", default=None, help="Region of the source bucket")
@click.option(
    "--destination-region", default=None, help="Region of the destination bucket"
)
@click.option(
    "--no-follow-symlinks",
    is_flag=True,
    help="Do not follow symbolic links",
)
@click.pass_context
def sync(
    ctx: Any,
    source: str,
    destination: str,
    delete: bool,
    size_only: bool,
    exclude: tuple[str, ...],
    sse: Optional[str],
    sse_kms_key_id: Optional[str],
    storage_class: Optional[str],
    raw: bool,
    source_region: Optional[str],
    destination_region: Optional[str],
    no_follow_symlinks: bool,
) -> None:
    """Sync objects from SOURCE to DESTINATION.

    SOURCE and DESTINATION are local paths or s3://bucket/prefix URLs.
    The source may contain wildcards.

    Examples:
        # Sync local folder to s3 bucket
        bucketsync sync folder/ s3://bucket/

        # Sync S3 bucket to local folder
        bucketsync sync "s3://bucket/*" folder/

        # Sync objects under a prefix to another bucket
        bucketsync sync "s3://sourcebucket/prefix/*" s3://destbucket/

        # Delete files that the bucket has but the folder does not
        bucketsync sync --delete folder/ s3://bucket/

        # Compare sizes only
        bucketsync sync --size-only "s3://bucket/*" folder/

        # Exclude txt and gz files
        bucketsync sync --exclude "*.txt" --exclude "*.gz" dir/ s3://bucket
    """
    out: OutputFormatter = ctx.obj["out"]
    command = f"sync {source} {destination}"

    options = SyncOptions(
        delete=delete,
        size_only=size_only,
        exclude=list(exclude),
        sse=sse,
        sse_kms_key_id=sse_kms_key_id,
        storage_class=storage_class,
        raw=raw,
        source_region=source_region,
        destination_region=destination_region,
        follow_symlinks=not no_follow_symlinks,
        workers=ctx.obj["workers"],
        dry_run=ctx.obj["dry_run"],
    )

    engine = SyncEngine(out, storage_options=ctx.obj["storage_options"])

    try:
        result = engine.sync(source, destination, options, command=command)
    except ValidationError as e:
        out.command_error(command, e)
        ctx.exit(EXIT_ERROR)
        return  # Unreachable, but helps type checker
    except TooManyOpenFilesError as e:
        logger.debug("Terminating: %s", e)
        ctx.exit(EXIT_FATAL)
        return
    except BucketSyncError as e:
        out.command_error(command, e)
        ctx.exit(EXIT_ERROR)
        return
    except KeyboardInterrupt:
        out.warning("Sync cancelled by user")
        ctx.exit(EXIT_ERROR)
        return

    if out.json_output:
        out.output_json(result.as_dict())

    if result.error is not None:
        ctx.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
