import logging
import os

import click
from rich.logging import RichHandler

from . import constants
from .core import SageProvisioner
from .errors import ProvisionerError
from .services.config_loader import ConfigLoader
from .services.session_log import attach_session_log


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {constants.DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--host",
    required=False,
    help=f"Host part of the connection target (default: {constants.DEFAULT_HOST}).",
)
@click.option(
    "--log-dir",
    required=False,
    type=click.Path(file_okay=False),
    help=f"Directory for the session log file (default: ./{constants.DEFAULT_LOG_DIR}).",
)
@click.option(
    "--select",
    "selection",
    required=False,
    help="1-based number of the instance to provision, instead of prompting.",
)
@click.option(
    "--dsn-platform",
    required=False,
    type=click.Choice(constants.DSN_PLATFORMS),
    help=f"ODBC platform for the system data sources (default: {constants.DEFAULT_DSN_PLATFORM}).",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Discover and select an instance, print the provisioning plan and change nothing.",
)
def main(config, host, log_dir, selection, dsn_platform, verbose, dry_run):
    """Provision a SQL Server instance, IIS and ODBC data sources for Sage."""
    logger = logging.getLogger("sageprovisioner")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), constants.DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except ProvisionerError as exc:
        raise click.ClickException(str(exc)) from exc

    host = _resolve_option(host, config_values, "host", default=constants.DEFAULT_HOST)
    log_dir = _resolve_option(log_dir, config_values, "log_dir", default=constants.DEFAULT_LOG_DIR)
    selection = _resolve_option(selection, config_values, "select")
    dsn_platform = _resolve_option(
        dsn_platform, config_values, "dsn_platform", default=constants.DEFAULT_DSN_PLATFORM
    )
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    try:
        log_file = attach_session_log(
            logger, str(log_dir), level=logging.DEBUG if verbose else logging.INFO
        )
    except OSError as exc:
        raise click.ClickException(f"Could not create session log in '{log_dir}': {exc}") from exc

    try:
        provisioner = SageProvisioner(
            host=str(host),
            selection=None if selection is None else str(selection),
            dsn_platform=str(dsn_platform),
            dry_run=dry_run,
            log_file=log_file,
        )
    except ProvisionerError as exc:
        logger.error(str(exc))
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(provisioner.run())


if __name__ == "__main__":
    main()
