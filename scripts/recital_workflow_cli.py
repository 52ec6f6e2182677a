#!/usr/bin/env python3
"""
Recital Workflow CLI

Runs the recital workflow against a planning workbook.

Usage:
    # Build recitals, update dates and history, and log the run
    python scripts/recital_workflow_cli.py run --workbook Recitals.xlsm

    # Print the programs without writing anything
    python scripts/recital_workflow_cli.py preview --workbook Recitals.xlsm

    # Show the pieces for recital 2, or clear the recital filters
    python scripts/recital_workflow_cli.py filter 2 --workbook Recitals.xlsm
    python scripts/recital_workflow_cli.py filter clear --workbook Recitals.xlsm
"""

import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging

import click
from dotenv import load_dotenv

from backend.config import get_settings
from services.errors import RecitalWorkflowError
from services.filter_service import CLEAR, FilterService
from services.recital_service import RecitalService
from services.workbook_service import WorkbookStore
from services.workflow_service import RecitalWorkflowService

# Load environment variables
load_dotenv()

logger = logging.getLogger('recital_workflow_cli')


def configure_logging():
    """Log to the configured file and to stdout."""
    settings = get_settings()
    level = os.getenv('LOG_LEVEL', settings.LOG_LEVEL)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.FileHandler(os.getenv('LOG_FILE', settings.LOG_FILE)),
            logging.StreamHandler(sys.stdout)
        ]
    )


def workbook_option(func):
    return click.option(
        '--workbook', '-w', envvar='WORKBOOK_PATH', required=True,
        type=click.Path(exists=True, dir_okay=False),
        help='Path to the recital planning workbook'
    )(func)


def fail(action: str, error: Exception):
    """Report a failed command in red and exit non-zero."""
    logger.error(f"{action} failed: {error}", exc_info=True)
    click.secho(f"\n✗ {action} failed: {error}", fg='red', err=True)
    sys.exit(1)


@click.group()
def cli():
    """Recital planning workbook tools."""
    configure_logging()


@cli.command('run')
@workbook_option
def run_cmd(workbook: str):
    """Build recitals and write dates, history and the workflow log."""

    def on_progress(stage: str, percent: float, message: str):
        click.echo(f"[{percent:5.1f}%] {message}")

    try:
        store = WorkbookStore(workbook)
        service = RecitalWorkflowService(store, progress_callback=on_progress)
        result = service.run()
    except (RecitalWorkflowError, ValueError) as e:
        fail('Workflow', e)

    dates = result.get('dates')
    if dates and dates['missing']:
        click.echo(f"\n⚠️  Compositions not in the repertoire list: "
                   f"{', '.join(str(i) for i in dates['missing'])}", err=True)

    click.echo(f"\n✓ {len(result['recitals'])} recitals processed")
    click.echo(f"Workflow log: {result['log_entry'][0]} ({result['log_entry'][1]})")


@cli.command('preview')
@workbook_option
def preview_cmd(workbook: str):
    """Print each recital's program without changing the workbook."""
    try:
        store = WorkbookStore(workbook)
        service = RecitalService(store)
        recitals = service.build_recitals(service.load_options())
    except (RecitalWorkflowError, ValueError) as e:
        fail('Preview', e)

    if not recitals:
        click.echo("No recitals found.")
        return

    click.echo("\n".join(recital.program for recital in recitals), nl=False)


@cli.command('filter')
@click.argument('index', type=click.Choice(['1', '2', '3', '4', CLEAR], case_sensitive=False))
@workbook_option
def filter_cmd(index: str, workbook: str):
    """Filter the repertoire list on a recital order column (1-4), or clear."""
    try:
        store = WorkbookStore(workbook)
        column = FilterService(store).filter(index)
    except (RecitalWorkflowError, ValueError) as e:
        fail('Filter', e)

    if column:
        click.echo(f"✓ Showing pieces marked for {column}")
    else:
        click.echo("✓ Recital order filters cleared")


if __name__ == '__main__':
    cli()
