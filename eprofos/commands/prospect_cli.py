"""
Prospect CLI Commands - Consolidation et rattachement des points de contact

Usage:
    flask prospects consolidate
    flask prospects link-touchpoints --dry-run
    flask prospects link-touchpoints --no-consolidate
    flask prospects show --email "marie.curie@example.com"
"""

import click
from flask.cli import with_appcontext

from eprofos.services.consolidator import DuplicateConsolidator
from eprofos.services.prospect_store import ProspectStore
from eprofos.services.touchpoint_merger import TouchpointMerger


@click.group()
def prospects():
    """Prospect identity management commands."""
    pass


# ============================================================================
# Consolidation
# ============================================================================

def _echo_consolidation(report):
    click.echo(f"\nDuplicate groups processed: {report.groups_processed}")
    click.secho(f"✓ Merged {report.merged_count} duplicate prospects", fg='green')
    for email, error in report.failed_groups:
        click.secho(f"✗ {email}: {error}", fg='red')


@prospects.command('consolidate')
@with_appcontext
def consolidate():
    """Merge prospects that share the same email address."""

    report = DuplicateConsolidator().consolidate()
    _echo_consolidation(report)

    if not report.ok:
        click.get_current_context().exit(1)


# ============================================================================
# Backfill
# ============================================================================

@prospects.command('link-touchpoints')
@click.option('--dry-run', is_flag=True, default=False, help='Count unlinked touchpoints without changing anything')
@click.option('--consolidate/--no-consolidate', 'run_consolidation', default=True,
              help='Merge duplicate prospects once linking is done')
@with_appcontext
def link_touchpoints(dry_run, run_consolidation):
    """Create or update prospects for every touchpoint not linked yet."""

    if dry_run:
        click.secho("DRY RUN - no changes will be persisted", fg='yellow')

    report = TouchpointMerger().link_unlinked_touchpoints(dry_run=dry_run)

    for kind, found in report.found.items():
        click.echo(f"{kind:<22} found: {found:>5}   linked: {report.linked.get(kind, 0):>5}")

    for kind, record_id, error in report.failures:
        click.secho(f"✗ {kind} #{record_id}: {error}", fg='red')

    if not dry_run:
        click.secho(f"✓ Linked {report.total_linked} touchpoints", fg='green')
        if run_consolidation:
            _echo_consolidation(DuplicateConsolidator().consolidate())


# ============================================================================
# Inspection
# ============================================================================

@prospects.command('show')
@click.option('--email', required=True, help='Prospect email')
@with_appcontext
def show(email):
    """Show a prospect and its timeline."""

    store = ProspectStore()
    matches = store.list_by_email(email)

    if not matches:
        click.echo("No prospect found")
        return

    if len(matches) > 1:
        click.secho(f"⚠ {len(matches)} prospects share this email, run `flask prospects consolidate`", fg='yellow')

    prospect = matches[0]
    click.echo(f"\n👤 {prospect.full_name} <{prospect.email}>")
    click.echo(f"{'─' * 50}")
    click.echo(f"ID:              {prospect.id}")
    click.echo(f"Status:          {prospect.status_label}")
    click.echo(f"Source:          {prospect.source or '—'}")
    click.echo(f"Company:         {prospect.company or '—'}")
    click.echo(f"Phone:           {prospect.phone or '—'}")
    click.echo(f"Lead score:      {prospect.lead_score()}")

    interactions = prospect.all_interactions()
    click.echo(f"\n📅 {len(interactions)} interactions")
    for interaction in interactions:
        date = interaction['date'].strftime('%Y-%m-%d %H:%M') if interaction['date'] else '—'
        click.echo(f"  - {date} {interaction['title']}")


# ============================================================================
# Initialization
# ============================================================================

def init_prospect_cli(app):
    """Register prospect CLI commands with the Flask app."""
    app.cli.add_command(prospects)
