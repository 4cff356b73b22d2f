"""
CLI interface for work log inspection and recording.

Provides command-line tools to initialize a log, record entries, and browse
history, branches, diffs and tags.
"""

import json
from pathlib import Path
from typing import Optional, Tuple

import click

from worklog.config import config
from worklog.history import (
    ChangeType,
    FileChange,
    OperationType,
    WorkLog,
    WorkLogError,
    format_diff,
    format_entry_full,
    format_entry_oneline,
)
from worklog.history.formatting import format_timestamp
from worklog.logging import initialize_logging

OPERATION_CHOICES = click.Choice([op.value for op in OperationType])


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def _parse_metadata(pairs: Tuple[str, ...]) -> Optional[dict]:
    if not pairs:
        return None

    metadata = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--meta")
        metadata[key] = value
    return metadata


@click.group()
@click.option(
    "--project",
    "-C",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project directory holding the work log",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, project: Path, verbose: bool):
    """Branching operation log for generated projects."""
    initialize_logging(
        log_dir=Path(config.logging.log_dir),
        level="DEBUG" if verbose else "WARNING",
        enable_file_logging=config.logging.enable_file_logging,
        enable_console_logging=config.logging.enable_console_logging,
    )
    ctx.obj = WorkLog(project)


@cli.command()
@click.argument("project_id")
@click.pass_obj
def init(work_log: WorkLog, project_id: str):
    """Initialize a work log for PROJECT_ID."""
    if work_log.init(project_id):
        click.echo(f"Initialized work log in {work_log.storage.base_dir}")
    else:
        click.echo(f"Work log already exists in {work_log.storage.base_dir}")


@cli.command()
@click.option("--op", "operation", type=OPERATION_CHOICES, required=True, help="Operation kind")
@click.option("--message", "-m", required=True, help="Entry message")
@click.option("--author", default="cli", show_default=True, help="Author of the change")
@click.option("--project-id", help="Project ID (default: the default branch's project)")
@click.option("--branch", "-b", help="Target branch")
@click.option("--add", "added", multiple=True, help="Path added")
@click.option("--modify", "modified", multiple=True, help="Path modified")
@click.option("--delete", "deleted", multiple=True, help="Path deleted")
@click.option("--rename", "renamed", nargs=2, multiple=True, help="OLD NEW path pair")
@click.option("--tag", "tags", multiple=True, help="Tag for the entry")
@click.option("--meta", multiple=True, help="Metadata as KEY=VALUE")
@click.pass_obj
def record(
    work_log: WorkLog,
    operation: str,
    message: str,
    author: str,
    project_id: Optional[str],
    branch: Optional[str],
    added: Tuple[str, ...],
    modified: Tuple[str, ...],
    deleted: Tuple[str, ...],
    renamed: Tuple[Tuple[str, str], ...],
    tags: Tuple[str, ...],
    meta: Tuple[str, ...],
):
    """Record a new entry."""
    if project_id is None:
        head = work_log.get_head()
        project_id = head.project_id if head else work_log.project_path.name

    try:
        changes = (
            [FileChange(p, ChangeType.ADDED) for p in added]
            + [FileChange(p, ChangeType.MODIFIED) for p in modified]
            + [FileChange(p, ChangeType.DELETED) for p in deleted]
            + [FileChange(new, ChangeType.RENAMED, old_path=old) for old, new in renamed]
        )
        entry = work_log.record_entry(
            project_id=project_id,
            operation=operation,
            message=message,
            author=author,
            changes=changes,
            metadata=_parse_metadata(meta),
            tags=list(tags) or None,
            branch=branch,
        )
    except (WorkLogError, ValueError) as e:
        _fail(str(e))
        return

    click.echo(
        format_entry_oneline(entry, work_log.storage.store_config.short_id_length)
    )


@cli.command(name="log")
@click.option("--branch", "-b", help="Branch to show")
@click.option("--op", "operations", type=OPERATION_CHOICES, multiple=True, help="Operation filter")
@click.option("--author", help="Exact author filter")
@click.option("--tag", "tags", multiple=True, help="Match any of these tags")
@click.option("--search", "-s", help="Substring of message or path")
@click.option("--since", type=int, help="Inclusive lower bound, epoch ms")
@click.option("--until", type=int, help="Inclusive upper bound, epoch ms")
@click.option("--limit", "-n", type=click.IntRange(min=0), help="Maximum entries")
@click.option("--offset", type=click.IntRange(min=0), help="Entries to skip")
@click.option("--oneline", is_flag=True, help="One line per entry")
@click.pass_obj
def show_log(
    work_log: WorkLog,
    branch: Optional[str],
    operations: Tuple[str, ...],
    author: Optional[str],
    tags: Tuple[str, ...],
    search: Optional[str],
    since: Optional[int],
    until: Optional[int],
    limit: Optional[int],
    offset: Optional[int],
    oneline: bool,
):
    """Show branch history, newest first."""
    entries = work_log.get_log(
        branch,
        operation=list(operations) or None,
        author=author,
        tags=list(tags) or None,
        search=search,
        since=since,
        until=until,
        limit=limit,
        offset=offset,
    )

    if not entries:
        click.echo("No entries.")
        return

    short_id_length = work_log.storage.store_config.short_id_length
    for entry in entries:
        if oneline:
            click.echo(format_entry_oneline(entry, short_id_length))
        else:
            click.echo(format_entry_full(entry))
            click.echo()


@cli.command()
@click.argument("entry_id")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON entry")
@click.pass_obj
def show(work_log: WorkLog, entry_id: str, as_json: bool):
    """Show a single entry."""
    entry = work_log.get_entry(entry_id)
    if entry is None:
        _fail(f"Entry not found: {entry_id}")
        return

    if as_json:
        click.echo(entry.to_json())
    else:
        click.echo(format_entry_full(entry))


@cli.command()
@click.argument("to_id")
@click.option("--from", "from_id", help="Base entry (default: start of history)")
@click.option("--branch", "-b", help="Branch whose history resolves the endpoints")
@click.option("--json", "as_json", is_flag=True, help="Print the diff as JSON")
@click.pass_obj
def diff(
    work_log: WorkLog,
    to_id: str,
    from_id: Optional[str],
    branch: Optional[str],
    as_json: bool,
):
    """Show net file changes up to TO_ID."""
    try:
        result = work_log.get_diff(from_id, to_id, branch=branch)
    except WorkLogError as e:
        _fail(str(e))
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(format_diff(result))


@cli.group()
def branch():
    """Manage branches."""
    pass


@branch.command(name="list")
@click.pass_obj
def branch_list(work_log: WorkLog):
    """List branches, oldest first."""
    for head in work_log.list_branches():
        head_id = head.entry_id or "(empty)"
        click.echo(f"{head.branch}\t{head_id}\t{format_timestamp(head.updated_at)}")


@branch.command(name="create")
@click.argument("name")
@click.option("--from", "from_branch", help="Branch to fork from")
@click.pass_obj
def branch_create(work_log: WorkLog, name: str, from_branch: Optional[str]):
    """Create branch NAME."""
    try:
        head = work_log.create_branch(name, from_branch)
    except WorkLogError as e:
        _fail(str(e))
        return

    click.echo(f"Created branch {head.branch} at {head.entry_id or '(empty)'}")


@branch.command(name="delete")
@click.argument("name")
@click.pass_obj
def branch_delete(work_log: WorkLog, name: str):
    """Delete branch NAME."""
    try:
        deleted = work_log.delete_branch(name)
    except WorkLogError as e:
        _fail(str(e))
        return

    if deleted:
        click.echo(f"Deleted branch {name}")
    else:
        _fail(f"Branch not found: {name}")


@cli.command()
@click.argument("entry_id")
@click.argument("tag_name")
@click.pass_obj
def tag(work_log: WorkLog, entry_id: str, tag_name: str):
    """Add TAG_NAME to an entry."""
    if work_log.tag_entry(entry_id, tag_name):
        click.echo(f"Tagged {entry_id} with '{tag_name}'")
    else:
        click.echo(f"Not tagged: entry missing or already has '{tag_name}'")


@cli.command()
@click.argument("entry_id")
@click.argument("tag_name")
@click.pass_obj
def untag(work_log: WorkLog, entry_id: str, tag_name: str):
    """Remove TAG_NAME from an entry."""
    if work_log.untag_entry(entry_id, tag_name):
        click.echo(f"Removed '{tag_name}' from {entry_id}")
    else:
        click.echo(f"Not untagged: entry missing or has no '{tag_name}'")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_obj
def summary(work_log: WorkLog, as_json: bool):
    """Show work log statistics."""
    result = work_log.get_summary()
    if result is None:
        _fail(f"No work log in {work_log.project_path}")
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo("Work Log Summary")
    click.echo("=" * 50)
    click.echo(f"Project: {result.project_id}")
    click.echo(f"Total Entries: {result.total_entries}")
    click.echo(f"Branches: {', '.join(result.branches)}")
    click.echo(f"Current Branch: {result.current_branch}")
    click.echo(f"Head: {result.head_entry_id or '(empty)'}")
    if result.first_entry is not None and result.last_entry is not None:
        click.echo(f"First Entry: {format_timestamp(result.first_entry)}")
        click.echo(f"Last Entry: {format_timestamp(result.last_entry)}")

    if result.operation_counts:
        click.echo("\nOperations:")
        for op, count in sorted(result.operation_counts.items()):
            click.echo(f"  {op}: {count}")


@cli.command()
@click.confirmation_option(prompt="Permanently delete the work log?")
@click.pass_obj
def destroy(work_log: WorkLog):
    """Delete the whole work log."""
    if work_log.destroy():
        click.echo(f"Removed {work_log.storage.base_dir}")
    else:
        click.echo("No work log to remove.")


if __name__ == "__main__":
    cli()
