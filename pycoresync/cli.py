"""CLI interface for pycoresync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import GitHubClient
from .cli_progress import UpdateProgressDisplay
from .config import SETTINGS, config
from .exceptions import (
    CoreSyncConfigError,
    CoreSyncError,
    CoreSyncTransplantError,
    CoreSyncVcsError,
)
from .output import OutputFormatter
from .project_utils import format_revision_display, is_project_root
from .sync import (
    CoreUpdateEngine,
    DriftReport,
    ProgressTracker,
    ReconcileResult,
    ReconciliationPolicy,
    RevisionTracker,
    UpdateOutcome,
    UpdateResult,
)
from .utils import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_IGNORED_FILES,
    DEFAULT_STAGING_DIR,
    normalize_relative_path,
    short_revision,
)

logger = logging.getLogger(__name__)

UPDATE_WARNING = (
    "WARNING: THIS ACTION CAN SERIOUSLY DAMAGE YOUR APPLICATION!\n"
    "I will attempt to pull the latest core files into this project.\n"
    "Ensure you have committed any unsaved changes, are on an appropriate "
    "branch and are not working against a production database.\n"
    "You have been warned!"
)

project_root_option = click.option(
    "--project-root",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Root directory of the project",
)


def prompt_policy() -> ReconciliationPolicy:
    """Ask the operator how to treat drifted files.

    Invalid answers are rejected and the question is asked again.

    Returns:
        The chosen ReconciliationPolicy
    """
    choice = click.prompt(
        "Choose action: Overwrite all (O), Skip modified files (S), Exit (E)",
        type=click.Choice(["O", "S", "E"], case_sensitive=False),
        show_choices=False,
    )
    return ReconciliationPolicy.from_string(choice)


def _display_drift(out: OutputFormatter, report: DriftReport) -> None:
    """Show missing and modified files."""
    if not report.has_drift:
        out.success("Local files match the tracked upstream revision.")
        return

    out.warning("The following files have been modified or are missing:")
    for path in report.missing:
        out.warning(f"  - MISSING: {path}")
    for path in report.modified:
        out.warning(f"  - MODIFIED: {path}")
    out.print("")


def _display_transplant_failure(out: OutputFormatter, result: ReconcileResult) -> None:
    """Show which files were and were not updated after a partial transplant."""
    if result.written:
        out.error(f"Updated before the failure ({len(result.written)}):")
        for path in result.written:
            out.error(f"  ✓ {path}")
    out.error(f"Failed ({len(result.failed)}):")
    for path, message in result.failed.items():
        out.error(f"  ✗ {path}: {message}")
    out.error("The tracked revision was not changed.")


def _display_result(out: OutputFormatter, result: UpdateResult) -> None:
    """Show the outcome of an update run."""
    local = short_revision(result.local_revision)
    remote = short_revision(result.remote_revision)

    if result.outcome == UpdateOutcome.UP_TO_DATE:
        out.success("Core is already up to date. No update needed.")
        return

    if result.outcome == UpdateOutcome.DRY_RUN:
        if result.report is not None:
            _display_drift(out, result.report)
        out.info(f"An update from {local} to {remote} is available.")
        out.info("Dry run: no changes were made.")
        return

    if result.outcome == UpdateOutcome.ABORTED:
        out.info("Exiting without changes.")
        return

    reconcile = result.reconcile
    items = [
        ("Previous revision", local),
        ("New revision", remote),
        ("Policy", result.policy.value if result.policy else "-"),
    ]
    if reconcile is not None:
        items.append(("Files updated", str(len(reconcile.written))))
        items.append(("Files kept", str(len(reconcile.skipped))))
    out.print_summary("Core Update Complete", items)

    if reconcile is not None and reconcile.skipped and not out.quiet:
        out.info("Left untouched:")
        for path in reconcile.skipped:
            out.info(f"  = {path}")

    if reconcile is not None and reconcile.warning:
        out.warning(f"Warning: files were updated but {reconcile.warning}")
        out.warning(
            f"Run 'pycoresync pin {result.remote_revision}' to record the revision."
        )

    out.success("Core update process complete.")


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pycoresync")
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """PyCoreSync - Keep a customized project in sync with its upstream core."""
    # Store settings in context for subcommands to access
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pycoresync").setLevel(logging.DEBUG)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)


@main.command()
@project_root_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option(
    "--dry-run", is_flag=True, help="Report drifted files without updating anything"
)
@click.option(
    "--policy",
    type=click.Choice(["o", "s", "e"], case_sensitive=False),
    default=None,
    help="Policy for drifted files instead of prompting: "
    "o (overwrite all), s (skip modified), e (exit)",
)
@click.option(
    "--ignore",
    "-i",
    multiple=True,
    help="Additional relative path to never compare or overwrite (repeatable)",
)
@click.option(
    "--workers",
    "-j",
    type=int,
    default=None,
    help="Number of parallel hashing workers (default: from config, 8)",
)
@click.option("--no-progress", is_flag=True, help="Disable progress display")
@click.option(
    "--force", is_flag=True, help="Skip the Next.js project root check"
)
@click.pass_context
def update(
    ctx: Any,
    project_root: Path,
    yes: bool,
    dry_run: bool,
    policy: Optional[str],
    ignore: tuple[str, ...],
    workers: Optional[int],
    no_progress: bool,
    force: bool,
) -> None:
    """Update core files to the latest upstream revision.

    Compares the project with the upstream revision it was last synced to.
    Files you changed are listed and you choose whether to overwrite
    them, keep them, or stop.

    Examples:
        pycoresync update                    # Interactive update
        pycoresync update --dry-run          # Only show drifted files
        pycoresync update -y --policy s      # Keep modified files, no prompts
        pycoresync update -i src/app/page.tsx
    """
    out: OutputFormatter = ctx.obj["out"]
    root = project_root.resolve()

    if not force and not is_project_root(root):
        out.error("Error: This command must be run from the root of a Next.js project.")
        ctx.exit(1)

    if workers is not None and workers < 1:
        out.error("Workers must be at least 1")
        ctx.exit(1)

    # Prompts would be mixed into the JSON document on stdout
    if out.json_output and not dry_run and not (yes and policy):
        out.error("--json requires --yes and --policy unless --dry-run is given")
        ctx.exit(1)

    if not yes and not dry_run:
        out.warning(UPDATE_WARNING)
        if not click.confirm("Continue?", default=False):
            out.info("Aborted by user. No changes were made.")
            return

    preset_policy = ReconciliationPolicy.from_string(policy) if policy else None

    def choose_policy(report: DriftReport) -> ReconciliationPolicy:
        _display_drift(out, report)
        if preset_policy is not None:
            out.info(f"Using policy: {preset_policy.value}")
            return preset_policy
        return prompt_policy()

    ignore_list = list(DEFAULT_IGNORED_FILES)
    ignore_list.extend(normalize_relative_path(p) for p in ignore)

    show_progress = not (no_progress or out.quiet or out.json_output)
    display = UpdateProgressDisplay() if show_progress else None
    tracker = display.create_tracker() if display else ProgressTracker()

    try:
        with GitHubClient() as client:
            engine = CoreUpdateEngine.for_project(
                root,
                resolver=client,
                repo_url=config.repo_url,
                branch=config.branch,
                ignore=ignore_list,
                max_workers=workers or config.workers,
                progress=tracker,
            )
            if not out.quiet:
                out.info(f"Project: {root}")
                out.info(f"Upstream: {config.repo_url} ({config.branch})")

            if display is not None:
                with display:
                    result = engine.run(choose_policy, dry_run=dry_run)
            else:
                result = engine.run(choose_policy, dry_run=dry_run)

    except CoreSyncTransplantError as e:
        _display_transplant_failure(out, e.result)
        out.error(f"Update failed: {e}")
        ctx.exit(1)
        return
    except CoreSyncVcsError as e:
        out.error(f"Git error: {e}")
        out.error(
            f"The staging directory was kept for inspection: "
            f"{root / DEFAULT_STAGING_DIR}"
        )
        ctx.exit(1)
        return
    except CoreSyncError as e:
        out.error(f"Error during core update: {e}")
        ctx.exit(1)
        return

    _display_result(out, result)

    if out.json_output:
        out.output_json(result.to_dict())


@main.command()
@project_root_option
@click.pass_context
def status(ctx: Any, project_root: Path) -> None:
    """Show the tracked and the latest upstream revision."""
    out: OutputFormatter = ctx.obj["out"]
    root = project_root.resolve()

    tracker = RevisionTracker(root / DEFAULT_CONFIG_FILE)
    local_revision = tracker.read()

    try:
        with GitHubClient() as client:
            remote_revision = client.get_latest_revision(config.branch)
    except CoreSyncError as e:
        out.error(f"Failed to resolve the latest upstream revision: {e}")
        ctx.exit(1)
        return

    up_to_date = local_revision == remote_revision

    if out.json_output:
        out.output_json(
            {
                "local_revision": local_revision,
                "remote_revision": remote_revision,
                "up_to_date": up_to_date,
            }
        )
        return

    out.print_summary(
        "Core Status",
        [
            ("Config file", str(tracker.config_path)),
            ("Tracked revision", format_revision_display(local_revision)),
            ("Latest revision", remote_revision),
            ("Branch", config.branch),
        ],
    )
    if local_revision is None:
        out.warning("No tracked revision. Run 'pycoresync pin <revision>' first.")
    elif up_to_date:
        out.success("Core is up to date.")
    else:
        out.info("An update is available. Run 'pycoresync update'.")


@main.command()
@click.argument("revision")
@project_root_option
@click.pass_context
def pin(ctx: Any, revision: str, project_root: Path) -> None:
    """Record REVISION as the upstream revision the project matches.

    Use this after creating a project from the upstream repository, or
    when the tracked revision could not be saved after an update.
    """
    out: OutputFormatter = ctx.obj["out"]
    tracker = RevisionTracker(project_root.resolve() / DEFAULT_CONFIG_FILE)

    try:
        changed = tracker.write(revision)
    except ValueError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except CoreSyncError as e:
        out.error(f"Failed to save tracked revision: {e}")
        ctx.exit(1)
        return

    if out.json_output:
        out.output_json({"revision": revision, "changed": changed})
    elif changed:
        out.success(f"✓ Tracked revision set to {revision}")
    else:
        out.info(f"Tracked revision already is {revision}")


@main.group("config")
def config_group() -> None:
    """Show or change pycoresync settings."""


@config_group.command("show")
@click.pass_context
def config_show(ctx: Any) -> None:
    """Show resolved settings."""
    out: OutputFormatter = ctx.obj["out"]
    values = config.as_dict()
    if values.get("github_token"):
        values["github_token"] = "********"

    if out.json_output:
        out.output_json(values)
        return

    items = [(key, value or "-") for key, value in values.items()]
    items.append(("config file", str(config.get_config_path())))
    out.print_summary("Settings", items)


@config_group.command("set")
@click.argument("key", type=click.Choice(sorted(SETTINGS)))
@click.argument("value")
@click.pass_context
def config_set(ctx: Any, key: str, value: str) -> None:
    """Persist a setting in the user config file."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        config.save_value(key, value)
    except CoreSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    out.success(f"✓ Saved {key}")


if __name__ == "__main__":
    main()
