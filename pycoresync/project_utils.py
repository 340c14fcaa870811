"""Project root detection and display utilities."""

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

NEXT_CONFIG_NAMES = ("next.config.js", "next.config.mjs", "next.config.ts")


def is_project_root(directory: Path) -> bool:
    """Check if a directory is the root of a Next.js project.

    A root has a package.json declaring ``next`` as a dependency or
    dev dependency, and a Next.js config file.

    Args:
        directory: Directory to check

    Returns:
        True if the directory looks like a Next.js project root
    """
    package_json = directory / "package.json"
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot read {package_json}: {e}")
        return False

    if not isinstance(data, dict):
        return False

    deps: dict = {}
    for key in ("dependencies", "devDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            deps.update(section)
    if "next" not in deps:
        return False

    return any((directory / name).is_file() for name in NEXT_CONFIG_NAMES)


def format_revision_display(revision: Optional[str]) -> str:
    """Format a tracked revision for display.

    Examples:
        >>> format_revision_display(None)
        '(none)'
        >>> format_revision_display("aaa111")
        'aaa111'
    """
    return revision if revision else "(none)"
