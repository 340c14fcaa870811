"""Tracking of the upstream revision a project was last synced to.

The revision lives in a small delimited block inside the project's
configuration file (a TypeScript module)::

    export const supachargerConfig = {
      // pycoresync: tracked upstream revision - do not edit
      CLI_INSTALL_HASH: '4f2a9c...',
      ...
    };

Everything outside that block is treated as opaque text and is preserved
byte for byte, including line endings.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from ..exceptions import CoreSyncConfigWriteError

logger = logging.getLogger(__name__)

REVISION_KEY = "CLI_INSTALL_HASH"
REVISION_MARKER = "// pycoresync: tracked upstream revision - do not edit"
SYNTHESIZED_NAME = "cliInstallState"

_REVISION_RE = re.compile(r"^[0-9a-fA-F]{4,64}$")

# Lenient lookup used for reading: the key bound to a quoted hex string
_READ_RE = re.compile(REVISION_KEY + r"\s*:\s*['\"`]([0-9a-fA-F]+)['\"`]")

# A line consisting only of the key/value pair
_KEY_LINE_RE = re.compile(
    r"^(?P<indent>[ \t]*)" + REVISION_KEY + r"\s*:\s*['\"`][^'\"`]*['\"`]\s*,?\s*$"
)

# The key/value pair embedded in a longer line
_KEY_INLINE_RE = re.compile(
    r"(?P<prefix>" + REVISION_KEY + r"\s*:\s*)(?P<quote>['\"`])[^'\"`]*(?P=quote)"
)

# Opening line of the object literal that receives the block
_ENCLOSING_RE = re.compile(
    r"^(?P<indent>[ \t]*)"
    r"(?:(?:export\s+)?(?:const|let|var)\s+[\w$]+(?:\s*:\s*[^=]+?)?\s*=|"
    r"module\.exports\s*=|export\s+default)"
    r"\s*\{\s*$"
)


def is_valid_revision(revision: str) -> bool:
    """Check if a string looks like a git commit identifier.

    Examples:
        >>> is_valid_revision("aaa111")
        True
        >>> is_valid_revision("main")
        False
    """
    return bool(_REVISION_RE.match(revision))


def _line_ending(line: str) -> str:
    """Return the line terminator of a line ("" for the last unterminated line)."""
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""


def _detect_newline(content: str) -> str:
    return "\r\n" if "\r\n" in content else "\n"


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith(("//", "/*", "*"))


class RevisionBlock:
    """Parser/writer for the tracked revision block."""

    @staticmethod
    def parse(content: str) -> Optional[str]:
        """Extract the tracked revision from file content.

        Args:
            content: Configuration file content

        Returns:
            Revision string, or None if absent or malformed
        """
        lines = content.splitlines()
        found = RevisionBlock.locate(lines)
        if found is None:
            return None
        match = _READ_RE.search(lines[found[0]])
        return match.group(1) if match else None

    @staticmethod
    def locate(lines: list[str]) -> Optional[tuple[int, "re.Match[str]"]]:
        """Find the line holding the live revision key.

        Commented-out lines never count. A key line directly below the
        marker wins over other key lines, and a line holding only the key
        wins over a key embedded in longer code.

        Args:
            lines: Content lines (with or without terminators)

        Returns:
            Line index and the key match, or None. The match comes from the
            whole-line pattern when the line holds only the key.
        """
        first: Optional[tuple[int, "re.Match[str]"]] = None
        for index, line in enumerate(lines):
            match = _KEY_LINE_RE.match(line.rstrip("\r\n"))
            if not match:
                continue
            if index > 0 and lines[index - 1].strip() == REVISION_MARKER:
                return index, match
            if first is None:
                first = index, match
        if first is not None:
            return first

        for index, line in enumerate(lines):
            if _is_comment(line):
                continue
            inline = _KEY_INLINE_RE.search(line)
            if inline:
                return index, inline
        return None

    @staticmethod
    def render(revision: str, indent: str = "  ", newline: str = "\n") -> str:
        """Render the block lines for a revision."""
        return (
            f"{indent}{REVISION_MARKER}{newline}"
            f"{indent}{REVISION_KEY}: '{revision}',{newline}"
        )

    @classmethod
    def insert(cls, content: str, revision: str) -> str:
        """Replace or insert the block in file content.

        The block is located the same way parse() finds it, so the value
        that is read back is always the one that was written.

        Args:
            content: Configuration file content
            revision: Revision to store

        Returns:
            Updated content. Writing the same revision again returns the
            content unchanged.

        Raises:
            CoreSyncConfigWriteError: If the content has neither a revision
                key nor an object literal to put one in
        """
        newline = _detect_newline(content)
        lines = content.splitlines(keepends=True)

        found = cls.locate(lines)
        if found is not None:
            index, match = found
            line = lines[index]
            if match.re is _KEY_LINE_RE:
                start = index
                if index > 0 and lines[index - 1].strip() == REVISION_MARKER:
                    start = index - 1
                ending = _line_ending(line)
                block = cls.render(revision, match.group("indent"), newline)
                if ending != newline:
                    # Keep the original terminator of the replaced line
                    block = block[: -len(newline)] + ending
                lines[start : index + 1] = [block]
                return "".join(lines)

            logger.debug("Revision key shares a line with other code, editing value")
            quote = match.group("quote")
            replacement = f"{match.group('prefix')}{quote}{revision}{quote}"
            lines[index] = line[: match.start()] + replacement + line[match.end() :]
            return "".join(lines)

        for index, line in enumerate(lines):
            match = _ENCLOSING_RE.match(line.rstrip("\r\n"))
            if not match:
                continue
            if not _line_ending(line):
                lines[index] = line + newline
            indent = match.group("indent") + "  "
            lines.insert(index + 1, cls.render(revision, indent, newline))
            return "".join(lines)

        raise CoreSyncConfigWriteError(
            "No configuration object found to hold the tracked revision"
        )

    @classmethod
    def synthesize(cls, revision: str, newline: str = "\n") -> str:
        """Render a minimal standalone structure holding the block."""
        return (
            f"export const {SYNTHESIZED_NAME} = {{{newline}"
            f"{cls.render(revision, '  ', newline)}"
            f"}};{newline}"
        )

    @classmethod
    def append_synthesized(cls, content: str, revision: str) -> str:
        """Append a synthesized structure to content."""
        newline = _detect_newline(content)
        if not content:
            return cls.synthesize(revision, newline)
        separator = "" if content.endswith(newline) else newline
        return content + separator + newline + cls.synthesize(revision, newline)


class RevisionTracker:
    """Reads and writes the tracked upstream revision of a project.

    Examples:
        >>> tracker = RevisionTracker(Path("src/supacharger/supacharger-config.ts"))
        >>> tracker.write("aaa111")
        True
        >>> tracker.read()
        'aaa111'
    """

    def __init__(self, config_path: Path):
        """Initialize tracker.

        Args:
            config_path: Configuration file holding the revision block
        """
        self.config_path = config_path

    def _read_content(self) -> Optional[str]:
        try:
            # newline="" keeps \r\n intact
            with open(self.config_path, encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {self.config_path}: {e}")
            return None

    def read(self) -> Optional[str]:
        """Read the tracked revision.

        Returns:
            The revision, or None if the file or the block is missing or
            malformed (the project has never been synced)
        """
        content = self._read_content()
        if content is None:
            logger.debug(f"No configuration file at {self.config_path}")
            return None

        revision = RevisionBlock.parse(content)
        if revision is None:
            logger.debug(f"No tracked revision in {self.config_path}")
        return revision

    def write(self, revision: str) -> bool:
        """Store the tracked revision.

        The block is replaced when present, inserted into the configuration
        object otherwise, and appended as a standalone structure when the
        file has no recognizable configuration object.

        Args:
            revision: Revision to store

        Returns:
            True if the file content changed

        Raises:
            ValueError: If revision does not look like a commit identifier
            CoreSyncConfigWriteError: If the file cannot be written
        """
        if not is_valid_revision(revision):
            raise ValueError(f"Invalid revision: {revision!r}")

        content = ""
        if self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8", newline="") as f:
                    content = f.read()
            except (OSError, UnicodeDecodeError) as e:
                raise CoreSyncConfigWriteError(
                    f"Cannot read {self.config_path} to update it: {e}"
                ) from e

        try:
            updated = RevisionBlock.insert(content, revision)
        except CoreSyncConfigWriteError as e:
            logger.debug(f"{e}; appending a new block to {self.config_path}")
            updated = RevisionBlock.append_synthesized(content, revision)

        if updated == content:
            logger.debug(f"Tracked revision already {revision}")
            return False

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8", newline="") as f:
                f.write(updated)
        except OSError as e:
            raise CoreSyncConfigWriteError(
                f"Failed to write tracked revision to {self.config_path}: {e}"
            ) from e

        logger.debug(f"Saved tracked revision {revision} to {self.config_path}")
        return True
