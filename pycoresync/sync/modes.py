"""Reconciliation policies applied when the project tree has drifted."""

from enum import Enum


class ReconciliationPolicy(str, Enum):
    """How to treat locally modified files during an update.

    The policy is chosen once per run, and only when drift was found.
    """

    OVERWRITE_ALL = "overwrite"
    """Replace every upstream file, including locally modified ones"""

    SKIP_CONFLICTS = "skip"
    """Update everything except locally modified files"""

    ABORT = "exit"
    """Leave the project untouched"""

    @property
    def changes_files(self) -> bool:
        """Check if this policy writes to the project tree."""
        return self != ReconciliationPolicy.ABORT

    @property
    def letter(self) -> str:
        """Single letter used by the interactive prompt."""
        return {
            ReconciliationPolicy.OVERWRITE_ALL: "O",
            ReconciliationPolicy.SKIP_CONFLICTS: "S",
            ReconciliationPolicy.ABORT: "E",
        }[self]

    @classmethod
    def from_string(cls, value: str) -> "ReconciliationPolicy":
        """Parse a policy from a prompt letter or a name.

        Args:
            value: "o"/"s"/"e", a policy value ("overwrite", "skip", "exit")
                or an enum name ("OVERWRITE_ALL", ...). Case-insensitive.

        Returns:
            Matching ReconciliationPolicy

        Raises:
            ValueError: If the value does not name a policy

        Examples:
            >>> ReconciliationPolicy.from_string("S")
            <ReconciliationPolicy.SKIP_CONFLICTS: 'skip'>
            >>> ReconciliationPolicy.from_string("overwrite")
            <ReconciliationPolicy.OVERWRITE_ALL: 'overwrite'>
        """
        normalized = value.strip().lower()
        for policy in cls:
            if normalized in (
                policy.value,
                policy.letter.lower(),
                policy.name.lower(),
            ):
                return policy
        raise ValueError(
            f"Invalid policy: {value!r}. Use O (overwrite), S (skip) or E (exit)"
        )
