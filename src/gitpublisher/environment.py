"""Build environment snapshot and variable expansion.

Tag names, branch names and target repository names may reference build
variables, e.g. ``release-$BUILD_NUMBER`` or ``${GIT_BRANCH}-stable``. The
:class:`Environment` captured at the start of a publish run expands them.
"""

from __future__ import annotations

import re

# $NAME or ${NAME}; dots are only allowed inside braces
_VARIABLE_PATTERN = re.compile(r"\$(?:([A-Za-z0-9_]+)|\{([A-Za-z0-9_.]+)\})")

GIT_COMMITTER_NAME = "GIT_COMMITTER_NAME"
GIT_AUTHOR_NAME = "GIT_AUTHOR_NAME"
GIT_COMMITTER_EMAIL = "GIT_COMMITTER_EMAIL"
GIT_AUTHOR_EMAIL = "GIT_AUTHOR_EMAIL"


class Environment(dict[str, str]):
    """Snapshot of the build's environment variables."""

    def expand(self, value: str | None) -> str | None:
        """Expand ``$NAME`` and ``${NAME}`` references in ``value``.

        References to variables that are not defined are left as they are.

        Args:
            value: String to expand, or None

        Returns:
            The expanded string, or None when ``value`` is None

        Example:
            >>> Environment(BUILD_NUMBER="7").expand("release-${BUILD_NUMBER}")
            'release-7'
            >>> Environment().expand("$UNSET")
            '$UNSET'
        """
        if value is None:
            return None

        def _replace(match: re.Match[str]) -> str:
            name = match.group(1) or match.group(2)
            return self.get(name, match.group(0))

        return _VARIABLE_PATTERN.sub(_replace, value)

    def override_identity(self, name: str | None, email: str | None) -> None:
        """Force the git committer and author identity used by pushes.

        Blank values are ignored so the identity from the environment or the
        repository configuration stays in effect.

        Args:
            name: Committer and author name
            email: Committer and author email
        """
        if name and name.strip():
            self[GIT_COMMITTER_NAME] = name
            self[GIT_AUTHOR_NAME] = name
        if email and email.strip():
            self[GIT_COMMITTER_EMAIL] = email
            self[GIT_AUTHOR_EMAIL] = email
