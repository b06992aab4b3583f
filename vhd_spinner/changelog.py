"""
Changelog generation from git history.
"""

import subprocess
from datetime import datetime
from pathlib import Path

from vhd_spinner.errors import ChangelogError
from vhd_spinner.utils import run_command

CHANGELOG_FILE = "CHANGELOG.md"
TITLE = "# Changelog"
ENTRY_FORMAT = "- %ad: %s (%h)"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def git_history(cwd: Path | None = None) -> list[str]:
    """
    Return one formatted line per commit, in the order git lists them.

    Raises:
        ChangelogError: If git is missing or the directory is not a repository
    """
    try:
        result = run_command(
            ["git", "log", f"--pretty=format:{ENTRY_FORMAT}", "--date=short"],
            cwd=cwd,
            step="Reading git history",
        )
    except FileNotFoundError as exc:
        raise ChangelogError("git is not installed") from exc
    except subprocess.CalledProcessError as exc:
        raise ChangelogError(f"git log failed: {(exc.stderr or '').strip()}") from exc
    return [line for line in result.stdout.splitlines() if line]


def render_changelog(entries: list[str], generated_at: datetime) -> str:
    lines = [
        TITLE,
        "",
        f"Generated on {generated_at.strftime(TIMESTAMP_FORMAT)}",
        "",
        *entries,
    ]
    return "\n".join(lines) + "\n"


def write_changelog(
    output: Path,
    cwd: Path | None = None,
    now: datetime | None = None,
) -> Path:
    """Overwrite ``output`` with the changelog of the repository at ``cwd``."""
    entries = git_history(cwd)
    output.write_text(render_changelog(entries, now or datetime.now()))
    return output
