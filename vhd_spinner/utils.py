"""
Utility functions for running external tools.

Wraps subprocess for the provisioning steps (qemu-img, cloud-localds,
virt-install, apt-get, file, git) so a failed step is reported by name
together with whatever the tool printed.
"""

import os
import shlex
import shutil
import subprocess

from rich.console import Console
from rich.markup import escape

console = Console()


def run_command(
    cmd: list[str],
    capture: bool = True,
    check: bool = True,
    sudo: bool = False,
    step: str | None = None,
    **kwargs
) -> subprocess.CompletedProcess:
    """
    Run one provisioning tool and return the result.
    
    Args:
        cmd: Command and arguments as a list
        capture: Whether to capture stdout/stderr
        check: Whether to raise exception on non-zero exit
        sudo: Whether to run with sudo (if not root)
        step: Name of the provisioning step, used when reporting a failure;
            defaults to the program name
        **kwargs: Additional arguments to pass to subprocess.run
    
    Returns:
        CompletedProcess object with command results
    
    Raises:
        subprocess.CalledProcessError: If check=True and the tool exits non-zero
        FileNotFoundError: If the tool is not installed
    """
    if sudo and os.geteuid() != 0:
        cmd = ["sudo"] + cmd
    
    try:
        result = subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            check=check,
            **kwargs
        )
        return result
    except subprocess.CalledProcessError as e:
        label = step or os.path.basename(cmd[0])
        console.print(
            f"[red]{escape(label)} failed[/] (exit {e.returncode}): {escape(shlex.join(cmd))}",
            highlight=False,
        )
        if capture:
            if e.stdout:
                console.print(f"[dim]stdout:[/] {escape(e.stdout.rstrip())}", highlight=False)
            if e.stderr:
                console.print(f"[dim]stderr:[/] {escape(e.stderr.rstrip())}", highlight=False)
        raise


def command_exists(name: str) -> bool:
    """Return True if ``name`` resolves to an executable on PATH."""
    return shutil.which(name) is not None
