"""Confirmation prompts for destructive commands.

A :data:`Confirmer` is any callable taking the prompt text and returning
``True`` to proceed. Commands accept one so tests can answer without a TTY.
"""

from __future__ import annotations

from typing import Callable, Optional

import typer

from canvas_cli.models import InvocationOptions
from canvas_cli.output import info

Confirmer = Callable[[str], bool]


def prompt_confirmer(prompt: str) -> bool:
    return typer.confirm(prompt, default=False)


def confirm_action(
    options: InvocationOptions,
    action: str,
    confirmer: Optional[Confirmer] = None,
) -> bool:
    """Ask before doing *action* (e.g. ``"delete the credential for 'school'"``).

    ``--dry-run`` reports what would happen and declines; ``--force``
    proceeds without asking.
    """
    if options.dry_run:
        info(f"DRY RUN: Would {action}")
        info("No changes were made.")
        return False
    if options.force:
        return True
    return (confirmer or prompt_confirmer)(f"Are you sure you want to {action}?")
