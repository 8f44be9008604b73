"""
Command templates for external log readers.

Every command the server can execute is listed here. Templates are argv lists;
``{count}`` is replaced by the validated line count and the remaining
placeholders by configuration values, never by caller input.
"""

from typing import Any

COUNT_PLACEHOLDER = "{count}"

# journalctl variants. ``cat`` prints bare messages, ``short-iso`` prefixes an
# ISO-8601 timestamp and the host/unit columns. ``--quiet`` keeps the
# "-- No entries --" banner out of the output.
JOURNAL_COMMAND_TEMPLATES: dict[str, dict[str, Any]] = {
    "journal-cat": {
        "argv": ["journalctl", "-u", "{unit}", "-n", COUNT_PLACEHOLDER, "--no-pager", "--quiet", "--output=cat"],
        "description": "systemd journal, message text only",
    },
    "journal-short-iso": {
        "argv": ["journalctl", "-u", "{unit}", "-n", COUNT_PLACEHOLDER, "--no-pager", "--quiet", "--output=short-iso"],
        "description": "systemd journal with ISO timestamps",
    },
}

# Plain file tail, used where files must be read through the sandbox boundary
FILE_COMMAND_TEMPLATES: dict[str, dict[str, Any]] = {
    "file-tail": {
        "argv": ["tail", "-n", COUNT_PLACEHOLDER, "{path}"],
        "description": "last lines of a plain log file",
    },
}

COMMAND_TEMPLATES: dict[str, dict[str, Any]] = {
    **JOURNAL_COMMAND_TEMPLATES,
    **FILE_COMMAND_TEMPLATES,
}

JOURNAL_VARIANT_BY_OUTPUT: dict[str, str] = {
    "cat": "journal-cat",
    "short-iso": "journal-short-iso",
}


def get_command_template(variant: str) -> list[str]:
    """
    Get the argv template for a command variant.

    Args:
        variant: Template name, e.g. "journal-cat"

    Returns:
        A copy of the argv template

    Raises:
        KeyError: If the variant is unknown
    """
    return list(COMMAND_TEMPLATES[variant]["argv"])
