#!/usr/bin/env python
"""
Command-line entry point of the budgeting service.

Runs Django management commands (migrate, generate_source_periods,
extend_budget_periods, recalculate_budget, ...) with the development
settings unless DJANGO_SETTINGS_MODULE says otherwise.
"""

import os
import sys


def main():
    """Configure the settings module and dispatch the command line to Django."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings.dev")

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Is it installed and available on your "
            "PYTHONPATH? Did you forget to activate a virtual environment?"
        ) from exc

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
