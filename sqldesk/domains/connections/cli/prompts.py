"""CLI prompts for connection credentials."""

from __future__ import annotations

import getpass
import sys
from dataclasses import replace

from sqldesk.domains.connections.domain.config import Credentials


def prompt_for_password(target: str, credentials: Credentials) -> Credentials:
    """Prompt for the password if a user is set but the password is not (None)."""
    if not credentials.user or credentials.password is not None:
        return credentials
    if not sys.stdin.isatty():
        return credentials
    password = getpass.getpass(f"Password for '{credentials.user}' on '{target}': ")
    return replace(credentials, password=password)
