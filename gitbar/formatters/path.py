"""Path formatting utilities."""

import os
from typing import Optional


def abbreviate_path(path: str, home: Optional[str] = None) -> str:
    """
    Replace the home directory prefix with "~".

    Args:
        path: Absolute path
        home: Home directory override (defaults to the current user's)

    Returns:
        Abbreviated path
    """
    home = (home or os.path.expanduser("~")).rstrip(os.sep)
    if home and (path == home or path.startswith(home + os.sep)):
        return "~" + path[len(home):]
    return path
