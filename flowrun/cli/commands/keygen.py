"""flowrun keygen — Generate an integration encryption key."""

from rich.console import Console

console = Console()


def keygen():
    """Print a fresh 64-hex-char key for FLOWRUN_INTEGRATION_ENCRYPTION_KEY.

    Example:
        export FLOWRUN_INTEGRATION_ENCRYPTION_KEY=$(flowrun keygen)
    """
    from flowrun.credentials.encryption import generate_key

    # Plain print so the output can be captured by a shell.
    print(generate_key())
