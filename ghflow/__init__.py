"""ghflow: terminal dashboard for GitHub Actions workflow status."""

__version__ = "0.1.0"
