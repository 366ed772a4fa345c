"""
ghflow exceptions
"""


class GhflowError(Exception):
    """Base exception for all ghflow errors"""

    pass


class GitHubError(GhflowError):
    """Raised when a query against the GitHub CLI fails"""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class RepoResolutionError(GhflowError):
    """Raised when a directory cannot be resolved to a GitHub repository"""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class ConfigError(GhflowError):
    """Raised when configuration or profiles cannot be read or written"""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
