"""Custom exceptions for commitgate."""


class CommitGateError(Exception):
    """Base class for every error that aborts a commit"""


class PolicyViolation(CommitGateError):
    """Raised when a staged file breaks a repository hygiene rule"""


class ToolError(CommitGateError):
    """Raised when an available external tool fails"""


class GitError(CommitGateError):
    """Raised when a git command fails"""


class FrontMatterError(CommitGateError):
    """Raised when a markdown file has no usable front matter block"""
