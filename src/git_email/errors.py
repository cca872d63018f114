from __future__ import annotations


class GitEmailError(RuntimeError):
    """Base class for failures that end a scan with exit code 1."""


class TargetNotFound(GitEmailError):
    pass


class EmptyRepository(GitEmailError):
    pass


class EmptyTarget(GitEmailError):
    pass


class AccountHasNoRepositories(GitEmailError):
    pass


class NoMatchingRepositories(GitEmailError):
    pass


class RepositoryUnreachable(GitEmailError):
    pass


class NotARepository(GitEmailError):
    pass


class DestinationWriteFailed(GitEmailError):
    pass


class HostingApiError(GitEmailError):
    """The hosting API answered with something other than success or 404."""


class UnsafeDestination(GitEmailError):
    """A keep or fetch destination would overwrite something this tool did not create."""


class HistoryReadFailed(GitEmailError):
    pass


class InvalidConfig(GitEmailError):
    pass
