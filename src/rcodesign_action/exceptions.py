#!/usr/bin/env python
"""rcodesign-action exceptions."""

from rcodesign_action.constants import STATUSES


class ClientError(Exception):
    """rcodesign-action base error.

    To use::

        import sys
        try:
            ...
        except ClientError as exc:
            log.exception("log message")
            sys.exit(exc.exit_code)

    Attributes:
        exit_code (int): this is 1 by default (failure)

    """

    def __init__(self, *args, exit_code=STATUSES["failure"], **kwargs):
        """Initialize ClientError.

        Args:
            *args: These are passed on via super().
            exit_code (int, optional): The exit_code we should exit with when
                this exception is raised.  Defaults to 1 (failure).
            **kwargs: These are passed on via super().

        """
        self.exit_code = exit_code
        super(ClientError, self).__init__(*args, **kwargs)


class TaskError(ClientError):
    """Something went wrong while signing, notarizing or stapling."""


class InputVerificationError(ClientError):
    """The action inputs are missing or malformed."""

    def __init__(self, msg):
        """Initialize InputVerificationError.

        Args:
            msg (string): the error message

        """
        super().__init__(msg, exit_code=STATUSES["malformed-input"])


class ConfigError(TaskError):
    """The requested operation can't run with the given inputs or config."""


class UnsupportedPlatformError(TaskError):
    """There is no rcodesign release for this operating system or architecture."""


class FailedSubprocess(TaskError):
    """A subprocess exited with an unexpected exit code."""


class DownloadError(TaskError):
    """Failed to download a file."""

    def __init__(self, msg):
        """Initialize DownloadError.

        Args:
            msg (string): the error message

        """
        super().__init__(msg, exit_code=STATUSES["resource-unavailable"])


class Download404(TaskError):
    """The download url returned a 404."""

    def __init__(self, msg):
        """Initialize Download404.

        Args:
            msg (string): the error message

        """
        super().__init__(msg, exit_code=STATUSES["resource-unavailable"])
