#!/usr/bin/env python
"""Report to the GitHub Actions runner.

Workflow commands are ``::command key=value,...::message`` lines on stdout.
Outputs go to the file named by ``GITHUB_OUTPUT``.

Attributes:
    log (logging.Logger): the log object for the module

"""
import logging
import os
import sys
import uuid

log = logging.getLogger(__name__)


# escaping {{{1
def escape_data(value):
    """Escape a workflow command message."""
    return str(value).replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value):
    """Escape a workflow command property value."""
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


# issue_command {{{1
def issue_command(command, message="", properties=None, stream=None):
    """Print a workflow command.

    Args:
        command (str): the command name, e.g. ``error``
        message (str, optional): the command message. Defaults to ``""``.
        properties (dict, optional): the command properties. Empty values
            are skipped. Defaults to ``None``.
        stream (filehandle, optional): where to print. If ``None``, use
            ``sys.stdout``. Defaults to ``None``.

    """
    command_string = "::{}".format(command)
    if properties:
        props = ",".join(
            "{}={}".format(key, escape_property(value)) for key, value in properties.items() if value is not None and value != ""
        )
        if props:
            command_string = "{} {}".format(command_string, props)
    command_string = "{}::{}".format(command_string, escape_data(message))
    print(command_string, file=stream or sys.stdout, flush=True)


def debug(message, stream=None):
    issue_command("debug", message, stream=stream)


def warning(message, stream=None):
    issue_command("warning", message, stream=stream)


def error(message, stream=None):
    issue_command("error", message, stream=stream)


def add_mask(secret, stream=None):
    """Ask the runner to redact ``secret`` from the log."""
    issue_command("add-mask", secret, stream=stream)


# set_output {{{1
def set_output(name, value, environ=None, stream=None):
    """Set an action output.

    Outputs are appended to ``$GITHUB_OUTPUT`` with a random heredoc
    delimiter. Without ``GITHUB_OUTPUT``, fall back to the ``set-output``
    command.

    Args:
        name (str): the output name
        value (str): the output value
        environ (dict, optional): the environment to read ``GITHUB_OUTPUT``
            from. If ``None``, use ``os.environ``. Defaults to ``None``.
        stream (filehandle, optional): where to print the fallback command.

    """
    environ = os.environ if environ is None else environ
    value = "" if value is None else str(value)
    path = environ.get("GITHUB_OUTPUT")
    if not path:
        issue_command("set-output", value, properties={"name": name}, stream=stream)
        return
    delimiter = "ghadelimiter_{}".format(uuid.uuid4())
    if delimiter in name or delimiter in value:
        raise ValueError("Unexpected input: output name or value contains the delimiter {}".format(delimiter))
    with open(path, "a", encoding="utf-8") as fh:
        fh.write("{}<<{}\n{}\n{}\n".format(name, delimiter, value, delimiter))
    log.debug("Set output %s", name)


# set_failed {{{1
def set_failed(message, stream=None):
    """Report a failure without raising.

    The caller is responsible for exiting non-zero.

    """
    error(message, stream=stream)


# WorkflowCommandHandler {{{1
class WorkflowCommandHandler(logging.Handler):
    """Render log records as workflow commands.

    DEBUG records become ``::debug::``, WARNING ``::warning::``, ERROR and
    above ``::error::``. INFO records are printed as-is.

    """

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream

    def emit(self, record):
        try:
            message = self.format(record)
            stream = self.stream or sys.stdout
            if record.levelno >= logging.ERROR:
                error(message, stream=stream)
            elif record.levelno >= logging.WARNING:
                warning(message, stream=stream)
            elif record.levelno >= logging.INFO:
                print(message, file=stream, flush=True)
            else:
                debug(message, stream=stream)
        except Exception:
            self.handleError(record)
