#!/usr/bin/env python
"""Config, action inputs and the entry point harness.

Attributes:
    log (logging.Logger): the log object for the module

"""
import argparse
import asyncio
import logging
import os
import sys

import jsonschema

from rcodesign_action.constants import INPUTS, SECRET_INPUTS, STATUSES
from rcodesign_action.exceptions import ClientError, InputVerificationError
from rcodesign_action.utils import load_json_or_yaml
from rcodesign_action.workflow import WorkflowCommandHandler, add_mask

log = logging.getLogger(__name__)

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


# get_input {{{1
def get_input(name, required=False, default="", environ=None):
    """Read an action input from the ``INPUT_<NAME>`` environment variable.

    Args:
        name (str): the input name, as in ``action.yml``.
        required (bool, optional): raise if the input is empty. Defaults to False.
        default (str, optional): the value to use if the input is empty.
            Defaults to ``""``.
        environ (dict, optional): the environment. If ``None``, use
            ``os.environ``. Defaults to ``None``.

    Returns:
        str: the stripped input value.

    Raises:
        InputVerificationError: if ``required`` and the input is empty.

    """
    environ = os.environ if environ is None else environ
    value = environ.get("INPUT_{}".format(name.replace(" ", "_").upper()), "").strip()
    if not value:
        if required:
            raise InputVerificationError("Input required and not supplied: {}".format(name))
        value = default
    return value


def get_boolean_input(name, required=False, default="", environ=None):
    """Read a boolean action input.

    Only the YAML 1.2 core schema booleans are accepted:
    ``true | True | TRUE | false | False | FALSE``.

    Raises:
        InputVerificationError: on any other value.

    """
    value = get_input(name, required=required, default=default, environ=environ)
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise InputVerificationError(
        'Input does not meet YAML 1.2 "Core Schema" specification: {}\n'
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`".format(name)
    )


def get_multiline_input(name, required=False, default="", environ=None):
    """Read a multi-line action input as a list of non-blank, stripped lines."""
    value = get_input(name, required=required, default=default, environ=environ)
    return [line.strip() for line in value.split("\n") if line.strip()]


_INPUT_READERS = {
    "string": get_input,
    "boolean": get_boolean_input,
    "multiline": get_multiline_input,
}


def get_inputs(environ=None):
    """Read all the action inputs in ``INPUTS``.

    Args:
        environ (dict, optional): the environment. If ``None``, use
            ``os.environ``. Defaults to ``None``.

    Returns:
        dict: input name to value.

    """
    inputs = {}
    for action_input in INPUTS:
        reader = _INPUT_READERS[action_input.kind]
        inputs[action_input.name] = reader(
            action_input.name,
            required=action_input.required,
            default=action_input.default,
            environ=environ,
        )
    return inputs


def mask_secrets(inputs):
    """Ask the runner to redact the secret inputs from the log."""
    for name in SECRET_INPUTS:
        if inputs.get(name):
            add_mask(inputs[name])


# verify_{json,inputs}_schema {{{1
def verify_json_schema(data, schema, name="inputs"):
    """Given data and a jsonschema, let's verify it.

    Args:
        data (dict): the json to verify.
        schema (dict): the jsonschema to verify against.
        name (str, optional): the name of the json, for exception messages.
            Defaults to "inputs".

    Raises:
        InputVerificationError: on failure

    """
    try:
        jsonschema.validate(data, schema)
    except jsonschema.exceptions.ValidationError as exc:
        raise InputVerificationError("Can't verify {} schema!\n{}".format(name, str(exc))) from exc


def verify_inputs_schema(config, inputs, schema_key="schema_file"):
    """Verify the action inputs.

    Args:
        config (dict): the running config
        inputs (dict): the action inputs
        schema_key: the key in `config` where the path to the schema file is.

    Raises:
        InputVerificationError: if the inputs don't match the schema

    """
    try:
        schema = load_json_or_yaml(config[schema_key], is_path=True)
    except (KeyError, ClientError) as exc:
        raise InputVerificationError("Cannot load the inputs schema from config key {}.".format(schema_key)) from exc
    log.debug("Inputs are verified against this schema: {}".format(schema))
    verify_json_schema(inputs, schema)


# config {{{1
def get_parser(desc=None):
    """Create the argparse parser.

    Args:
        desc (str, optional): the description for the parser.

    Returns:
        argparse.ArgumentParser: the parser.

    """
    parser = argparse.ArgumentParser(description=desc)
    parser.add_argument(
        "--tool-cache-dir",
        type=str,
        required=False,
        help="The path to download rcodesign into",
    )
    parser.add_argument("--verbose", action="store_true", default=None, help="Log debug messages")
    parser.add_argument("config_path", type=str, nargs="?", default=None, help="An optional yaml config file")
    return parser


def init_config(config_path=None, default_config=None, validator_callback=None):
    """Create the config from ``default_config`` and the file at ``config_path``.

    Args:
        config_path (str, optional): a yaml (or json) file to load. If
            ``None``, only use ``default_config``. Defaults to ``None``.
        default_config (dict, optional): the defaults. Defaults to ``None``.
        validator_callback (function, optional): called with the config;
            expected to raise on an invalid config. Defaults to ``None``.

    Returns:
        dict: the config.

    """
    config = dict(default_config or {})
    if config_path is not None:
        config.update(
            load_json_or_yaml(
                config_path,
                file_type="yaml",
                is_path=True,
                message="Can't read config from {}!\n%(exc)s".format(config_path),
            )
            or {}
        )
    if validator_callback is not None:
        validator_callback(config)
    return config


def _init_config(parsed_args, default_config=None, validator_callback=None):
    config = init_config(config_path=parsed_args.config_path, default_config=default_config)
    for var in ("tool_cache_dir", "verbose"):
        value = getattr(parsed_args, var, None)
        if value is not None:
            config[var] = value
    if validator_callback is not None:
        validator_callback(config)
    return config


def _init_logging(config):
    if config.get("github_actions"):
        handler = WorkflowCommandHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        # The runner hides ::debug:: unless step debugging is on.
        logging.basicConfig(level=logging.DEBUG, handlers=[handler])
    else:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG if config.get("verbose") else logging.INFO,
        )
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


async def _handle_asyncio_loop(async_main, config, inputs):
    try:
        return await async_main(config, inputs)
    except (ClientError, OSError) as exc:
        log.exception("Failed to run async_main: %s", exc)
        sys.exit(getattr(exc, "exit_code", STATUSES["failure"]))


# sync_main {{{1
def sync_main(
    async_main,
    parser=None,
    parser_desc=None,
    commandline_args=None,
    default_config=None,
    should_verify_inputs=True,
    validator_callback=None,
    environ=None,
):
    """Entry point for the action.

    This function sets up the basic needs for the action to run:
        * it initializes the config from ``default_config`` and the
          commandline (``commandline_args`` or ``sys.argv[1:]``)
        * it reads, masks and verifies the action inputs
        * it runs ``async_main(config, inputs)`` in an asyncio event loop,
          and exits with its return value, if non-zero.

    Args:
        async_main (function): The function to call once everything is set up
        parser (argparse.ArgumentParser, optional): the parser. If ``None``,
            use ``get_parser(parser_desc)``. Defaults to None.
        parser_desc (str, optional): the parser description. Defaults to None.
        commandline_args (list, optional): the args to parse. If ``None``,
            use ``sys.argv[1:]``. Defaults to None.
        default_config (dict, optional): the default config. Defaults to None.
        should_verify_inputs (bool, optional): whether we should verify the
            inputs against the schema. Defaults to True.
        validator_callback (function, optional): called with the config;
            expected to raise on an invalid config. Defaults to None.
        environ (dict, optional): the environment to read inputs from. If
            ``None``, use ``os.environ``. Defaults to None.

    """
    parser = parser or get_parser(parser_desc)
    commandline_args = sys.argv[1:] if commandline_args is None else commandline_args
    parsed_args = parser.parse_args(commandline_args)
    try:
        config = _init_config(parsed_args, default_config, validator_callback=validator_callback)
    except ClientError as exc:
        _init_logging(dict(default_config or {}))
        log.exception("Failed to load the config: %s", exc)
        sys.exit(exc.exit_code)
    _init_logging(config)
    try:
        inputs = get_inputs(environ=environ)
        mask_secrets(inputs)
        if should_verify_inputs:
            verify_inputs_schema(config, inputs)
    except ClientError as exc:
        log.exception("Failed to read the action inputs: %s", exc)
        sys.exit(exc.exit_code)
    exit_code = asyncio.run(_handle_asyncio_loop(async_main, config, inputs))
    if exit_code:
        sys.exit(exit_code)
