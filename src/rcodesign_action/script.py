#!/usr/bin/env python
"""rcodesign-action: sign, notarize and staple Apple artifacts."""
import json
import logging
import os

from rcodesign_action.client import sync_main
from rcodesign_action.constants import DEFAULT_CONFIG, STATUSES
from rcodesign_action.exceptions import ConfigError
from rcodesign_action.rcodesign import get_notarize_args, get_rcodesign, get_sign_args, get_staple_args, run_rcodesign
from rcodesign_action.search import find_files_to_sign
from rcodesign_action.workflow import set_failed, set_output

log = logging.getLogger(__name__)


def check_inputs(inputs):
    """Make sure the requested operations have what they need.

    Args:
        inputs (dict): the action inputs

    Raises:
        ConfigError: on missing credentials.

    """
    if inputs["notarize"] and not inputs["app_store_connect_api_key_json_file"]:
        raise ConfigError("App Store Connect API Key not defined; cannot notarize")


async def async_main(config, inputs):
    """Sign, notarize and staple all the things.

    Each enabled stage runs rcodesign once per file, in order, before the
    next stage starts.

    Args:
        config (dict): the running config.
        inputs (dict): the action inputs.

    Returns:
        int: the exit status.

    """
    check_inputs(inputs)
    rcodesign = await get_rcodesign(config, inputs["rcodesign_version"])

    input_path = inputs["input_path"]
    search_result = find_files_to_sign(input_path)
    if not search_result.files_to_sign:
        set_failed("No files were found with the provided path: {}. No binaries will be signed.".format(input_path))
        return STATUSES["failure"]
    count = len(search_result.files_to_sign)
    log.info("With the provided path, there will be %d file%s signed", count, "" if count == 1 else "s")

    signed_paths = list(search_result.files_to_sign)

    if inputs["sign"]:
        await run_rcodesign(rcodesign, get_sign_args(inputs), signed_paths)

    stapled = False
    if inputs["notarize"]:
        await run_rcodesign(rcodesign, get_notarize_args(inputs), signed_paths)
        # notary-submit --staple already stapled
        stapled = inputs["staple"]

    if inputs["staple"] and not stapled:
        await run_rcodesign(rcodesign, get_staple_args(inputs), signed_paths)

    set_output("output_paths", json.dumps(signed_paths))
    set_output("root_directory", search_result.root_directory)
    log.info("Done!")
    return STATUSES["success"]


def _validate_config(config):
    for key in ("tool_cache_dir", "schema_file"):
        if not config.get(key):
            raise ConfigError("Missing {} in config!".format(key))
    if config["download_attempts"] < 1:
        raise ConfigError("download_attempts must be at least 1!")


def get_default_config(base_dir=None):
    """Create the default config to work from.

    Args:
        base_dir (str, optional): the directory above the default `tool_cache_dir`.
            If None, use `..`  Defaults to None.

    Returns:
        dict: the default configuration dict.

    """
    base_dir = base_dir or os.path.dirname(os.getcwd())
    default_config = dict(DEFAULT_CONFIG)
    default_config.update(
        {
            "tool_cache_dir": os.environ.get("RUNNER_TOOL_CACHE") or os.path.join(base_dir, "tools"),
            "schema_file": os.path.join(os.path.dirname(__file__), "data", "inputs_schema.json"),
            "verbose": os.environ.get("RUNNER_DEBUG") == "1",
            "github_actions": os.environ.get("GITHUB_ACTIONS") == "true",
        }
    )
    return default_config


def main():
    """Start the action."""
    return sync_main(async_main, default_config=get_default_config(), validator_callback=_validate_config)


__name__ == "__main__" and main()
