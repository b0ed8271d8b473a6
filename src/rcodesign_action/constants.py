#!/usr/bin/env python
"""rcodesign-action constants.

Attributes:
    STATUSES (dict): maps status names (string) to exit codes (int).
    DEFAULT_CONFIG (immutabledict): the static part of the default config.
        ``script.get_default_config`` adds the directory defaults.
    DEFAULT_GLOB_OPTIONS (immutabledict): the options used to expand
        ``input_path`` if none are given.
    INPUTS (tuple): the action inputs, as ``ActionInput`` entries.
    SECRET_INPUTS (tuple): the inputs to mask in the workflow log.
    SENSITIVE_ARGS (tuple): rcodesign options whose values we don't log.
    RCODESIGN_URL_TEMPLATE (str): the release download url.
    ARCH_ALIASES (immutabledict): maps ``platform.machine()`` values to the
        architecture names used in ``RCODESIGN_PLATFORMS``.
    RCODESIGN_PLATFORMS (immutabledict): maps ``(system, arch)`` to the
        ``RcodesignPlatform`` release to download.

"""
from collections import namedtuple

from immutabledict import immutabledict

STATUSES = immutabledict(
    {
        "success": 0,
        "failure": 1,
        "malformed-input": 3,
        "resource-unavailable": 4,
        "internal-error": 5,
    }
)

DEFAULT_RCODESIGN_VERSION = "0.22.0"

DEFAULT_CONFIG = immutabledict(
    {
        "download_attempts": 5,
        "download_timeout": 300,
        "rcodesign_path": None,
        "verbose": False,
        "github_actions": False,
    }
)

DEFAULT_GLOB_OPTIONS = immutabledict(
    {
        "follow_symbolic_links": True,
        "implicit_descendants": True,
        "omit_broken_symbolic_links": True,
    }
)

ActionInput = namedtuple("ActionInput", ["name", "kind", "required", "default"])

INPUTS = (
    ActionInput("input_path", "string", True, ""),
    ActionInput("sign", "boolean", False, "true"),
    ActionInput("notarize", "boolean", False, "false"),
    ActionInput("staple", "boolean", False, "false"),
    ActionInput("config_file", "multiline", False, ""),
    ActionInput("profile", "string", False, ""),
    ActionInput("pem_file", "multiline", False, ""),
    ActionInput("p12_file", "string", False, ""),
    ActionInput("p12_password", "string", False, ""),
    ActionInput("certificate_der_file", "multiline", False, ""),
    ActionInput("remote_sign_public_key", "multiline", False, ""),
    ActionInput("remote_sign_public_key_pem_file", "string", False, ""),
    ActionInput("remote_sign_shared_secret", "string", False, ""),
    ActionInput("app_store_connect_api_key_json_file", "string", False, ""),
    ActionInput("app_store_connect_api_issuer", "string", False, ""),
    ActionInput("app_store_connect_api_key", "string", False, ""),
    ActionInput("sign_args", "multiline", False, ""),
    ActionInput("rcodesign_version", "string", False, DEFAULT_RCODESIGN_VERSION),
)

SECRET_INPUTS = ("p12_password", "remote_sign_shared_secret", "app_store_connect_api_key")

SENSITIVE_ARGS = ("--p12-password", "--remote-shared-secret", "--api-key")

RCODESIGN_URL_TEMPLATE = (
    "https://github.com/indygreg/apple-platform-rs/releases/download/"
    "apple-codesign%2F{version}/{name}.{archive_format}"
)

RcodesignPlatform = namedtuple("RcodesignPlatform", ["triple", "archive_format", "executable"])

ARCH_ALIASES = immutabledict(
    {
        "amd64": "x86_64",
        "x64": "x86_64",
        "x86_64": "x86_64",
        "arm64": "aarch64",
        "aarch64": "aarch64",
    }
)

RCODESIGN_PLATFORMS = immutabledict(
    {
        ("darwin", "x86_64"): RcodesignPlatform("macos-universal", "tar.gz", "rcodesign"),
        ("darwin", "aarch64"): RcodesignPlatform("macos-universal", "tar.gz", "rcodesign"),
        ("linux", "x86_64"): RcodesignPlatform("x86_64-unknown-linux-musl", "tar.gz", "rcodesign"),
        ("linux", "aarch64"): RcodesignPlatform("aarch64-unknown-linux-musl", "tar.gz", "rcodesign"),
        ("windows", "x86_64"): RcodesignPlatform("x86_64-pc-windows-msvc", "zip", "rcodesign.exe"),
    }
)
