#!/usr/bin/env python
"""Functions that interface with rcodesign."""
import logging
import os
import platform
import stat
import tarfile
import zipfile

from rcodesign_action.aio import download_file, retry_async
from rcodesign_action.constants import ARCH_ALIASES, RCODESIGN_PLATFORMS, RCODESIGN_URL_TEMPLATE, SENSITIVE_ARGS
from rcodesign_action.exceptions import DownloadError, FailedSubprocess, TaskError, UnsupportedPlatformError
from rcodesign_action.utils import makedirs, rm, run_command

log = logging.getLogger(__name__)


# get_rcodesign_platform {{{1
def get_rcodesign_platform(system=None, machine=None):
    """Find the rcodesign release for an operating system and architecture.

    Args:
        system (str, optional): the operating system. If ``None``, use
            ``platform.system()``. Defaults to ``None``.
        machine (str, optional): the architecture. If ``None``, use
            ``platform.machine()``. Defaults to ``None``.

    Returns:
        RcodesignPlatform: the release triple, archive format and executable name.

    Raises:
        UnsupportedPlatformError: if there's no release for this platform.

    """
    system = system or platform.system()
    machine = machine or platform.machine()
    key = (system.lower(), ARCH_ALIASES.get(machine.lower(), machine.lower()))
    if key in RCODESIGN_PLATFORMS:
        return RCODESIGN_PLATFORMS[key]
    if key[0] not in {supported_system for supported_system, _ in RCODESIGN_PLATFORMS}:
        raise UnsupportedPlatformError("unsupported operating system: {}".format(system))
    raise UnsupportedPlatformError("unsupported {} architecture: {}".format(system, machine))


def get_rcodesign_release_name(version, rcodesign_platform):
    """Return the archive basename, which is also its top-level directory."""
    return "apple-codesign-{}-{}".format(version, rcodesign_platform.triple)


def get_rcodesign_url(version, rcodesign_platform):
    return RCODESIGN_URL_TEMPLATE.format(
        version=version,
        name=get_rcodesign_release_name(version, rcodesign_platform),
        archive_format=rcodesign_platform.archive_format,
    )


# extract_archive {{{1
def extract_archive(archive_path, dest_dir, archive_format):
    """Extract a ``tar.gz`` or ``zip`` archive into ``dest_dir``.

    Raises:
        TaskError: on an unknown format or a corrupt archive.

    """
    log.info("Extracting %s to %s", archive_path, dest_dir)
    makedirs(dest_dir)
    try:
        if archive_format == "tar.gz":
            with tarfile.open(archive_path, mode="r:gz") as t:
                t.extractall(path=dest_dir, filter="data")
        elif archive_format == "zip":
            with zipfile.ZipFile(archive_path, mode="r") as z:
                z.extractall(path=dest_dir)
        else:
            raise TaskError("Unknown archive format {} for {}".format(archive_format, archive_path))
    except (tarfile.TarError, zipfile.BadZipFile) as exc:
        raise TaskError("Failed to extract {}: {}".format(archive_path, exc)) from exc


def _make_executable(path):
    mode = os.stat(path).st_mode
    os.chmod(path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


# get_rcodesign {{{1
async def get_rcodesign(config, version):
    """Download and extract rcodesign, and return the executable path.

    If ``config["rcodesign_path"]`` is set, use that instead. A previously
    extracted executable in ``config["tool_cache_dir"]`` is reused.

    Args:
        config (dict): the running config
        version (str): the rcodesign version, e.g. ``0.22.0``

    Returns:
        str: the absolute path to the rcodesign executable.

    Raises:
        UnsupportedPlatformError: if there's no release for this platform.
        DownloadError: if the download keeps failing.
        Download404: if the release doesn't exist.
        TaskError: if the archive doesn't contain the executable.

    """
    if config.get("rcodesign_path"):
        log.info("Using rcodesign at %s", config["rcodesign_path"])
        return config["rcodesign_path"]

    rcodesign_platform = get_rcodesign_platform()
    name = get_rcodesign_release_name(version, rcodesign_platform)
    url = get_rcodesign_url(version, rcodesign_platform)
    tool_dir = os.path.abspath(os.path.join(config["tool_cache_dir"], "rcodesign", version))
    exe = os.path.join(tool_dir, name, rcodesign_platform.executable)
    if os.path.isfile(exe):
        log.info("Found cached rcodesign at %s", exe)
        return exe

    log.info("Downloading rcodesign from %s", url)
    archive_path = os.path.join(tool_dir, "{}.{}".format(name, rcodesign_platform.archive_format))
    await retry_async(
        download_file,
        args=(url, archive_path),
        kwargs={"timeout": config["download_timeout"]},
        retry_exceptions=(DownloadError,),
        attempts=config["download_attempts"],
    )
    extract_archive(archive_path, tool_dir, rcodesign_platform.archive_format)
    rm(archive_path)
    if not os.path.isfile(exe):
        raise TaskError("rcodesign not found at {} after extracting {}".format(exe, url))
    _make_executable(exe)
    return exe


# rcodesign args {{{1
def _config_file_args(inputs):
    args = []
    for config_file in inputs["config_file"]:
        args.extend(["--config-file", config_file])
    return args


def get_sign_args(inputs):
    """Build the ``rcodesign sign`` args, without the path to sign.

    Args:
        inputs (dict): the action inputs

    Returns:
        list: the args

    """
    args = ["sign"]
    args.extend(_config_file_args(inputs))
    if inputs["profile"]:
        args.extend(["--profile", inputs["profile"]])
    for pem_file in inputs["pem_file"]:
        args.extend(["--pem-file", pem_file])
    if inputs["p12_file"]:
        args.extend(["--p12-file", inputs["p12_file"]])
    if inputs["p12_password"]:
        args.extend(["--p12-password", inputs["p12_password"]])
    for certificate_der_file in inputs["certificate_der_file"]:
        args.extend(["--certificate-der-file", certificate_der_file])
    if inputs["remote_sign_public_key"]:
        args.extend(["--remote-public-key", "".join(inputs["remote_sign_public_key"])])
    if inputs["remote_sign_public_key_pem_file"]:
        args.extend(["--remote-public-key-pem-file", inputs["remote_sign_public_key_pem_file"]])
    if inputs["remote_sign_shared_secret"]:
        args.extend(["--remote-shared-secret", inputs["remote_sign_shared_secret"]])
    args.extend(inputs["sign_args"])
    return args


def get_notarize_args(inputs):
    """Build the ``rcodesign notary-submit`` args, without the path to notarize.

    ``--staple`` waits for notarization and staples in one go; otherwise we
    only ``--wait``.

    """
    args = ["notary-submit"]
    args.extend(_config_file_args(inputs))
    if inputs["app_store_connect_api_key_json_file"]:
        args.extend(["--api-key-file", inputs["app_store_connect_api_key_json_file"]])
    if inputs["app_store_connect_api_issuer"]:
        args.extend(["--api-issuer", inputs["app_store_connect_api_issuer"]])
    if inputs["app_store_connect_api_key"]:
        args.extend(["--api-key", inputs["app_store_connect_api_key"]])
    if inputs["staple"]:
        args.append("--staple")
    else:
        args.append("--wait")
    return args


def get_staple_args(inputs):
    return ["staple"] + _config_file_args(inputs)


def sterilize_command(command):
    """Return ``command`` with the values of ``SENSITIVE_ARGS`` masked."""
    sterilized = []
    mask_next = False
    for arg in command:
        if mask_next:
            sterilized.append("********")
        else:
            sterilized.append(arg)
        mask_next = arg in SENSITIVE_ARGS
    return sterilized


# run_rcodesign {{{1
async def run_rcodesign(rcodesign, args, paths):
    """Run ``rcodesign *args path`` once per path, in order.

    Args:
        rcodesign (str): the path to the rcodesign executable
        args (list): the rcodesign args, without the path
        paths (list): the paths to run against

    Raises:
        FailedSubprocess: on the first non-zero exit. Later paths are skipped.

    """
    for path in paths:
        command = [rcodesign, *args, path]
        await run_command(command, log_cmd=sterilize_command(command), exception=FailedSubprocess)
