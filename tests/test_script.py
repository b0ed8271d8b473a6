#!/usr/bin/env python
# coding=utf-8
"""Test rcodesign_action.script
"""
import json
import os

import pytest

import rcodesign_action.script as script
from rcodesign_action.constants import STATUSES
from rcodesign_action.exceptions import ConfigError, FailedSubprocess

from . import touch


@pytest.fixture(scope="function")
def artifacts(tmpdir):
    base = os.path.join(str(tmpdir), "dist")
    for name in ("app", "lib.dylib"):
        touch(os.path.join(base, name))
    yield base


@pytest.fixture(scope="function")
def calls(mocker):
    """Replace rcodesign and the outputs, and record what would have run."""
    _calls = {"rcodesign": [], "outputs": {}}

    async def get_rcodesign(config, version):
        _calls["version"] = version
        return "/bin/rcodesign"

    async def run_rcodesign(rcodesign, args, paths):
        _calls["rcodesign"].append((rcodesign, args[0], args, paths))

    def set_output(name, value):
        _calls["outputs"][name] = value

    mocker.patch.object(script, "get_rcodesign", new=get_rcodesign)
    mocker.patch.object(script, "run_rcodesign", new=run_rcodesign)
    mocker.patch.object(script, "set_output", new=set_output)
    yield _calls


# check_inputs {{{1
@pytest.mark.parametrize(
    "notarize, api_key_file, raises",
    ((False, "", False), (True, "key.json", False), (True, "", True), (False, "key.json", False)),
)
def test_check_inputs(inputs, notarize, api_key_file, raises):
    inputs["notarize"] = notarize
    inputs["app_store_connect_api_key_json_file"] = api_key_file
    if raises:
        with pytest.raises(ConfigError, match="cannot notarize"):
            script.check_inputs(inputs)
    else:
        script.check_inputs(inputs)


# async_main {{{1
@pytest.mark.parametrize(
    "sign, notarize, staple, expected_commands",
    (
        (True, False, False, ["sign"]),
        (True, True, False, ["sign", "notary-submit"]),
        (True, True, True, ["sign", "notary-submit"]),
        (True, False, True, ["sign", "staple"]),
        (False, False, True, ["staple"]),
        (False, True, False, ["notary-submit"]),
        (False, False, False, []),
    ),
)
@pytest.mark.asyncio
async def test_async_main(config, inputs, artifacts, calls, sign, notarize, staple, expected_commands):
    """Each enabled stage runs against every file, in order."""
    inputs.update(
        {
            "input_path": os.path.join(artifacts, "*"),
            "sign": sign,
            "notarize": notarize,
            "staple": staple,
            "app_store_connect_api_key_json_file": "key.json",
        }
    )
    expected_paths = [os.path.join(artifacts, "app"), os.path.join(artifacts, "lib.dylib")]

    assert await script.async_main(config, inputs) == STATUSES["success"]

    assert calls["version"] == "0.22.0"
    assert [call[1] for call in calls["rcodesign"]] == expected_commands
    for rcodesign, _, _, paths in calls["rcodesign"]:
        assert rcodesign == "/bin/rcodesign"
        assert paths == expected_paths
    if notarize:
        notarize_args = calls["rcodesign"][expected_commands.index("notary-submit")][2]
        assert notarize_args[-1] == ("--staple" if staple else "--wait")
    assert calls["outputs"] == {
        "output_paths": json.dumps(expected_paths),
        "root_directory": artifacts,
    }


@pytest.mark.asyncio
async def test_async_main_single_file(config, inputs, artifacts, calls):
    inputs["input_path"] = os.path.join(artifacts, "app")
    assert await script.async_main(config, inputs) == STATUSES["success"]
    assert calls["outputs"] == {
        "output_paths": json.dumps([os.path.join(artifacts, "app")]),
        "root_directory": artifacts,
    }


@pytest.mark.asyncio
async def test_async_main_sign_args(config, inputs, artifacts, calls):
    inputs.update(
        {
            "input_path": os.path.join(artifacts, "app"),
            "p12_file": "cert.p12",
            "p12_password": "secret",
        }
    )
    await script.async_main(config, inputs)
    assert calls["rcodesign"] == [
        (
            "/bin/rcodesign",
            "sign",
            ["sign", "--p12-file", "cert.p12", "--p12-password", "secret"],
            [os.path.join(artifacts, "app")],
        )
    ]


@pytest.mark.asyncio
async def test_async_main_no_files(config, inputs, tmpdir, calls, capsys):
    """No matches fails without running rcodesign or setting outputs."""
    inputs["input_path"] = os.path.join(str(tmpdir), "nonexistent", "*")
    assert await script.async_main(config, inputs) == STATUSES["failure"]
    assert calls["rcodesign"] == []
    assert calls["outputs"] == {}
    assert "::error::No files were found with the provided path" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_async_main_notarize_without_key(config, inputs, artifacts, calls):
    """Missing credentials fail before downloading rcodesign."""
    inputs.update({"input_path": os.path.join(artifacts, "*"), "notarize": True})
    with pytest.raises(ConfigError):
        await script.async_main(config, inputs)
    assert "version" not in calls
    assert calls["rcodesign"] == []


@pytest.mark.asyncio
async def test_async_main_failed_stage(config, inputs, artifacts, calls, mocker):
    """A failed stage stops the later stages."""
    stages = []

    async def run_rcodesign(rcodesign, args, paths):
        stages.append(args[0])
        raise FailedSubprocess("sign failed")

    mocker.patch.object(script, "run_rcodesign", new=run_rcodesign)
    inputs.update({"input_path": os.path.join(artifacts, "*"), "staple": True})
    with pytest.raises(FailedSubprocess):
        await script.async_main(config, inputs)
    assert stages == ["sign"]
    assert calls["outputs"] == {}


# config {{{1
@pytest.mark.parametrize(
    "updates, raises",
    (
        ({}, False),
        ({"tool_cache_dir": ""}, True),
        ({"schema_file": None}, True),
        ({"download_attempts": 0}, True),
    ),
)
def test_validate_config(config, updates, raises):
    config.update(updates)
    if raises:
        with pytest.raises(ConfigError):
            script._validate_config(config)
    else:
        script._validate_config(config)


def test_get_default_config(tmpdir, monkeypatch):
    for var in ("RUNNER_TOOL_CACHE", "RUNNER_DEBUG", "GITHUB_ACTIONS"):
        monkeypatch.delenv(var, raising=False)
    config = script.get_default_config(base_dir=str(tmpdir))
    assert config["tool_cache_dir"] == os.path.join(str(tmpdir), "tools")
    assert os.path.isfile(config["schema_file"])
    assert config["verbose"] is False
    assert config["github_actions"] is False
    assert config["download_attempts"] == 5
    assert config["rcodesign_path"] is None


def test_get_default_config_runner(tmpdir, monkeypatch):
    monkeypatch.setenv("RUNNER_TOOL_CACHE", "/opt/hostedtoolcache")
    monkeypatch.setenv("RUNNER_DEBUG", "1")
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    config = script.get_default_config(base_dir=str(tmpdir))
    assert config["tool_cache_dir"] == "/opt/hostedtoolcache"
    assert config["verbose"] is True
    assert config["github_actions"] is True


def test_main(mocker):
    sync_main = mocker.patch.object(script, "sync_main")
    mocker.patch.object(script, "get_default_config", return_value={"a": "b"})
    script.main()
    sync_main.assert_called_once_with(
        script.async_main, default_config={"a": "b"}, validator_callback=script._validate_config
    )
