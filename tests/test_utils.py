#!/usr/bin/env python
# coding=utf-8
"""Test rcodesign_action.utils
"""
import asyncio
import logging
import os
import tempfile
from asyncio.subprocess import PIPE

import pytest

import rcodesign_action.utils as utils
from rcodesign_action.exceptions import FailedSubprocess, TaskError

from . import touch


# load_json_or_yaml {{{1
@pytest.mark.parametrize(
    "string,exception,raises,result",
    (
        ('{"a": "b"}', None, False, {"a": "b"}),
        ('{"a": "b}', None, False, None),
        ('{"a": "b}', TaskError, True, None),
    ),
)
def test_load_json_or_yaml(string, exception, raises, result):
    """Exercise ``load_json_or_yaml`` various options."""
    if raises:
        with pytest.raises(exception):
            utils.load_json_or_yaml(string, exception=exception)
    else:
        for file_type in ("json", "yaml"):
            assert result == utils.load_json_or_yaml(string, exception=exception, file_type=file_type)


def test_load_json_or_yaml_path(tmpdir):
    path = os.path.join(str(tmpdir), "config.yml")
    with open(path, "w") as fh:
        fh.write("tool_cache_dir: /tmp/tools\ndownload_attempts: 3\n")
    assert utils.load_json_or_yaml(path, is_path=True, file_type="yaml") == {
        "tool_cache_dir": "/tmp/tools",
        "download_attempts": 3,
    }


def test_load_json_or_yaml_missing_path(tmpdir):
    with pytest.raises(TaskError, match="can't read"):
        utils.load_json_or_yaml(
            os.path.join(str(tmpdir), "nonexistent"), is_path=True, message="can't read %(file_type)s: %(exc)s"
        )


# to_unicode {{{1
@pytest.mark.parametrize(
    "input, expected",
    (
        ("foo", "foo"),
        (b"foo", "foo"),
        (None, None),
        ("грызть гранит науки".encode("iso8859_5"), "грызть гранит науки".encode("iso8859_5")),
    ),
)
def test_to_unicode(input, expected):
    """``to_unicode`` returns unicode, given unicode or bytestring input. Otherwise
    it returns the input unchanged.

    """
    assert utils.to_unicode(input) == expected


# pipe_to_log {{{1
@pytest.mark.asyncio
async def test_pipe_to_log(tmpdir):
    """``pipe_to_log`` writes command output to the log filehandle."""
    cmd = r""">&2 echo "foo" && echo "bar" && exit 0"""
    proc = await asyncio.create_subprocess_exec("bash", "-c", cmd, stdout=PIPE, stderr=PIPE, stdin=None)
    path = os.path.join(tmpdir, "log")
    with open(path, "w") as log_fh:
        tasks = [
            asyncio.ensure_future(utils.pipe_to_log(proc.stderr, filehandles=[log_fh])),
            asyncio.ensure_future(utils.pipe_to_log(proc.stdout, filehandles=[log_fh])),
        ]
        await asyncio.wait(tasks)
        await proc.wait()
    with open(path, "r") as fh:
        assert fh.read() in ("foo\nbar\n", "bar\nfoo\n")


# get_log_filehandle {{{1
@pytest.mark.parametrize("path", (None, "log"))
def test_get_log_filehandle(path, tmpdir):
    """``get_log_filehandle`` gives a writable filehandle."""
    if path:
        path = os.path.join(tmpdir, path)
    with utils.get_log_filehandle(log_path=path) as log_fh:
        log_fh.write("foo")
    if path:
        with open(path) as fh:
            assert fh.read() == "foo"


# run_command {{{1
@pytest.mark.parametrize(
    "command, status, expected_log, exception, output_log, env, raises",
    (
        (
            ["bash", "-c", ">&2 echo bar && echo foo && exit 1"],
            1,
            ["foo\nbar\n", "bar\nfoo\n"],
            None,
            False,
            None,
            False,
        ),
        (
            ["bash", "-c", ">&2 echo bar && echo foo && exit 1"],
            1,
            ["foo\nbar\n", "bar\nfoo\n"],
            FailedSubprocess,
            False,
            {"foo": "bar"},
            True,
        ),
        (
            ["bash", "-c", ">&2 echo bar && echo foo && exit 1"],
            1,
            ["foo\nbar\n", "bar\nfoo\n"],
            FailedSubprocess,
            True,
            None,
            True,
        ),
        (["bash", "-c", "echo foo"], 0, "foo\n", FailedSubprocess, False, None, False),
    ),
)
@pytest.mark.asyncio
async def test_run_command(command, status, expected_log, exception, output_log, env, raises, tmpdir):
    """``run_command`` runs the expected command, logs its output, and exits
    with its exit status. If ``exception`` is set and we exit non-zero, we
    raise that exception.

    """
    if not isinstance(expected_log, list):
        expected_log = [expected_log]
    log_path = os.path.join(tmpdir, "log")
    if raises:
        with pytest.raises(exception) as excinfo:
            await utils.run_command(
                command,
                log_path=log_path,
                cwd=tmpdir,
                env=env,
                exception=exception,
                output_log_on_exception=output_log,
            )
        assert ("exited 1!\n" in str(excinfo.value)) == output_log
    else:
        assert (
            await utils.run_command(
                command,
                log_path=log_path,
                cwd=tmpdir,
                env=env,
                exception=exception,
                output_log_on_exception=output_log,
            )
            == status
        )
        with open(log_path, "r") as fh:
            assert fh.read() in expected_log


@pytest.mark.asyncio
async def test_run_command_log_cmd(tmpdir, caplog):
    """``log_cmd`` replaces ``cmd`` in the log and the exception."""
    caplog.set_level(logging.INFO)
    with pytest.raises(FailedSubprocess) as excinfo:
        await utils.run_command(
            ["bash", "-c", "exit 2", "secret"],
            cwd=str(tmpdir),
            log_cmd=["bash", "-c", "exit 2", "********"],
            exception=FailedSubprocess,
        )
    assert "secret" not in str(excinfo.value)
    assert "secret" not in caplog.text
    assert "exited 2" in str(excinfo.value)


# makedirs {{{1
def test_makedirs(tmpdir):
    """``makedirs`` creates ``path`` and all missing parent directories if it is a
    nonexistent directory. If ``path`` is ``None``, it is noop.

    """
    utils.makedirs(None)
    path = os.path.join(str(tmpdir), "foo", "bar", "baz")
    utils.makedirs(path)
    assert os.path.isdir(path)
    utils.makedirs(path)


@pytest.mark.parametrize("subpath", ((), ("bar",)))
def test_makedirs_file(tmpdir, subpath):
    """``makedirs`` raises ``TaskError`` if ``path`` or a parent is a file."""
    path = os.path.join(str(tmpdir), "foo")
    touch(path)
    with pytest.raises(TaskError):
        utils.makedirs(os.path.join(path, *subpath))


# rm {{{1
def test_rm_empty():
    utils.rm(None)


def test_rm_file():
    _, tmp = tempfile.mkstemp()
    assert os.path.exists(tmp)
    utils.rm(tmp)
    assert not os.path.exists(tmp)


def test_rm_dir(tmpdir):
    assert os.path.exists(tmpdir)
    utils.rm(tmpdir)
    assert not os.path.exists(tmpdir)


def test_rm_broken_symlink(tmpdir):
    link = os.path.join(str(tmpdir), "link")
    os.symlink(os.path.join(str(tmpdir), "nonexistent"), link)
    utils.rm(link)
    assert not os.path.lexists(link)
