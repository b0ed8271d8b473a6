import os
from copy import deepcopy

import pytest

from rcodesign_action.script import get_default_config

EMPTY_INPUTS = {
    "input_path": "",
    "sign": True,
    "notarize": False,
    "staple": False,
    "config_file": [],
    "profile": "",
    "pem_file": [],
    "p12_file": "",
    "p12_password": "",
    "certificate_der_file": [],
    "remote_sign_public_key": [],
    "remote_sign_public_key_pem_file": "",
    "remote_sign_shared_secret": "",
    "app_store_connect_api_key_json_file": "",
    "app_store_connect_api_issuer": "",
    "app_store_connect_api_key": "",
    "sign_args": [],
    "rcodesign_version": "0.22.0",
}


@pytest.fixture(scope="function")
def config(tmpdir):
    _config = get_default_config(base_dir=str(tmpdir))
    _config["tool_cache_dir"] = os.path.join(str(tmpdir), "tools")
    _config["github_actions"] = False
    yield _config


@pytest.fixture(scope="function")
def inputs():
    yield deepcopy(EMPTY_INPUTS)
