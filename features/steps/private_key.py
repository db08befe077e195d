# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import os
import tempfile
import typing

from behave import given, then, use_step_matcher, when

from ufc_nft.account_loader import load_account, normalize_private_key
from ufc_nft.errors import ConfigError

use_step_matcher("re")


@when(r"I normalize the private key")
def when_normalize_private_key(context: typing.Any):
    try:
        context.output = normalize_private_key(context.input)
    except ConfigError as e:
        context.output = e


@given(r'an Aptos CLI config with private_key "(?P<private_key>\S+)"')
def given_config(context: typing.Any, private_key: str):
    directory = tempfile.mkdtemp()
    context.config_path = os.path.join(directory, "config.yaml")
    with open(context.config_path, "w") as f:
        f.write("---\nprofiles:\n  default:\n")
        f.write(f'    private_key: "{private_key}"\n')


@when(r"I load the account")
def when_load_account(context: typing.Any):
    context.account = load_account(config_path=context.config_path, allow_generate=False)


@then(r'the account key should be "(?P<expected>\S+)"')
def then_account_key(context: typing.Any, expected: str):
    actual = context.account.private_key.hex()
    assert actual == expected, "Expected " + expected + " but got " + actual
