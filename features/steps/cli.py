# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import asyncio
import contextlib
import functools
import io
import shlex
import typing
import unittest.mock

from aptos_sdk.async_client import ApiError
from behave import given, then, use_step_matcher, when

from ufc_nft import cli
from ufc_nft.testing import mock_clients
from ufc_nft.submitter import TransactionSubmitter

use_step_matcher("re")

PRIVATE_KEY = "0x005120c5882b0d492b3d2dc60a8a4510ec2051825413878453137305ba2d644b"


@given(r"a funded account on a healthy node")
def given_healthy_node(context: typing.Any):
    context.rest_client, context.faucet_client = mock_clients()


@given(r"a funded account on a node that always rate limits")
def given_rate_limited_node(context: typing.Any):
    context.rest_client, context.faucet_client = mock_clients()
    context.rest_client.submit_bcs_transaction.side_effect = ApiError(
        "rate limit exceeded", 429
    )


@when(r"I run ufc-nft (?P<command_line>.*)")
def when_run_cli(context: typing.Any, command_line: str):
    context.sleeps = []

    async def record_sleep(seconds: float):
        context.sleeps.append(seconds)

    output = io.StringIO()
    errors = io.StringIO()
    argv = shlex.split(command_line) + ["--private-key", PRIVATE_KEY]
    submitter = functools.partial(TransactionSubmitter, sleep=record_sleep)
    with unittest.mock.patch(
        "ufc_nft.context.TransactionSubmitter", submitter
    ), contextlib.redirect_stdout(output), contextlib.redirect_stderr(errors):
        context.status = asyncio.run(
            cli.main(argv, context.rest_client, context.faucet_client)
        )
    context.stdout = output.getvalue()
    context.stderr = errors.getvalue()


@then(r"the exit status should be (?P<status>\d+)")
def then_exit_status(context: typing.Any, status: str):
    assert context.status == int(status), (
        "Expected exit status " + status + " but got " + str(context.status)
    )


@then(r'the output should contain "(?P<text>.*)"')
def then_output_contains(context: typing.Any, text: str):
    assert text in context.stdout, context.stdout


@then(r'the errors should contain "(?P<text>.*)"')
def then_errors_contain(context: typing.Any, text: str):
    assert text in context.stderr, context.stderr


@then(r"(?P<count>\d+) transactions? should have been submitted")
def then_submitted(context: typing.Any, count: str):
    actual = context.rest_client.submit_bcs_transaction.await_count
    assert actual == int(count), "Expected " + count + " but got " + str(actual)


@then(r"the node should not have been contacted")
def then_not_contacted(context: typing.Any):
    context.rest_client.account.assert_not_called()
    context.rest_client.submit_bcs_transaction.assert_not_called()
    context.faucet_client.fund_account.assert_not_called()


@then(r"the retries should have waited (?P<first>\d+) and (?P<second>\d+) seconds")
def then_retry_delays(context: typing.Any, first: str, second: str):
    expected = [float(first), float(second)]
    assert context.sleeps == expected, (
        "Expected " + str(expected) + " but got " + str(context.sleeps)
    )
