# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import typing

from behave import given, then, use_step_matcher

from ufc_nft import errors

# Use regular expressions
use_step_matcher("re")


@given(r'string "(?P<input_value>.*)"')
def given_string(context: typing.Any, input_value: str):
    context.input = input_value


@then(r'the result should be string "(?P<expected_value>.*)"')
def then_result_string(context: typing.Any, expected_value: str):
    assert context.output == expected_value, (
        "Expected " + expected_value + " but got " + str(context.output)
    )


@then(r"the result should be nothing")
def then_result_nothing(context: typing.Any):
    assert context.output is None, "Expected nothing but got " + str(context.output)


@then(r"it should fail with (?P<error_name>[A-Za-z]+)")
def then_fail_with(context: typing.Any, error_name: str):
    expected = getattr(errors, error_name)
    assert isinstance(context.output, expected), (
        "Expected " + error_name + " but got " + repr(context.output)
    )
