# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

import typing

from behave import given, then, use_step_matcher, when

from ufc_nft.events import (
    Event,
    NftMintedEvent,
    SeriesCreatedEvent,
    SetCreatedEvent,
    extract,
    find_event,
)

use_step_matcher("re")

VARIANTS = {
    "SeriesCreatedEvent": (SeriesCreatedEvent, "series_id"),
    "SetCreatedEvent": (SetCreatedEvent, "set_id"),
    "NftMintedEvent": (NftMintedEvent, "nft_id"),
}


@given(
    r'a transaction emitting "(?P<event_type>\S+)" with (?P<field>\w+) (?P<value>\S+)'
)
def given_event(context: typing.Any, event_type: str, field: str, value: str):
    if not hasattr(context, "events"):
        context.events = []
    context.events.append(
        Event.parse({"type": event_type, "data": {field: value}})
    )


@when(r'I look up the event "(?P<type_substring>\S+)"')
def when_find_event(context: typing.Any, type_substring: str):
    context.output = find_event(context.events, type_substring)


@when(r"I extract the (?P<variant>\w+)")
def when_extract(context: typing.Any, variant: str):
    event_class, field = VARIANTS[variant]
    parsed = extract(context.events, event_class)
    context.output = None if parsed is None else str(getattr(parsed, field))


@then(r"the event data should have (?P<field>\w+) (?P<value>\S+)")
def then_event_data(context: typing.Any, field: str, value: str):
    assert context.output is not None, "No event found"
    assert context.output.get(field) == value, (
        "Expected " + value + " but got " + str(context.output.get(field))
    )
