# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Typed access to events emitted by committed transactions.

Event types are matched by substring rather than equality because the module
address prefix of the fully qualified type (``0x70c3...::ufc_nft::...``)
differs between deployments. A missing event or a missing field is reported
as ``None``; callers decide whether that is fatal.

Examples:
    Extract the series id from a ``create_series`` transaction::

        series = extract(result.events, SeriesCreatedEvent)
        if series is None:
            print("No SeriesCreatedEvent found in transaction events")
        else:
            write_identifier(SERIES_ID_FILE, series.series_id)
"""

from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar


@dataclass(frozen=True)
class Event:
    """A single event from a committed transaction."""

    type: str
    data: Dict[str, Any] = field(default_factory=dict)
    sequence_number: int = 0

    @staticmethod
    def parse(event: Dict[str, Any]) -> Event:
        return Event(
            event["type"],
            event.get("data") or {},
            int(event.get("sequence_number", 0)),
        )


def find_event(events: Sequence[Event], type_substring: str) -> Optional[Dict[str, Any]]:
    """
    Return the data of the first event whose type contains ``type_substring``.

    :param events: Events of a committed transaction, in emission order
    :param type_substring: Substring of the fully qualified event type
    :return: The event's data mapping, or None if no event matches
    """
    for event in events:
        if type_substring in event.type:
            return event.data
    return None


def _field(data: Dict[str, Any], name: str) -> Optional[str]:
    value = data.get(name)
    if value is None or value == "":
        return None
    return str(value)


class SeriesCreatedEvent:
    """Emitted by ``ufc_nft::create_series``."""

    series_id: str

    event_type: str = "SeriesCreatedEvent"

    def __init__(self, series_id: str):
        self.series_id = series_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SeriesCreatedEvent):
            return NotImplemented
        return self.series_id == other.series_id

    def __str__(self) -> str:
        return f"SeriesCreatedEvent[series_id: {self.series_id}]"

    @staticmethod
    def parse(data: Dict[str, Any]) -> Optional[SeriesCreatedEvent]:
        series_id = _field(data, "series_id")
        if series_id is None:
            return None
        return SeriesCreatedEvent(series_id)


class SetCreatedEvent:
    """Emitted by ``ufc_nft::create_set``."""

    set_id: str

    event_type: str = "SetCreatedEvent"

    def __init__(self, set_id: str):
        self.set_id = set_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SetCreatedEvent):
            return NotImplemented
        return self.set_id == other.set_id

    def __str__(self) -> str:
        return f"SetCreatedEvent[set_id: {self.set_id}]"

    @staticmethod
    def parse(data: Dict[str, Any]) -> Optional[SetCreatedEvent]:
        set_id = _field(data, "set_id")
        if set_id is None:
            return None
        return SetCreatedEvent(set_id)


class NftMintedEvent:
    """Emitted by ``ufc_nft::mint_nft``. The id is a u64 passed on to
    ``add_metadata``, so a non-decimal value does not parse."""

    nft_id: int

    event_type: str = "NFTMintedEvent"

    def __init__(self, nft_id: int):
        self.nft_id = nft_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NftMintedEvent):
            return NotImplemented
        return self.nft_id == other.nft_id

    def __str__(self) -> str:
        return f"NftMintedEvent[nft_id: {self.nft_id}]"

    @staticmethod
    def parse(data: Dict[str, Any]) -> Optional[NftMintedEvent]:
        nft_id = _field(data, "nft_id")
        if nft_id is None or not nft_id.isdecimal():
            return None
        return NftMintedEvent(int(nft_id))


class TokenMintEvent:
    """Emitted by the ``0x4::collection`` framework module for every token
    minted into a collection; carries the token object address."""

    token: str

    event_type: str = "0x4::collection::Mint"

    def __init__(self, token: str):
        self.token = token

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenMintEvent):
            return NotImplemented
        return self.token == other.token

    def __str__(self) -> str:
        return f"TokenMintEvent[token: {self.token}]"

    @staticmethod
    def parse(data: Dict[str, Any]) -> Optional[TokenMintEvent]:
        token = _field(data, "token")
        if token is None:
            return None
        return TokenMintEvent(token)


EventVariant = TypeVar(
    "EventVariant", SeriesCreatedEvent, SetCreatedEvent, NftMintedEvent, TokenMintEvent
)


def extract(
    events: Sequence[Event], variant: Type[EventVariant]
) -> Optional[EventVariant]:
    """Find the first event of a known kind and parse it.

    Returns None when no such event was emitted or its payload lacks the
    identifying field.
    """
    data = find_event(events, variant.event_type)
    if data is None:
        return None
    return variant.parse(data)


def extract_all(
    events: Sequence[Event], variant: Type[EventVariant]
) -> List[EventVariant]:
    parsed = []
    for event in events:
        if variant.event_type not in event.type:
            continue
        value = variant.parse(event.data)
        if value is not None:
            parsed.append(value)
    return parsed


class Test(unittest.TestCase):
    events = [
        Event("0xAAA::ufc_nft::SeriesCreatedEvent", {"series_id": "7", "name": "S"}),
        Event("0xAAA::ufc_nft::OtherEvent", {"value": "1"}),
    ]

    def test_find_event(self):
        self.assertEqual(
            find_event(self.events, "SeriesCreatedEvent"),
            {"series_id": "7", "name": "S"},
        )
        self.assertIsNone(find_event(self.events, "NoSuchEvent"))
        self.assertIsNone(find_event([], "SeriesCreatedEvent"))

    def test_find_event_returns_first_match(self):
        events = [
            Event("0x1::ufc_nft::SetCreatedEvent", {"set_id": "1"}),
            Event("0x2::ufc_nft::SetCreatedEvent", {"set_id": "2"}),
        ]
        self.assertEqual(find_event(events, "SetCreatedEvent"), {"set_id": "1"})

    def test_extract(self):
        self.assertEqual(
            extract(self.events, SeriesCreatedEvent), SeriesCreatedEvent("7")
        )
        self.assertIsNone(extract(self.events, SetCreatedEvent))

    def test_extract_missing_field(self):
        events = [Event("0xAAA::ufc_nft::NFTMintedEvent", {"edition": "1"})]
        self.assertIsNone(extract(events, NftMintedEvent))

    def test_extract_nft_id(self):
        events = [Event("0xAAA::ufc_nft::NFTMintedEvent", {"nft_id": "17"})]
        self.assertEqual(extract(events, NftMintedEvent), NftMintedEvent(17))
        for nft_id in ("0xdeadbeef", "-1", "1.5"):
            events = [Event("0xAAA::ufc_nft::NFTMintedEvent", {"nft_id": nft_id})]
            self.assertIsNone(extract(events, NftMintedEvent))

    def test_extract_all(self):
        events = [
            Event("0x4::collection::Mint", {"token": "0x1", "index": {"value": "1"}}),
            Event("0x1::fungible_asset::Withdraw", {"amount": "10"}),
            Event("0x4::collection::Mint", {"token": "0x2", "index": {"value": "2"}}),
        ]
        self.assertEqual(
            extract_all(events, TokenMintEvent),
            [TokenMintEvent("0x1"), TokenMintEvent("0x2")],
        )

    def test_parse(self):
        event = Event.parse(
            {
                "type": "0xAAA::ufc_nft::SetCreatedEvent",
                "data": {"set_id": "3"},
                "sequence_number": "4",
            }
        )
        self.assertEqual(event.sequence_number, 4)
        self.assertEqual(extract([event], SetCreatedEvent), SetCreatedEvent("3"))
