# Copyright © Aptos Foundation
# SPDX-License-Identifier: Apache-2.0

"""
Local hand-off files and run summaries.

Identifier files (``series_id.txt``, ``set_id.txt``) carry one opaque id from
the script that created it to the scripts that need it. Summary files are
JSON documents written for post-hoc audit. Writes overwrite any previous
content and are not atomic; an interrupted run is simply re-run.
"""

from __future__ import annotations

import datetime
import json
import os
import tempfile
import time
import unittest
from typing import Any, Dict

from .errors import ConfigError


def write_identifier(path: str, value: str):
    with open(path, "w") as f:
        f.write(value)


def read_identifier(path: str, hint: str = "") -> str:
    """
    Read an identifier written by an upstream script.

    :param path: Identifier file, e.g. ``series_id.txt``
    :param hint: What to run first, appended to the error message
    :raises ConfigError: If the file is missing, unreadable or empty
    """
    try:
        with open(path) as f:
            value = f.read().strip()
    except OSError as e:
        message = f"Failed to read {path}"
        if hint:
            message += f". {hint}"
        raise ConfigError(message) from e
    if not value:
        raise ConfigError(f"{path} is empty")
    return value


def write_json(path: str, document: Dict[str, Any]):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w") as f:
        json.dump(document, f, indent=2)
        f.write("\n")


def read_json(path: str) -> Any:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to load {path}: {e}") from e


class RunTimer:
    """Wall-clock and monotonic timing for a script run.

    Construction marks the beginning of the run, ``mark()`` the beginning of
    the on-chain work, ``stop()`` the end. Durations are in seconds.
    """

    started_at: datetime.datetime
    ended_at: datetime.datetime

    def __init__(self):
        self.started_at = datetime.datetime.now(datetime.timezone.utc)
        self.ended_at = self.started_at
        self._start = time.monotonic()
        self._mark = self._start
        self._stop = self._start

    def mark(self):
        self._mark = time.monotonic()

    def stop(self) -> RunTimer:
        self._stop = time.monotonic()
        self.ended_at = datetime.datetime.now(datetime.timezone.utc)
        return self

    @property
    def duration(self) -> float:
        """Seconds from ``mark()`` to ``stop()``."""
        return self._stop - self._mark

    @property
    def total_duration(self) -> float:
        return self._stop - self._start

    def summary(self) -> Dict[str, Any]:
        return {
            "duration": round(self.duration, 3),
            "totalScriptDuration": round(self.total_duration, 3),
            "startTime": self.started_at.isoformat(),
            "endTime": self.ended_at.isoformat(),
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }

    def report(self):
        print(f"Script started at: {self.started_at.astimezone():%Y-%m-%d %H:%M:%S}")
        print(f"Script ended at: {self.ended_at.astimezone():%Y-%m-%d %H:%M:%S}")
        print(f"Total script duration: {self.total_duration:.2f} seconds")


class Test(unittest.TestCase):
    def test_identifier(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "series_id.txt")
            write_identifier(path, "12")
            write_identifier(path, "13\n")
            self.assertEqual(read_identifier(path), "13")

    def test_missing_identifier(self):
        with self.assertRaises(ConfigError) as cm:
            read_identifier("/nonexistent/set_id.txt", "Please create a set first.")
        self.assertIn("Please create a set first.", str(cm.exception))

    def test_empty_identifier(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "set_id.txt")
            write_identifier(path, "  \n")
            with self.assertRaises(ConfigError):
                read_identifier(path)

    def test_json(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "out", "results.json")
            write_json(path, {"success": True, "uris": ["a", "b"]})
            self.assertEqual(read_json(path), {"success": True, "uris": ["a", "b"]})

    def test_bad_json(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "data.json")
            with open(path, "w") as f:
                f.write("{not json")
            with self.assertRaises(ConfigError):
                read_json(path)

    def test_timer(self):
        timer = RunTimer()
        timer.mark()
        summary = timer.stop().summary()
        self.assertGreaterEqual(timer.total_duration, timer.duration)
        self.assertLessEqual(summary["startTime"], summary["endTime"])
