"""
Decision trace: one JSON line per access decision.

The default location is ``~/.loreguard/access_decisions.jsonl``. Lines are
only ever appended, never rewritten.

The trace is callable, so it plugs straight into the engine::

    trace = DecisionTrace(path)
    engine = AccessPolicyEngine(allow_list, observer=trace)

    for entry in trace.tail(n=20, handle="alice"):
        print(entry)
"""

from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Iterator
from pathlib import Path

from loreguard.access.model import AccessDecision

logger = logging.getLogger(__name__)

TraceEntry = dict[str, object]


class DecisionTrace:
    """
    JSONL audit file for :class:`AccessDecision` records.

    A single process may append freely. Several processes sharing one file
    must serialise writes themselves.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    def __call__(self, decision: AccessDecision) -> None:
        self.record(decision)

    def record(self, decision: AccessDecision) -> None:
        """Append ``decision``. I/O errors are logged, not raised."""
        line = decision.to_json()
        try:
            with self.path.open("a", encoding="utf-8") as fh:
                print(line, file=fh)
        except OSError as exc:
            logger.error("Cannot append access decision to %s: %s", self.path, exc)

    def tail(
        self, n: int = 50, handle: str | None = None, denied_only: bool = False
    ) -> list[TraceEntry]:
        """Last ``n`` entries, oldest first, optionally narrowed by user or outcome."""
        if n <= 0:
            return []
        entries = (
            e
            for e in self
            if (handle is None or e.get("handle") == handle)
            and not (denied_only and e.get("allowed"))
        )
        return list(deque(entries, maxlen=n))

    def __iter__(self) -> Iterator[TraceEntry]:
        for raw in self._lines():
            try:
                entry = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed trace line in %s", self.path)
                continue
            if isinstance(entry, dict):
                yield entry

    def _lines(self) -> Iterator[str]:
        if not self.path.is_file():
            return
        try:
            with self.path.open(encoding="utf-8") as fh:
                yield from filter(None, (line.strip() for line in fh))
        except OSError as exc:
            logger.error("Cannot read access decision trace %s: %s", self.path, exc)
