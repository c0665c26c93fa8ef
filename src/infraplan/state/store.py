"""JSON state file with an append-only journal for crash safety.

During apply every completed node is appended to ``<state>.journal`` and
fsynced right away. ``flush`` rewrites the state file atomically and drops the
journal. If a run dies before flushing, the next ``load`` replays the journal
so already-applied snapshots are not lost.
"""

import json
import os
import threading
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError
from .models import State, ResourceSnapshot, STATE_VERSION
from ..utils.errors import StateIOError
from ..utils.logging import get_logger

logger = get_logger("state.store")


class StateStore:
    """Single-writer store for one state file."""

    def __init__(self, path):
        self.path = Path(path)
        self.journal_path = self.path.with_name(self.path.name + ".journal")
        self._lock = threading.Lock()
        self._state: Optional[State] = None
        self._dirty = False

    @property
    def state(self) -> State:
        if self._state is None:
            return self.load()
        return self._state

    def load(self) -> State:
        """
        Read the state file and replay any leftover journal.

        Raises:
            StateIOError: If the file exists but cannot be read or parsed
        """
        state = State()
        if self.path.exists():
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    state = State.model_validate(json.load(f))
            except json.JSONDecodeError as e:
                raise StateIOError(f"State file {self.path} is not valid JSON: {e}")
            except ValidationError as e:
                raise StateIOError(f"State file {self.path} has invalid structure: {e}")
            except OSError as e:
                raise StateIOError(f"Error reading state file {self.path}: {e}")

            if state.version > STATE_VERSION:
                raise StateIOError(
                    f"State file {self.path} has version {state.version}; "
                    f"this release understands up to {STATE_VERSION}"
                )
        else:
            logger.debug(f"No state file at {self.path}, starting empty")

        self._state = state
        self._dirty = False
        replayed = self._replay_journal()
        if replayed:
            logger.warning(f"Recovered {replayed} journal entries from an interrupted apply")
            self._dirty = True

        logger.info(f"Loaded state (serial {state.serial}, resources: {len(state.resources)})")
        return state

    def _replay_journal(self) -> int:
        if not self.journal_path.exists():
            return 0
        try:
            with open(self.journal_path, 'r', encoding='utf-8') as f:
                lines = f.read().splitlines()
        except OSError as e:
            raise StateIOError(f"Error reading state journal {self.journal_path}: {e}")

        count = 0
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
                self._apply_entry(entry)
            except (json.JSONDecodeError, ValidationError, KeyError, TypeError) as e:
                if number == len(lines):
                    # torn final write: that node was never confirmed
                    logger.warning(f"Dropping incomplete last journal line in {self.journal_path}")
                    self._rewrite_journal(lines[:number - 1])
                    break
                raise StateIOError(f"Corrupt state journal {self.journal_path} at line {number}: {e}")
            count += 1
        return count

    def _rewrite_journal(self, lines: List[str]) -> None:
        """Replace the journal with its complete lines so later appends start clean."""
        tmp_path = self.journal_path.with_name(self.journal_path.name + ".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write("".join(line + "\n" for line in lines if line.strip()))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.journal_path)
        except OSError as e:
            raise StateIOError(f"Failed to repair state journal {self.journal_path}: {e}")

    def _journal_ends_with_newline(self) -> bool:
        try:
            with open(self.journal_path, 'rb') as f:
                f.seek(0, os.SEEK_END)
                if f.tell() == 0:
                    return True
                f.seek(-1, os.SEEK_END)
                return f.read(1) == b"\n"
        except FileNotFoundError:
            return True

    def _apply_entry(self, entry: dict) -> None:
        if entry["op"] == "record":
            snapshot = ResourceSnapshot.model_validate(entry["snapshot"])
            self._state.resources[snapshot.address] = snapshot
        elif entry["op"] == "forget":
            self._state.resources.pop(entry["address"], None)
        else:
            raise KeyError(entry["op"])

    def get(self, address: str) -> Optional[ResourceSnapshot]:
        """Thread-safe read of one snapshot."""
        with self._lock:
            return self.state.get(address)

    def record(self, snapshot: ResourceSnapshot) -> None:
        """Store a node's snapshot and append it to the journal."""
        self._append({"op": "record", "snapshot": snapshot.model_dump(mode="json")})

    def forget(self, address: str) -> None:
        """Remove a deleted node and append the removal to the journal."""
        self._append({"op": "forget", "address": address})

    def _append(self, entry: dict) -> None:
        with self._lock:
            state = self.state
            self._apply_entry(entry)
            self._dirty = True
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                # an entry never continues a line left unfinished by a crash
                prefix = "" if self._journal_ends_with_newline() else "\n"
                with open(self.journal_path, 'a', encoding='utf-8') as f:
                    f.write(prefix + json.dumps(entry, sort_keys=True) + "\n")
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                raise StateIOError(f"Failed to append to state journal {self.journal_path}: {e}")
            logger.debug(f"Journaled {entry['op']} (resources now: {len(state.resources)})")

    def flush(self) -> None:
        """
        Atomically rewrite the state file and drop the journal.

        Raises:
            StateIOError: If the file cannot be written
        """
        with self._lock:
            if not self._dirty:
                return
            state = self.state
            state.serial += 1
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    f.write(state.model_dump_json(indent=2) + "\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
                if self.journal_path.exists():
                    self.journal_path.unlink()
            except OSError as e:
                raise StateIOError(f"Failed to write state file {self.path}: {e}")
            self._dirty = False
            logger.info(f"Saved state to {self.path} (serial {state.serial})")
