"""Tracking of the chain head with reorg detection and backfilling."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol

from .primitives import Block, Hash, Log

LATEST = "latest"
DEFAULT_MAX_BLOCK_BACKLOG = 10
DEFAULT_POLL_INTERVAL = 1.0


class BlockTrackerError(Exception):
    """Raised when the tracked chain cannot be reconciled."""


class BlockProvider(Protocol):
    """The chain queries a block tracker needs."""

    def get_block_by_hash(self, hash: Hash, full: bool) -> Block | None:
        """Return the block with ``hash``, or None if it is unknown."""

    def get_block_by_number(self, number, full: bool) -> Block | None:
        """Return the block at ``number`` (an int or ``"latest"``)."""


class Tracker(Protocol):
    """A source of new chain heads."""

    def track(self, stop: threading.Event, handle: Callable[[Block], None]) -> None:
        """Feed new blocks to ``handle`` until ``stop`` is set."""


class EventType(Enum):
    """What happened to the items of an event."""

    ADD = 0
    DEL = 1


@dataclass
class LogEvent:
    """Logs included in or removed from the chain."""

    type: EventType = EventType.ADD
    added: list[Log] = field(default_factory=list)
    removed: list[Log] = field(default_factory=list)


@dataclass
class BlockEvent:
    """Blocks included in or removed from the chain."""

    type: EventType = EventType.ADD
    added: list[Block] = field(default_factory=list)
    removed: list[Block] = field(default_factory=list)


@dataclass
class Config:
    """Block tracker settings."""

    tracker: Tracker | None = None
    max_block_backlog: int = DEFAULT_MAX_BLOCK_BACKLOG


class JSONBlockTracker:
    """Polls the provider for the latest block."""

    def __init__(
        self, provider: BlockProvider, poll_interval: float = DEFAULT_POLL_INTERVAL
    ) -> None:
        self.provider = provider
        self.poll_interval = poll_interval

    def track(self, stop: threading.Event, handle: Callable[[Block], None]) -> None:
        """Poll until ``stop`` is set, handing every new head to ``handle``."""
        last: Block | None = None
        while not stop.wait(self.poll_interval):
            block = self.provider.get_block_by_number(LATEST, False)
            if last is not None and last.hash == block.hash:
                continue
            handle(block)
            last = block


class BlockTracker:
    """Keeps a window of recent blocks and reports additions and reorgs."""

    def __init__(self, provider: BlockProvider, config: Config | None = None) -> None:
        self.config = config if config is not None else Config()
        self.provider = provider
        self.subscriber = self.config.tracker or JSONBlockTracker(provider)
        self._blocks: list[Block] = []
        self._blocks_lock = threading.Lock()
        self._subscribers: list[queue.Queue] = []
        self._subscribers_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._initialized = False
        self._stop = threading.Event()

    def subscribe(self) -> queue.Queue:
        """Return a queue receiving block events; events are dropped when it is full."""
        channel: queue.Queue = queue.Queue(maxsize=1)
        with self._subscribers_lock:
            self._subscribers.append(channel)
        return channel

    def init(self) -> None:
        """Load the most recent blocks from the provider; runs only once."""
        with self._init_lock:
            if self._initialized:
                return
            self._initialized = True

            block = self.provider.get_block_by_number(LATEST, False)
            if block.number == 0:
                return
            collected: list[Block] = []
            for _ in range(self.config.max_block_backlog):
                collected.append(block)
                if block.number == 0:
                    break
                parent = self.provider.get_block_by_hash(block.parent_hash, False)
                if parent is None:
                    raise BlockTrackerError(
                        f"block with hash {block.parent_hash} not found"
                    )
                block = parent
            collected.reverse()
            self._blocks = collected

    def max_block_backlog(self) -> int:
        """The number of blocks kept in the window."""
        return self.config.max_block_backlog

    def last_block(self) -> Block | None:
        """A copy of the most recent block, or None if nothing is tracked."""
        if not self._blocks:
            return None
        return self._blocks[-1].copy()

    def blocks(self) -> list[Block]:
        """Copies of the tracked blocks, oldest first."""
        return [block.copy() for block in self._blocks]

    def __len__(self) -> int:
        return len(self._blocks)

    def close(self) -> None:
        """Stop tracking."""
        self._stop.set()

    def start(self) -> None:
        """Track new heads until :meth:`close` is called; blocks the caller."""
        self.subscriber.track(self._stop, self.handle_reconcile)

    def add_block_locked(self, block: Block) -> None:
        """Append ``block`` to the window; the caller holds the lock."""
        if len(self._blocks) == self.config.max_block_backlog:
            self._blocks = self._blocks[1:]
        if self._blocks:
            last_number = self._blocks[-1].number
            if last_number + 1 != block.number:
                raise BlockTrackerError(
                    f"bad number sequence. {last_number} and {block.number}"
                )
        self._blocks.append(block)

    def _index_of(self, block_hash: Hash) -> int:
        return next(
            (index for index, block in enumerate(self._blocks) if block.hash == block_hash),
            -1,
        )

    def _reconcile(self, block: Block) -> tuple[list[Block], int]:
        if self._index_of(block.hash) != -1:
            return [], -1
        if not self._blocks:
            return [block], -1
        if self._blocks[-1].hash == block.parent_hash:
            return [block], -1
        fork = self._index_of(block.parent_hash)
        if fork != -1:
            return [block], fork

        # unknown parent: walk back until a tracked block is found
        added = [block]
        count = 0
        while True:
            if count > self.config.max_block_backlog:
                raise BlockTrackerError("cannot reconcile more than max backlog values")
            count += 1
            parent = self.provider.get_block_by_hash(block.parent_hash, False)
            if parent is None:
                raise BlockTrackerError(
                    f"parent with hash {block.parent_hash} not found"
                )
            added.append(parent)
            fork = self._index_of(parent.parent_hash)
            if fork != -1:
                break
            block = parent
        added.reverse()
        return added, fork

    def handle_block_event(self, block: Block) -> BlockEvent | None:
        """Reconcile ``block`` with the window and return what changed."""
        with self._blocks_lock:
            new_blocks, fork = self._reconcile(block)
            if not new_blocks:
                return None
            event = BlockEvent()
            if fork != -1:
                event.removed = self._blocks[fork + 1:]
                self._blocks = self._blocks[: fork + 1]
            for new_block in new_blocks:
                event.added.append(new_block)
                self.add_block_locked(new_block)
            return event

    def handle_reconcile(self, block: Block) -> None:
        """Reconcile ``block`` and notify subscribers of any change."""
        event = self.handle_block_event(block)
        if event is None:
            return
        with self._subscribers_lock:
            for channel in self._subscribers:
                try:
                    channel.put_nowait(event)
                except queue.Full:
                    pass