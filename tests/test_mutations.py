"""Tests for the mutation log and its unwinding guarantees."""

from __future__ import annotations

import os
import signal
import time
import unittest
from pathlib import Path

from gitlab_review.ecosystems import COMPOSER, YARN
from gitlab_review.mutations import (
    BranchSwitch,
    DirectoryBackup,
    DirectorySwap,
    MutationLog,
    StashPush,
    terminate_on_signals,
)


def _swap(ecosystem=YARN) -> DirectorySwap:
    return DirectorySwap(ecosystem, Path("/work") / ecosystem.dependency_dir, Path("/cache/1"))


class MutationLogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.mutations = [
            DirectoryBackup(YARN, Path("/work/node_modules"), Path("/tmp/s/node_modules")),
            StashPush(ref="abc123", branch="main"),
            BranchSwitch(from_branch="main", to_branch="feature/x"),
            _swap(),
        ]

    def test_unwind_runs_every_undo_once_in_reverse_order(self) -> None:
        log = MutationLog()
        for mutation in self.mutations:
            log.record(mutation)
        undone = []

        log.unwind(undone.append)
        log.unwind(undone.append)

        self.assertEqual(undone, list(reversed(self.mutations)))
        self.assertEqual(len(log), 0)

    def test_failing_undo_does_not_stop_the_rest(self) -> None:
        log = MutationLog()
        for mutation in self.mutations:
            log.record(mutation)
        undone = []

        def undo(mutation):
            undone.append(mutation)
            if isinstance(mutation, BranchSwitch):
                raise RuntimeError("switch failed")

        log.unwind(undo)

        self.assertEqual(undone, list(reversed(self.mutations)))

    def test_ctrl_c_during_undo_still_runs_the_rest_then_reraises(self) -> None:
        log = MutationLog()
        for mutation in self.mutations:
            log.record(mutation)
        undone = []

        def undo(mutation):
            undone.append(mutation)
            if isinstance(mutation, DirectorySwap):
                raise KeyboardInterrupt

        with self.assertRaises(KeyboardInterrupt):
            log.unwind(undo)

        self.assertEqual(undone, list(reversed(self.mutations)))
        self.assertEqual(len(log), 0)

    def test_context_manager_unwinds_when_the_body_raises(self) -> None:
        undone = []
        with self.assertRaises(ConnectionError):
            with MutationLog(undone.append) as log:
                log.record(self.mutations[0])
                raise ConnectionError("network down")

        self.assertEqual(undone, [self.mutations[0]])

    def test_only_one_swap_per_ecosystem(self) -> None:
        log = MutationLog()
        log.record(_swap(YARN))
        log.record(_swap(COMPOSER))

        with self.assertRaises(ValueError):
            log.record(_swap(YARN))

    def test_backup_and_swap_for_same_ecosystem_may_coexist(self) -> None:
        log = MutationLog()
        log.record(self.mutations[0])
        log.record(_swap(YARN))

        self.assertEqual(len(log), 2)


@unittest.skipUnless(hasattr(signal, "SIGTERM"), "needs SIGTERM")
class TerminateOnSignalsTests(unittest.TestCase):
    def test_sigterm_becomes_system_exit_and_handler_is_restored(self) -> None:
        before = signal.getsignal(signal.SIGTERM)
        with self.assertRaises(SystemExit) as caught:
            with terminate_on_signals((signal.SIGTERM,)):
                os.kill(os.getpid(), signal.SIGTERM)
                time.sleep(5)

        self.assertEqual(caught.exception.code, 128 + signal.SIGTERM)
        self.assertEqual(signal.getsignal(signal.SIGTERM), before)

    def test_guard_inside_signal_scope_still_unwinds(self) -> None:
        undone = []
        with self.assertRaises(SystemExit):
            with terminate_on_signals((signal.SIGTERM,)), MutationLog(undone.append) as log:
                log.record(BranchSwitch("main", "feature/x"))
                os.kill(os.getpid(), signal.SIGTERM)
                time.sleep(5)

        self.assertEqual(undone, [BranchSwitch("main", "feature/x")])

    def test_second_signal_during_cleanup_does_not_skip_the_stash_pop(self) -> None:
        undone = []
        stash = StashPush(ref="abc123", branch="main")
        switch = BranchSwitch("main", "feature/x")

        def undo(mutation):
            undone.append(mutation)
            if mutation is switch:
                os.kill(os.getpid(), signal.SIGTERM)
                time.sleep(5)

        with self.assertRaises(SystemExit):
            with terminate_on_signals((signal.SIGTERM,)), MutationLog(undo) as log:
                log.record(stash)
                log.record(switch)

        self.assertEqual(undone, [switch, stash])


if __name__ == "__main__":
    unittest.main()
