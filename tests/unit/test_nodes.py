"""Tests for nodes module."""

import time
import unittest

from buildtree.errors import (
    DependencyFailedError,
    MissingDependencyStatusError,
    ResourceError,
)
from buildtree.logging import LogLevel
from buildtree.nodes import Action, File, file
from buildtree.state import EPOCH, Failure, State, Success
from helpers.bodies import Recorder
from helpers.logging import RecordingLogger, console_logger
from helpers.timestamps import FakeFileSystem


def _state_with(*statuses):
    state = State()
    for status in statuses:
        state = state.append(status)
    return state


class TestNodeIdentity(unittest.TestCase):
    def test_ids_are_unique(self):
        nodes = [Action() for _ in range(10)]
        self.assertEqual(len({n.node_id for n in nodes}), 10)

    def test_default_names(self):
        action = Action()
        target = File("out/app.bin")
        self.assertEqual(action.name, f"action#{action.node_id}")
        self.assertEqual(target.name, "out/app.bin")
        self.assertFalse(action.has_name)

    def test_explicit_name(self):
        action = Action(name="lint")
        self.assertEqual(action.name, "lint")
        self.assertTrue(action.has_name)

    def test_deps_are_referenced_not_copied(self):
        shared = Action()
        b = Action([shared])
        c = Action([shared])
        self.assertIs(b.deps[0], c.deps[0])


class TestAction(unittest.TestCase):
    def test_runs_body_and_records_success(self):
        recorder = Recorder()
        node = Action(body=recorder.body("a"))

        before = time.time()
        state = node.run(State())

        self.assertEqual(recorder.calls, ["a"])
        status = state.status_of(node)
        self.assertIsInstance(status, Success)
        self.assertTrue(status.ran)
        self.assertGreaterEqual(status.timestamp, before)

    def test_runs_every_time(self):
        recorder = Recorder()
        node = Action(body=recorder.body("a"))
        node.run(State())
        node.run(State())
        self.assertEqual(recorder.count("a"), 2)

    def test_body_failure_is_recorded(self):
        node = Action(body=Recorder().body("a", fail=True))
        state = node.run(State())

        status = state.status_of(node)
        self.assertIsInstance(status, Failure)
        self.assertIsInstance(status.error, RuntimeError)
        self.assertEqual(str(status.error), "a failed")

    def test_does_not_mutate_input_state(self):
        node = Action()
        original = State()
        node.run(original)
        self.assertEqual(len(original), 0)

    def test_failed_dependency_skips_body(self):
        recorder = Recorder()
        dep = Action(name="dep")
        node = Action([dep], recorder.body("node"))
        state = _state_with(Failure(dep, RuntimeError("boom")))

        state = node.run(state)

        self.assertEqual(recorder.calls, [])
        status = state.status_of(node)
        self.assertIsInstance(status, Failure)
        self.assertIsInstance(status.error, DependencyFailedError)
        self.assertIs(status.error.dependency, dep)

    def test_missing_dependency_status_raises(self):
        dep = Action()
        node = Action([dep])
        with self.assertRaises(MissingDependencyStatusError):
            node.run(State())

    def test_timestamp_not_older_than_dependencies(self):
        dep = Action()
        future = time.time() + 3600
        node = Action([dep])
        state = node.run(_state_with(Success(dep, future)))
        self.assertGreaterEqual(state.status_of(node).timestamp, future)


class TestFile(unittest.TestCase):
    def setUp(self):
        self.fs = FakeFileSystem()
        self.recorder = Recorder()

    def _file(self, target, deps=None, touch=True):
        effect = self.fs.toucher(target) if touch else None
        return File(target, deps, self.recorder.body(target, effect=effect), timestamps=self.fs)

    def test_missing_target_without_deps_runs(self):
        node = self._file("out")
        state = node.run(State())

        self.assertEqual(self.recorder.calls, ["out"])
        status = state.status_of(node)
        self.assertTrue(status.ran)
        self.assertEqual(status.timestamp, self.fs.mtimes["out"])

    def test_existing_target_without_deps_is_up_to_date(self):
        mtime = self.fs.touch("out")
        node = self._file("out")
        state = node.run(State())

        self.assertEqual(self.recorder.calls, [])
        status = state.status_of(node)
        self.assertFalse(status.ran)
        self.assertEqual(status.timestamp, mtime)

    def test_target_older_than_dependency_runs(self):
        self.fs.touch("out")
        src_time = self.fs.touch("src")
        src = file("src", timestamps=self.fs)
        node = self._file("out", [src])

        state = node.run(_state_with(Success(src, src_time, ran=False)))

        self.assertEqual(self.recorder.calls, ["out"])
        self.assertGreater(state.status_of(node).timestamp, src_time)

    def test_target_as_old_as_dependency_runs(self):
        """Test that equal timestamps count as stale."""
        self.fs.touch("src", 50.0)
        self.fs.touch("out", 50.0)
        src = file("src", timestamps=self.fs)
        node = self._file("out", [src])

        node.run(_state_with(Success(src, 50.0, ran=False)))
        self.assertEqual(self.recorder.calls, ["out"])

    def test_target_newer_than_dependencies_skips(self):
        a_time = self.fs.touch("a")
        b_time = self.fs.touch("b")
        out_time = self.fs.touch("out")
        a = file("a", timestamps=self.fs)
        b = file("b", timestamps=self.fs)
        node = self._file("out", [a, b])

        state = node.run(_state_with(Success(a, a_time, ran=False), Success(b, b_time, ran=False)))

        self.assertEqual(self.recorder.calls, [])
        self.assertEqual(state.status_of(node).timestamp, out_time)

    def test_newest_dependency_decides(self):
        self.fs.touch("a", 10.0)
        self.fs.touch("out", 20.0)
        self.fs.touch("b", 30.0)
        a = file("a", timestamps=self.fs)
        b = file("b", timestamps=self.fs)
        node = self._file("out", [a, b])

        node.run(_state_with(Success(a, 10.0, ran=False), Success(b, 30.0, ran=False)))
        self.assertEqual(self.recorder.calls, ["out"])

    def test_timestamp_is_requeried_after_body(self):
        node = File("out", body=lambda: self.fs.touch("out", 123.0), timestamps=self.fs)
        state = node.run(State())
        self.assertEqual(state.status_of(node).timestamp, 123.0)

    def test_timestamp_never_older_than_dependencies(self):
        """Test that a body producing an old file still records the dependency time."""
        dep = Action()
        dep_time = 5000.0
        node = File("out", [dep], lambda: self.fs.touch("out", 10.0), timestamps=self.fs)

        state = node.run(_state_with(Success(dep, dep_time)))

        self.assertEqual(state.status_of(node).timestamp, dep_time)

    def test_target_still_missing_after_body_warns(self):
        logger = RecordingLogger()
        node = self._file("out", touch=False)

        state = node.run(State(), logger)

        status = state.status_of(node)
        self.assertIsInstance(status, Success)
        self.assertEqual(status.timestamp, EPOCH)
        warnings = logger.messages(LogLevel.WARN)
        self.assertEqual(len(warnings), 1)
        self.assertIn("still missing", warnings[0])

    def test_action_dependency_always_triggers(self):
        self.fs.touch("out")
        dep = Action()
        node = self._file("out", [dep])

        node.run(_state_with(Success(dep, time.time())))
        self.assertEqual(self.recorder.calls, ["out"])

    def test_body_failure_is_recorded(self):
        node = File("out", body=self.recorder.body("out", fail=True), timestamps=self.fs)
        state = node.run(State())
        self.assertIsInstance(state.status_of(node), Failure)

    def test_resource_error_is_a_failure_not_missing(self):
        self.fs.deny("out")
        node = self._file("out")

        state = node.run(State())

        self.assertEqual(self.recorder.calls, [])
        status = state.status_of(node)
        self.assertIsInstance(status, Failure)
        self.assertIsInstance(status.error, ResourceError)

    def test_failed_dependency_skips_body_and_stat(self):
        dep = Action(name="dep")
        node = self._file("out", [dep])

        state = node.run(_state_with(Failure(dep, RuntimeError())))

        self.assertEqual(self.recorder.calls, [])
        self.assertEqual(self.fs.stat_calls, [])
        self.assertIsInstance(state.status_of(node).error, DependencyFailedError)

    def test_missing_dependency_status_raises(self):
        dep = file("src", timestamps=self.fs)
        node = self._file("out", [dep])
        with self.assertRaises(MissingDependencyStatusError):
            node.run(State())

    def test_target_path_with_markup_is_logged_literally(self):
        logger, out = console_logger(LogLevel.INFO)
        node = self._file("[/tmp/out]", touch=False)

        state = node.run(State(), logger)

        self.assertTrue(state.status_of(node).ok)
        output = out.getvalue()
        self.assertIn("Running: [/tmp/out] (missing)", output)
        self.assertIn("Target '[/tmp/out]' still missing", output)

    def test_accepts_path_like_target(self):
        from pathlib import Path

        node = File(Path("build") / "out.o")
        self.assertEqual(node.target, str(Path("build") / "out.o"))


class TestFileHelper(unittest.TestCase):
    def test_creates_body_less_file(self):
        fs = FakeFileSystem()
        mtime = fs.touch("src/main.c")
        node = file("src/main.c", timestamps=fs)

        self.assertIsInstance(node, File)
        self.assertEqual(node.deps, [])
        state = node.run(State())
        self.assertEqual(state.status_of(node), Success(node, mtime, ran=False))


if __name__ == "__main__":
    unittest.main()
