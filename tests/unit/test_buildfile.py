"""Tests for buildfile module."""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from buildtree.buildfile import find_build_file, load_build_file, select_targets
from buildtree.errors import BuildFileError
from buildtree.nodes import Action, File


BUILD_FILE = '''
from buildtree import Action, File, file

source = file("main.c")
binary = File("main", [source])
test = Action([binary], name="run-tests")
alias = binary
_private = Action()
not_a_node = 42
'''


class TestFindBuildFile(unittest.TestCase):
    def test_finds_in_start_dir(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "buildfile.py").write_text("")
            self.assertEqual(find_build_file(root), (root / "buildfile.py").resolve())

    def test_finds_short_name(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "bt.py").write_text("")
            self.assertEqual(find_build_file(root), (root / "bt.py").resolve())

    def test_prefers_buildfile_py(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "bt.py").write_text("")
            (root / "buildfile.py").write_text("")
            self.assertEqual(find_build_file(root).name, "buildfile.py")

    def test_searches_parents(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "buildfile.py").write_text("")
            nested = root / "src" / "lib"
            nested.mkdir(parents=True)
            self.assertEqual(find_build_file(nested), (root / "buildfile.py").resolve())

    def test_custom_names(self):
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "make.py").write_text("")
            self.assertEqual(find_build_file(root, ["make.py"]).name, "make.py")

    def test_not_found(self):
        with TemporaryDirectory() as tmpdir:
            self.assertIsNone(find_build_file(Path(tmpdir), ["no-such-build-file.py"]))


class TestLoadBuildFile(unittest.TestCase):
    def setUp(self):
        self._tmpdir = TemporaryDirectory()
        self.root = Path(self._tmpdir.name)

    def tearDown(self):
        self._tmpdir.cleanup()

    def _write(self, content, name="buildfile.py"):
        path = self.root / name
        path.write_text(content)
        return path

    def test_collects_module_level_nodes(self):
        targets = load_build_file(self._write(BUILD_FILE))

        self.assertEqual(list(targets), ["source", "binary", "test", "alias"])
        self.assertIsInstance(targets["binary"], File)
        self.assertIsInstance(targets["test"], Action)
        self.assertIs(targets["alias"], targets["binary"])

    def test_unnamed_nodes_take_first_variable_name(self):
        targets = load_build_file(self._write(BUILD_FILE))

        self.assertEqual(targets["source"].name, "source")
        self.assertEqual(targets["alias"].name, "binary")

    def test_explicit_names_are_kept(self):
        targets = load_build_file(self._write(BUILD_FILE))
        self.assertEqual(targets["test"].name, "run-tests")

    def test_can_import_neighbouring_modules(self):
        self._write("from buildtree import Action\n\ndef make():\n    return Action()\n", "rules.py")
        targets = load_build_file(self._write("import rules\n\nthing = rules.make()\n"))
        self.assertIn("thing", targets)

    def test_missing_file(self):
        with self.assertRaises(BuildFileError):
            load_build_file(self.root / "nope.py")

    def test_error_while_loading(self):
        path = self._write("raise RuntimeError('broken build file')\n")
        with self.assertRaises(BuildFileError) as context:
            load_build_file(path)
        self.assertIn("broken build file", str(context.exception))


class TestSelectTargets(unittest.TestCase):
    def setUp(self):
        self.a = Action(name="a")
        self.b = Action(name="b")

    def test_selects_in_given_order(self):
        targets = {"a": self.a, "b": self.b}
        self.assertEqual(select_targets(targets, ["b", "a"]), [self.b, self.a])

    def test_default_target(self):
        targets = {"a": self.a, "default": self.b}
        self.assertEqual(select_targets(targets, []), [self.b])

    def test_no_default_target(self):
        with self.assertRaises(BuildFileError) as context:
            select_targets({"a": self.a}, [])
        self.assertIn("default", str(context.exception))

    def test_unknown_target(self):
        with self.assertRaises(BuildFileError) as context:
            select_targets({"a": self.a}, ["a", "zzz"])
        self.assertIn("zzz", str(context.exception))


if __name__ == "__main__":
    unittest.main()
