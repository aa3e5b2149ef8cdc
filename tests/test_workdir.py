"""Unit tests for workdir.py - the simulated working directory."""

import os
from pathlib import Path

import pytest

from nlask.exceptions import DirectoryNavigationError
from nlask.workdir import WorkingDirectory


@pytest.fixture
def tree(tmp_path):
    """A small directory tree with a home directory inside it."""
    home = tmp_path / "home"
    (home / "projects" / "app").mkdir(parents=True)
    (tmp_path / "file.txt").write_text("not a directory")
    return tmp_path.resolve()


class TestWorkingDirectory:
    """Tests for resolving and changing directories."""

    def test_defaults_to_process_cwd(self):
        assert WorkingDirectory().path == str(Path.cwd())

    def test_change_to_relative(self, tree):
        wd = WorkingDirectory(tree)
        assert wd.change_to("home/projects") == str(tree / "home" / "projects")
        assert wd.path == str(tree / "home" / "projects")

    def test_change_to_absolute(self, tree):
        wd = WorkingDirectory(tree / "home")
        wd.change_to(str(tree))
        assert wd.path == str(tree)

    def test_parent(self, tree):
        wd = WorkingDirectory(tree / "home" / "projects")
        wd.change_to("..")
        assert wd.path == str(tree / "home")

    def test_home_shortcuts(self, tree):
        wd = WorkingDirectory(tree, home=tree / "home")
        wd.change_to(None)
        assert wd.path == str(tree / "home")
        wd.change_to("/")
        wd.change_to("~")
        assert wd.path == str(tree / "home")
        wd.change_to("~/projects/app")
        assert wd.path == str(tree / "home" / "projects" / "app")

    def test_missing_directory_leaves_value_unchanged(self, tree):
        wd = WorkingDirectory(tree)
        with pytest.raises(DirectoryNavigationError) as exc_info:
            wd.change_to("nope")
        assert "Directory not found" in str(exc_info.value)
        assert exc_info.value.path == str(tree / "nope")
        assert wd.path == str(tree)

    def test_file_is_not_a_directory(self, tree):
        wd = WorkingDirectory(tree)
        with pytest.raises(DirectoryNavigationError, match="Not a directory"):
            wd.change_to("file.txt")
        assert wd.path == str(tree)

    def test_process_cwd_untouched(self, tree):
        before = os.getcwd()
        WorkingDirectory(tree).change_to("home")
        assert os.getcwd() == before


class TestDisplayName:
    """Tests for the short prompt form."""

    def test_home(self, tree):
        assert WorkingDirectory(tree / "home", home=tree / "home").display_name() == "~"

    def test_under_home(self, tree):
        wd = WorkingDirectory(tree / "home" / "projects" / "app", home=tree / "home")
        assert wd.display_name() == "~/app"

    def test_outside_home(self, tree):
        assert WorkingDirectory(tree, home=tree / "home").display_name() == tree.name

    def test_root(self, tree):
        assert WorkingDirectory("/", home=tree / "home").display_name() == "/"
