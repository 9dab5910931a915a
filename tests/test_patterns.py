"""Tests for file tree presence checks."""

from repolens.patterns import contains_file_named, contains_path
from repolens.tree import build_tree


class TestContainsPath:
    """Test substring matching over full paths."""

    def test_matches_nested_path(self):
        tree = build_tree([".github/workflows/ci.yml"])
        assert contains_path(tree, [".github/workflows"]) is True

    def test_case_insensitive(self):
        tree = build_tree(["src/__Tests__/app.js"])
        assert contains_path(tree, ["__tests__"]) is True

    def test_matches_folder_names(self):
        tree = build_tree(["cypress/"])
        assert contains_path(tree, ["cypress"]) is True

    def test_no_match(self):
        tree = build_tree(["src/index.ts", "package.json"])
        assert contains_path(tree, ["test", "spec"]) is False

    def test_empty_patterns(self):
        assert contains_path(build_tree(["a.py"]), []) is False

    def test_invalid_tree_is_no_match(self):
        assert contains_path(None, ["test"]) is False
        assert contains_path("src/test.py", ["test"]) is False

    def test_raw_dict_tree(self):
        raw = {"tests": {"type": "folder", "children": {"test_a.py": {"type": "file"}}}}
        assert contains_path(raw, ["tests/test_a"]) is True


class TestContainsFileNamed:
    """Test exact entry name matching at any depth."""

    def test_top_level(self):
        assert contains_file_named(build_tree(["README.md"]), ["README.md"]) is True

    def test_nested(self):
        tree = build_tree(["docs/readme.md"])
        assert contains_file_named(tree, ["README.md"]) is True

    def test_substring_is_not_a_match(self):
        tree = build_tree(["README.md.bak", "my.eslintrc.old"])
        assert contains_file_named(tree, ["README.md", ".eslintrc"]) is False

    def test_path_names_never_match(self):
        tree = build_tree([".github/dependabot.yml"])
        assert contains_file_named(tree, [".github/dependabot.yml"]) is False
        assert contains_file_named(tree, ["dependabot.yml"]) is True
