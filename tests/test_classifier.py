"""Unit tests for classifier.py - shortcut, direct and model-bound input."""

import pytest

from nlask.classifier import (
    DENIED_TOKENS,
    Classification,
    InputKind,
    Shortcut,
    classify,
    has_redirection,
    is_denied,
    is_script_execution,
    tokenize,
)


class TestShortcuts:
    """Tests for control tokens."""

    @pytest.mark.parametrize("line", ["q", "exit", "quit", "  QUIT  "])
    def test_quit_tokens(self, line):
        """Test every quit spelling is recognised."""
        result = classify(line)
        assert result.kind == InputKind.SHORTCUT
        assert result.shortcut == Shortcut.QUIT

    def test_dot_aliases(self):
        """Test . and .. map to pwd and parent directory."""
        assert classify(".").shortcut == Shortcut.PWD
        assert classify("..").shortcut == Shortcut.PARENT_DIR

    def test_finder_and_clear(self):
        assert classify("finder").shortcut == Shortcut.FINDER
        assert classify("clear").shortcut == Shortcut.CLEAR

    @pytest.mark.parametrize("line", ["", "   ", "\t\n"])
    def test_blank(self, line):
        assert classify(line) == Classification(InputKind.BLANK)


class TestDirectCommands:
    """Tests for allow-listed input that runs without confirmation."""

    def test_pipeline_of_safe_verbs(self):
        """Test a read-only pipeline stays direct and untouched."""
        result = classify('ls -la | grep "^d"')
        assert result.kind == InputKind.DIRECT
        assert result.text == 'ls -la | grep "^d"'

    def test_plain_ls_gets_long_listing(self):
        assert classify("ls").text == "ls -l"

    def test_ls_with_flags_unchanged(self):
        assert classify("ls -a").text == "ls -a"

    @pytest.mark.parametrize("line", [
        "git status", "git log --oneline", "pip list", "cat README.md",
        "cd /tmp", "cd", "pwd", "find . -name '*.py'", "du -sh .",
    ])
    def test_allowed(self, line):
        assert classify(line).kind == InputKind.DIRECT

    def test_verbs_match_case_sensitively(self):
        """Test a verb in the wrong case is not run as typed."""
        assert classify("LS").kind == InputKind.GENERATE
        assert classify("Git Status").kind == InputKind.GENERATE
        assert classify("PYTHON3 tool.py").kind == InputKind.GENERATE

    def test_bare_script_runs_through_interpreter(self):
        """Test a bare script file name is rewritten to use its interpreter."""
        assert classify("deploy.py").text == "python3 deploy.py"
        assert classify("build.sh").text == "bash build.sh"

    def test_explicit_interpreter(self):
        result = classify("python3 tool.py --verbose")
        assert result.kind == InputKind.DIRECT
        assert result.text == "python3 tool.py --verbose"

    def test_relative_executable(self):
        assert classify("./run --fast").kind == InputKind.DIRECT


class TestGenerateFallback:
    """Tests for input that goes to the model."""

    def test_natural_language(self):
        result = classify("show me the biggest files here")
        assert result.kind == InputKind.GENERATE
        assert result.text == "show me the biggest files here"

    def test_rm_is_never_direct(self):
        assert classify("rm file.txt").kind == InputKind.GENERATE

    def test_interpreter_flags_are_not_scripts(self):
        """Test inline code such as python3 -c is not treated as a script run."""
        assert classify("python3 -c 'print(1)'").kind == InputKind.GENERATE

    def test_unbalanced_quote_falls_back(self):
        assert classify('cat "unterminated').kind == InputKind.GENERATE

    @pytest.mark.parametrize("line", [
        "ls > out.txt",
        "echo hi >> log",
        "cat a 2>&1",
        "ls &> all.txt",
        "sudo ls",
        "ls && rm -rf build",
        "ls; mkdir x",
        "find . -name '*.tmp' -delete",
        "find . -exec cat {} ;",
        "git commit -m wip",
        "git push origin main",
        "git branch -D old",
        "cat a | tee b",
        "/bin/rm x",
        "cd /tmp && touch x",
    ])
    def test_deny_list_wins(self, line):
        assert classify(line).kind == InputKind.GENERATE

    @pytest.mark.parametrize("token", sorted(DENIED_TOKENS))
    def test_appending_any_denied_token_flips_classification(self, token):
        """Test a safe command becomes model-bound when any denied token is added."""
        assert classify("ls -la").kind == InputKind.DIRECT
        assert classify(f"ls -la {token}").kind == InputKind.GENERATE

    def test_denied_word_as_path_argument(self):
        """Test basename matching only applies to the command word."""
        assert classify("ls ~/bin/install").kind == InputKind.DIRECT


class TestHelpers:
    """Tests for tokenising helpers."""

    def test_tokenize_splits_operators(self):
        assert tokenize("ls -l|wc -l") == ["ls", "-l", "|", "wc", "-l"]

    def test_tokenize_unbalanced_raises(self):
        with pytest.raises(ValueError):
            tokenize("echo 'oops")

    def test_has_redirection(self):
        assert has_redirection(tokenize("ls > x"))
        assert not has_redirection(tokenize("ls | wc"))

    def test_is_denied_sequences(self):
        assert is_denied(["npm", "ci"])
        assert not is_denied(["npm", "ls"])

    def test_is_script_execution(self):
        assert is_script_execution(["bash", "setup.sh"])
        assert not is_script_execution(["bash"])
        assert not is_script_execution([])
