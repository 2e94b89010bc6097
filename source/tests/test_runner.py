# ABOUTME: Tests for the subprocess command runner
# ABOUTME: Runs the current interpreter to check output capture, environment and failures

"""Tests for the command runner."""

import subprocess
import sys

from cloudformation_deploy.runner import SubprocessCommandRunner


def python(code):
    return [sys.executable, "-c", code]


class TestSubprocessCommandRunner:
    def test_captures_stdout(self):
        result = SubprocessCommandRunner().run(python("print('{\"a\": 1}')"), {})
        assert result.stdout.strip() == '{"a": 1}'
        assert result.stderr == ""
        assert result.errors == []

    def test_passes_environment(self):
        code = "import os; print(os.environ['AWS_DEFAULT_REGION'])"
        result = SubprocessCommandRunner().run(python(code), {"AWS_DEFAULT_REGION": "eu-west-1"})
        assert result.stdout.strip() == "eu-west-1"

    def test_captures_stderr(self):
        result = SubprocessCommandRunner().run(python("import sys; sys.stderr.write('denied')"), {})
        assert result.stderr == "denied"

    def test_large_output_on_both_streams(self):
        """Both pipes are drained so a chatty child cannot block."""
        code = "import sys; sys.stdout.write('o' * 200000); sys.stderr.write('e' * 200000)"
        result = SubprocessCommandRunner().run(python(code), {})
        assert len(result.stdout) == 200000
        assert len(result.stderr) == 200000

    def test_missing_executable(self):
        result = SubprocessCommandRunner().run(["definitely-not-a-real-command-xyz"], {})
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], OSError)

    def test_empty_argv(self):
        result = SubprocessCommandRunner().run([], {})
        assert len(result.errors) == 1
        assert "Empty command" in str(result.errors[0])

    def test_silent_non_zero_exit(self):
        result = SubprocessCommandRunner().run(python("import sys; sys.exit(3)"), {})
        assert isinstance(result.errors[0], subprocess.CalledProcessError)
        assert result.errors[0].returncode == 3
