"""Tests for sweatyboot.prompts."""

from __future__ import annotations

import pytest

from sweatyboot.errors import UserCancelled
from sweatyboot.prompts import (
    ask_existing_path,
    ask_fork_name,
    ask_repo_slug,
    choose_mode,
    yes_no,
)
from sweatyboot.repos import Mode, RepositoryIdentity


class TestYesNo:
    @pytest.mark.parametrize("answer,expected", [
        ("y", True), ("YES", True), ("n", False), ("No", False),
    ])
    def test_explicit(self, answers, answer, expected):
        answers(answer)
        assert yes_no("Continue?") is expected

    def test_empty_takes_default(self, answers):
        answers("", "")
        assert yes_no("Continue?", default=True) is True
        assert yes_no("Continue?", default=False) is False

    def test_reprompts_on_garbage(self, answers, capsys):
        answers("maybe", "y")
        assert yes_no("Continue?")
        assert "Please enter y or n." in capsys.readouterr().err

    def test_suffix_shows_default(self, answers, capsys):
        answers("")
        yes_no("Continue?", default=False)
        assert "Continue? [y/n] (default: n)" in capsys.readouterr().out

    def test_eof_cancels(self, answers):
        with pytest.raises(UserCancelled):
            yes_no("Continue?")


class TestChooseMode:
    @pytest.mark.parametrize("answer,expected", [
        ("", Mode.local), ("1", Mode.local), ("local", Mode.local),
        ("2", Mode.online), ("Online", Mode.online),
    ])
    def test_choices(self, answers, answer, expected):
        answers(answer)
        assert choose_mode() is expected

    def test_reprompts(self, answers, capsys):
        answers("3", "2")
        assert choose_mode() is Mode.online
        assert "Please enter 1 or 2." in capsys.readouterr().err


class TestAskExistingPath:
    def test_declined(self, answers, capsys):
        answers("n")
        assert ask_existing_path("/work/git-sweaty") == ""
        assert "Default clone directory is: /work/git-sweaty" in capsys.readouterr().out

    def test_path_given(self, answers):
        answers("y", "  /work/strava  ")
        assert ask_existing_path("/work/git-sweaty") == "/work/strava"

    def test_cancel_with_enter(self, answers):
        answers("y", "")
        assert ask_existing_path("/work/git-sweaty") == ""


class TestAskForkName:
    def test_keep_default(self, answers):
        answers("")
        assert ask_fork_name("git-sweaty") == "git-sweaty"

    def test_custom(self, answers):
        answers("y", "sweaty-online")
        assert ask_fork_name("git-sweaty") == "sweaty-online"

    def test_rejects_invalid(self, answers, capsys):
        answers("y", "bad name!", "ok-name")
        assert ask_fork_name("git-sweaty") == "ok-name"
        assert "Invalid fork name" in capsys.readouterr().err


class TestAskRepoSlug:
    def test_default_accepted(self, answers):
        default = RepositoryIdentity("tester", "strava")
        answers("")
        assert ask_repo_slug(default, lambda repo: True) == default

    def test_reprompts_until_accessible(self, answers, capsys):
        answers("nope", "tester/missing", "tester/existing-online")
        repo = ask_repo_slug(None, lambda r: r.name != "missing")
        assert repo == RepositoryIdentity("tester", "existing-online")
        err = capsys.readouterr().err
        assert "Invalid format" in err
        assert "not accessible" in err

    def test_requires_answer_without_default(self, answers, capsys):
        answers("", "tester/strava")
        assert ask_repo_slug(None, lambda r: True) == RepositoryIdentity("tester", "strava")
        assert "required" in capsys.readouterr().err
