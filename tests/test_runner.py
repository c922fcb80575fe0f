"""
Tests for the trigger glue and the console front end.

Covers:
    - parse_arguments()   — key=value words, malformed words
    - run_task()          — fresh compile per trigger, settings threaded
    - cli.main()          — run / tasks commands, error exit status
"""

import textwrap

import pytest

from cardflow import cli
from cardflow.config import Settings
from cardflow.errors import ArgumentError, CycleError
from cardflow.runner import build_executor, load_context, parse_arguments, run_task
from cardflow.schema import StateKind
from cardflow.trello import TrelloClient

TASKS = """
board: ENG
take_column:
  type: take
  params:
    from: {type: column, source: ~~column~~}
pick:
  type: filter
  params: {rhs: ~~word~~}
find:
  type: flow
  params: [take_column, pick]
add_word:
  type: action
  params:
    type: add
    card: {name: ~~word~~}
    to: {column: Repeating}
deep:
  type: flow
  params: [deeper]
deeper:
  type: flow
  params: []
"""


@pytest.fixture
def settings(tmp_path):
    (tmp_path / "tasks.yaml").write_text(TASKS)
    return Settings(base_dir=tmp_path)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Arguments
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestParseArguments:

    def test_pairs(self):
        assert parse_arguments(["word=apple", "column=Idioms"]) == {
            "word": "apple", "column": "Idioms",
        }

    def test_value_may_contain_equals(self):
        assert parse_arguments(["q=a=b"]) == {"q": "a=b"}

    def test_empty_value(self):
        assert parse_arguments(["word="]) == {"word": ""}

    def test_whitespace_stripped(self):
        assert parse_arguments([" word = apple "]) == {"word": "apple"}

    def test_last_wins(self):
        assert parse_arguments(["a=1", "a=2"]) == {"a": "2"}

    def test_no_words(self):
        assert parse_arguments([]) == {}

    def test_bare_word(self):
        with pytest.raises(ArgumentError, match="key=value"):
            parse_arguments(["apple"])

    def test_empty_key(self):
        with pytest.raises(ArgumentError, match="empty name"):
            parse_arguments(["=apple"])


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Runner
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestRunTask:

    def test_arguments_substituted(self, settings, board):
        state = run_task(settings, "find", {"column": "Idioms", "word": "BREAK A LEG"}, board)
        assert [c.name for c in state.cards()] == ["break a leg"]

    def test_each_trigger_compiles_afresh(self, settings, board):
        run_task(settings, "add_word", {"word": "first"}, board)
        run_task(settings, "add_word", {"word": "second"}, board)
        assert board.names_in("Repeating") == ["second", "first"]

    def test_case_setting_applied(self, settings, board):
        settings.tasks.filter_case_sensitive = True
        state = run_task(settings, "find", {"column": "Idioms", "word": "BREAK A LEG"}, board)
        assert state.cards() == ()

    def test_max_depth_setting_applied(self, settings, board):
        settings.tasks.max_depth = 1
        with pytest.raises(CycleError):
            run_task(settings, "deep", {}, board)

    def test_load_context_without_arguments(self, settings):
        ctx = load_context(settings)
        assert ctx.board == "ENG"
        assert "add_word" in ctx

    def test_default_board_is_trello(self, settings, board, monkeypatch):
        monkeypatch.setattr(TrelloClient, "from_settings", lambda s: board)
        executor = build_executor(settings)
        assert executor.board is board
        assert executor.max_depth == settings.tasks.max_depth


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Console
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestCli:

    @pytest.fixture
    def config(self, tmp_path, board, monkeypatch):
        (tmp_path / "tasks.yaml").write_text(TASKS)
        cfg = tmp_path / "cardflow.yaml"
        cfg.write_text(textwrap.dedent("""
            tasks:
              path: tasks.yaml
        """))
        monkeypatch.setattr(TrelloClient, "from_settings", lambda s: board)
        # keep log lines out of captured stdout
        monkeypatch.setattr(cli, "setup_logging", lambda level: None)
        return str(cfg)

    def test_run(self, config, board, capsys):
        code = cli.main(["--config", config, "run", "add_word", "word=serendipity"])
        assert code == 0
        out = capsys.readouterr().out
        assert "the task add_word is done." in out
        assert "end" in out
        assert board.names_in("Repeating") == ["serendipity"]

    def test_run_prints_cards(self, config, capsys):
        code = cli.main(["--config", config, "run", "find", "column=Idioms", "word=break a leg"])
        assert code == 0
        assert "break a leg https://trello.test/c/break a leg" in capsys.readouterr().out

    def test_tasks(self, config, capsys):
        assert cli.main(["--config", config, "tasks"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "board: ENG"
        assert out[1:] == ["add_word", "deep", "deeper", "find", "pick", "take_column"]

    def test_unknown_task(self, config, capsys):
        assert cli.main(["--config", config, "run", "nope"]) == 1
        assert "error [not_found]: the task nope does not exist" in capsys.readouterr().err

    def test_bad_argument(self, config, capsys):
        assert cli.main(["--config", config, "run", "add_word", "serendipity"]) == 1
        assert "error [argument]" in capsys.readouterr().err

    def test_missing_config(self, tmp_path, capsys):
        assert cli.main(["--config", str(tmp_path / "absent.yaml"), "tasks"]) == 1
        assert "error [config]" in capsys.readouterr().err

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.main([])

    def test_verbose_flag(self):
        args = cli.build_parser().parse_args(["-v", "run", "t", "a=1"])
        assert args.verbose is True
        assert args.task == "t"
        assert args.arguments == ["a=1"]
