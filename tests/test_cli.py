"""Console rendering, the search prompt's input handling and the entry point."""

import pytest

import main
from core.indexing.index_codec import partition_file_name
from core.search.partition_cache import PartitionCache
from core.search.query_engine import QueryEngine, QueryStrategy, SearchOutcome
from core.utilities.config_manager import ConfigManager
from ui.cli.console_utils import format_elapsed_time, format_size
from ui.cli.result_table import format_row, render_outcome
from ui.cli.search_loop import handle_input, search_loop
from ui.cli.status_screen import screen_status
from tests.conftest import make_record


@pytest.fixture
def engine(index_dir):
    return QueryEngine(PartitionCache(index_dir))


class ScriptedSession:
    """Stands in for a PromptSession, replaying canned input."""

    def __init__(self, *inputs):
        self.inputs = list(inputs)

    def prompt(self, message):
        if not self.inputs:
            raise EOFError
        return self.inputs.pop(0)


# ═══════════════════════════════════════════════════════════════
# Rendering
# ═══════════════════════════════════════════════════════════════

class TestRendering:

    def test_row_shows_hash_preview(self):
        row = format_row(make_record(fingerprint="0123456789abcdef"))
        assert "01234567..." in row
        assert "89abcdef" not in row
        assert "SAO PAULO" in row

    def test_row_without_fingerprint(self):
        assert "N/A" in format_row(make_record())

    def test_long_name_shortened(self):
        row = format_row(make_record(name_tom="X" * 60, fingerprint="00"))
        assert "X" * 60 not in row
        assert "..." in row

    def test_empty_outcome(self):
        lines = render_outcome(SearchOutcome("zzz", QueryStrategy.NAME))
        assert lines == ["  No municipalities found for 'zzz' (Name search)."]

    def test_truncated_outcome(self):
        records = [make_record(fingerprint="00")] * 2
        outcome = SearchOutcome("cam", QueryStrategy.NAME, records=records, total_matches=7)
        text = "\n".join(render_outcome(outcome))
        assert "Found 7 municipality(ies)" in text
        assert "... and 5 more not shown." in text

    @pytest.mark.parametrize("seconds, expected", [
        (0.25, "250ms"),
        (2.5, "2.5s"),
        (125, "2m 5s"),
        (7320, "2h 2m"),
    ])
    def test_elapsed_time(self, seconds, expected):
        assert format_elapsed_time(seconds) == expected

    def test_size(self):
        assert format_size(2048) == "2,048 bytes (2.0 KB)"


# ═══════════════════════════════════════════════════════════════
# Search prompt
# ═══════════════════════════════════════════════════════════════

class TestHandleInput:

    @pytest.mark.parametrize("command", ["sair", "EXIT", " exit "])
    def test_exit_commands(self, engine, command):
        assert handle_input(engine, command) is False

    def test_blank_input(self, engine, capsys):
        assert handle_input(engine, "   ") is True
        assert "Please type something" in capsys.readouterr().out

    def test_query(self, engine, capsys):
        assert handle_input(engine, "santos") is True
        out = capsys.readouterr().out
        assert "Found 1 municipality(ies) for 'santos' (Name search)" in out
        assert "SANTOS" in out

    def test_cache_command(self, engine, capsys):
        handle_input(engine, "rj")
        capsys.readouterr()
        handle_input(engine, "cache")
        out = capsys.readouterr().out
        assert "UFs loaded: 1" in out
        assert "RJ: 2 municipalities" in out

    def test_help_command(self, engine, capsys):
        handle_input(engine, "ajuda")
        assert "limited to 20 rows" in capsys.readouterr().out

    def test_search_errors_are_printed(self, engine, capsys):
        (engine.cache.index_dir / partition_file_name("SP")).write_bytes(b"junk")
        handle_input(engine, "sp")
        assert "Error during search" in capsys.readouterr().out


class TestSearchLoop:

    def test_runs_until_exit(self, engine, capsys):
        search_loop(engine, session=ScriptedSession("3550308", "sair", "never reached"))
        out = capsys.readouterr().out
        assert "SAO PAULO" in out
        assert "Goodbye!" in out

    def test_stops_on_eof(self, engine, capsys):
        search_loop(engine, session=ScriptedSession())
        assert "Goodbye!" in capsys.readouterr().out


# ═══════════════════════════════════════════════════════════════
# Status screen and entry point
# ═══════════════════════════════════════════════════════════════

class TestStatus:

    def test_lists_files(self, index_dir, capsys):
        assert screen_status(PartitionCache(index_dir)) == 3
        out = capsys.readouterr().out
        assert "SP:    4 municipalities" in out
        assert "generated 14/11/2023" in out

    def test_out_of_range_timestamp_listed(self, tmp_path, fast_builder, capsys):
        fast_builder.build("SP", [make_record()], tmp_path / partition_file_name("SP"),
                           generated_at=-(2**63))
        assert screen_status(PartitionCache(tmp_path)) == 1
        out = capsys.readouterr().out
        assert "SP:    1 municipalities" in out
        assert "unreadable" not in out

    def test_no_files(self, tmp_path, capsys):
        assert screen_status(PartitionCache(tmp_path)) == 0
        assert "No index files found" in capsys.readouterr().out


class TestMain:

    @pytest.fixture(autouse=True)
    def settings(self, tmp_path):
        self.settings = ConfigManager(tmp_path / "settings" / "config.json")

    def test_single_query(self, index_dir, capsys):
        assert main.main(["--index-dir", str(index_dir), "search", "-q", "MG"], settings=self.settings) == 0
        assert "BELO HORIZONTE" in capsys.readouterr().out

    def test_status(self, index_dir, capsys):
        assert main.main(["--index-dir", str(index_dir), "status"], settings=self.settings) == 0
        out = capsys.readouterr().out
        assert "MG:" in out and "RJ:" in out and "SP:" in out

    def test_build_from_csv(self, tmp_path, capsys):
        csv_path = tmp_path / "municipios.csv"
        csv_path.write_text(
            "TOM;IBGE;NomeTOM;NomeIBGE;UF\n"
            "7107;3550308;SAO PAULO;São Paulo;SP\n"
            "5869;3304557;RIO DE JANEIRO;Rio de Janeiro;RJ\n",
            encoding="utf-8",
        )
        out_dir = tmp_path / "index"
        code = main.main(["--index-dir", str(out_dir), "build", "--csv", str(csv_path),
                          "--iterations", "10", "--workers", "2", "--no-progress"], settings=self.settings)
        assert code == 0
        assert sorted(p.name for p in out_dir.iterdir()) == [
            "municipios_hash_RJ.dat", "municipios_hash_SP.dat",
        ]

    def test_missing_csv(self, tmp_path, capsys):
        code = main.main(["--index-dir", str(tmp_path), "build", "--csv",
                          str(tmp_path / "missing.csv"), "--no-progress"], settings=self.settings)
        assert code == 1
        assert "File not found" in capsys.readouterr().out


class TestConfigCommand:

    @pytest.fixture
    def settings(self, tmp_path):
        return ConfigManager(tmp_path / "config.json")

    def test_shows_current_values(self, settings, capsys):
        assert main.main(["config"], settings=settings) == 0
        out = capsys.readouterr().out
        assert "PBKDF2 iterations: 50,000" in out
        assert "auto (one per CPU)" in out
        assert not settings.config_path.exists()

    def test_changes_persisted(self, settings, tmp_path, capsys):
        code = main.main(["config", "--iterations", "2000", "--workers", "3",
                          "--display-limit", "5", "--fold-accents", "on",
                          "--set-index-dir", str(tmp_path / "idx")], settings=settings)
        assert code == 0
        assert "rebuild the index" in capsys.readouterr().out

        reloaded = ConfigManager(settings.config_path)
        assert reloaded.get_iterations() == 2000
        assert reloaded.get_max_workers() == 3
        assert reloaded.get_display_limit() == 5
        assert reloaded.get_fold_accents() is True
        assert reloaded.get_index_dir() == tmp_path / "idx"

    def test_reset_to_defaults(self, settings, tmp_path):
        settings.set_max_workers(4)
        settings.set_index_dir(tmp_path)
        main.main(["config", "--workers", "0", "--set-index-dir", ""], settings=settings)
        assert settings.get_max_workers() is None
        assert settings.get("index_dir") is None

    def test_invalid_value_rejected(self, settings, capsys):
        assert main.main(["config", "--iterations", "10"], settings=settings) == 1
        assert "at least 1000" in capsys.readouterr().out
        assert settings.get_iterations() == 50_000

    def test_search_uses_saved_display_limit(self, settings, index_dir, capsys):
        main.main(["config", "--display-limit", "1"], settings=settings)
        capsys.readouterr()
        main.main(["--index-dir", str(index_dir), "search", "-q", "sp"], settings=settings)
        assert "... and 3 more not shown." in capsys.readouterr().out
