import pytest

import tonvanity.cli as cli
from tonvanity.errors import SearchAborted
from tonvanity.search import SearchOutcome, SearchStats


@pytest.fixture
def outcome():
    return SearchOutcome(
        public_key="ab" * 32,
        private_key="cd" * 64,
        mnemonic=("apple", "banana"),
        address="EQxyzABC",
        total_checked=10,
        elapsed=2.0,
    )


@pytest.fixture
def fake_search(monkeypatch, outcome):
    calls = []

    def fake_find_wallet(config, token, coordinator=None):
        calls.append((config, token))
        return outcome

    monkeypatch.setattr(cli, "find_wallet", fake_find_wallet)
    monkeypatch.setattr(
        cli,
        "verify_outcome",
        lambda o: {"public_key_match": True, "mnemonic_match": True,
                   "address_match": True, "error": None},
    )
    return calls


def test_parser_defaults():
    args = cli.create_parser().parse_args(["ton"])
    assert args.suffix == "ton"
    assert args.workers == 1
    assert args.contract == "v4r2"


def test_parser_workers():
    parser = cli.create_parser()
    assert parser.parse_args(["ton", "-w", "auto"]).workers == "auto"
    assert parser.parse_args(["ton", "-w", "8"]).workers == 8
    with pytest.raises(SystemExit):
        parser.parse_args(["ton", "-w", "many"])


def test_parser_rejects_unknown_contract():
    with pytest.raises(SystemExit):
        cli.create_parser().parse_args(["ton", "--contract", "v5r2"])


def test_invalid_ending(capsys):
    assert cli.main(["a b"]) == 1
    assert "Invalid target ending" in capsys.readouterr().err


def test_invalid_workers(capsys):
    assert cli.main(["ton", "-w", "0"]) == 1
    assert "Invalid workers" in capsys.readouterr().err


def test_dry_run(capsys):
    assert cli.main(["ab", "--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "Expected:   ~4,096 attempts" in out


def test_quiet_prints_address(fake_search, capsys):
    assert cli.main(["ABC", "--quiet"]) == 0
    assert capsys.readouterr().out.strip() == "EQxyzABC"
    config, token = fake_search[0]
    assert config.target_pattern == "ABC"
    assert not token.is_cancelled


def test_full_run(fake_search, capsys):
    assert cli.main(["ABC", "-w", "2", "-c", "v3r2", "--no-show"]) == 0
    out = capsys.readouterr().out
    assert "MATCH FOUND" in out
    assert "EQxyzABC" in out
    assert "Address:  PASS" in out
    config, _ = fake_search[0]
    assert config.workers == 2
    assert config.contract_version.value == "v3r2"


def test_save_with_output(fake_search, tmp_path):
    target = tmp_path / "out.txt"
    assert cli.main(["ABC", "-q", "--no-verify", "-o", str(target)]) == 0
    assert "Wallet: EQxyzABC" in target.read_text()


def test_aborted_search(monkeypatch, capsys):
    def aborted(config, token, coordinator=None):
        raise SearchAborted("Timed out after 1.0s")

    monkeypatch.setattr(cli, "find_wallet", aborted)
    assert cli.main(["ABC", "--timeout", "1"]) == 1
    assert "Timed out after 1.0s" in capsys.readouterr().err


def test_format_helpers():
    assert cli.format_time(0.5) == "500ms"
    assert cli.format_time(90) == "1.5m"
    assert cli.format_rate(12.34) == "12.3"
    assert cli.format_rate(2500) == "2.5K"
    assert cli.format_time(7200) == "2.0h"
    assert cli.format_time(172800) == "2.0d"
    assert cli.format_rate(3_400_000) == "3.40M"


def test_progress_line(capsys):
    stats = SearchStats(total_checked=12345, elapsed=3.0, rate=4115.0, workers=4)

    cli.progress_callback(stats)
    err = capsys.readouterr().err
    assert err.startswith("\r")
    assert "12,345 addresses" in err
    assert "4.1K/sec on 4 worker(s)" in err
    assert "3.0s elapsed" in err

    cli.progress_callback(stats, quiet=True)
    assert capsys.readouterr().err == ""
