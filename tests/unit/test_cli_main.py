from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from bulkimport.cli.main import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main as cli_main
from bulkimport.errors import StoreError


def _write_csv(temp_workdir: Path, name: str, text: str) -> Path:
    f = temp_workdir / "data" / name
    f.write_text(text, encoding="utf-8")
    return f


def test_cli_success(write_config, temp_workdir: Path, mock_mode, capsys):
    f = _write_csv(temp_workdir, "team.csv", "Email,Name,Role\na@x.com,A,admin\nb@x.com,B,Technician\n")
    code = cli_main(["--kind", "team_member", "--file", str(f)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "SUMMARY kind=team_member total=2 successful=2 failed=0 duplicates=0" in out
    assert "INFO mode=mock" in out
    assert not list((temp_workdir / "logs").glob("errors-*.log"))


def test_cli_duplicates_only_is_success(write_config, temp_workdir: Path, mock_mode, capsys):
    f = _write_csv(temp_workdir, "svc.csv", "Service Name\nTermite\ntermite\n")
    code = cli_main(["--kind", "services", "--file", str(f)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "successful=1 failed=0 duplicates=1" in out


def test_cli_partial_failure_writes_error_log(write_config, temp_workdir: Path, mock_mode, capsys):
    f = _write_csv(temp_workdir, "cust.csv", "Customer Name,Email,Phone\nAnn,ann@x.com,\nBob,,\n")
    code = cli_main(["--kind", "customer", "--file", str(f)])
    out = capsys.readouterr().out
    assert code == EXIT_PARTIAL_FAILURE
    assert "WARN row=3 Bob: At least one of email or phone is required" in out
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert '"file": "cust.csv"' in logs[0].read_text(encoding="utf-8")


def test_cli_missing_config(temp_workdir: Path, mock_mode, capsys):
    f = _write_csv(temp_workdir, "team.csv", "Email,Name\na@x.com,A\n")
    code = cli_main(["--kind", "team_member", "--file", str(f)])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR config: config file not found" in out


def test_cli_custom_config_path(write_config, temp_workdir: Path, mock_mode, capsys):
    other = temp_workdir / "other.yml"
    other.write_text("organization_id: org-2\npace_seconds: 0\n", encoding="utf-8")
    f = _write_csv(temp_workdir, "team.csv", "Email,Name\na@x.com,A\n")
    code = cli_main(["--kind", "team_member", "--file", str(f), "--config", str(other)])
    assert code == EXIT_SUCCESS_ALL
    assert "organization=org-2" in capsys.readouterr().out


def test_cli_missing_file(write_config, temp_workdir: Path, capsys):
    code = cli_main(["--kind", "customer", "--file", "data/nope.csv"])
    assert code == EXIT_FATAL
    assert "ERROR file not found" in capsys.readouterr().out


def test_cli_requires_file_and_kind(write_config, temp_workdir: Path, capsys):
    assert cli_main([]) == EXIT_FATAL
    f = _write_csv(temp_workdir, "x.csv", "a\n1\n")
    assert cli_main(["--file", str(f)]) == EXIT_FATAL
    out = capsys.readouterr().out
    assert "--file is required" in out
    assert "--kind is required" in out


def test_cli_unknown_kind(write_config, temp_workdir: Path, capsys):
    f = _write_csv(temp_workdir, "x.csv", "a\n1\n")
    assert cli_main(["--kind", "vehicles", "--file", str(f)]) == EXIT_FATAL
    assert "unknown import kind" in capsys.readouterr().out


def test_cli_unsupported_file(write_config, temp_workdir: Path, capsys):
    f = temp_workdir / "data" / "x.txt"
    f.write_text("hello", encoding="utf-8")
    assert cli_main(["--kind", "customer", "--file", str(f)]) == EXIT_FATAL
    assert "ERROR read: unsupported file type" in capsys.readouterr().out


def test_cli_inspect_data(write_config, temp_workdir: Path, capsys):
    f = _write_csv(temp_workdir, "mat.csv", "Material Name,Unit\nBait,each\nTrap,each\n")
    code = cli_main(["--file", str(f), "--inspect-data"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "FILE: mat.csv rows=2" in out
    assert "cols=['Material Name', 'Unit']" in out
    assert "Bait" in out


def test_cli_debug_mode(write_config, temp_workdir: Path, mock_mode, capsys):
    f = _write_csv(temp_workdir, "team.csv", "Email,Name\na@x.com,A\n")
    code = cli_main(["--kind", "team_member", "--file", str(f), "--debug"])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG row=2 kind=team_member outcome=successful" in out


def test_cli_db_connection_failure_falls_back_to_mock(write_config, temp_workdir: Path, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    f = _write_csv(temp_workdir, "team.csv", "Email,Name\na@x.com,A\n")
    with patch("bulkimport.cli.main.connect", side_effect=StoreError("could not connect to server")):
        code = cli_main(["--kind", "team_member", "--file", str(f)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "DB connection failed -> fallback to mock mode: could not connect to server" in out


def test_cli_env_file_loaded(write_config, temp_workdir: Path, monkeypatch, capsys):
    # .env (override=True) が既存の値を上書きする
    monkeypatch.setenv("DISABLE_DB_CONNECT", "0")
    (temp_workdir / ".env").write_text("DISABLE_DB_CONNECT=1\n", encoding="utf-8")
    f = _write_csv(temp_workdir, "team.csv", "Email,Name\na@x.com,A\n")
    with patch("bulkimport.cli.main.connect") as connect:
        code = cli_main(["--kind", "team_member", "--file", str(f)])
    assert code == EXIT_SUCCESS_ALL
    connect.assert_not_called()
