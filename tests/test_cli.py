from netsweep.cli import main
from netsweep.store import ReportStore


def test_scan_command(listener, tmp_path, capsys):
    port = listener()
    db = str(tmp_path / "cli.db")
    code = main([
        "scan", "--target", "127.0.0.1", "--ports", str(port),
        "--timeout-ms", "500", "--format", "json", "--out-dir", str(tmp_path), "--db", db,
    ])
    assert code == 0
    out = capsys.readouterr().out
    assert "Alive hosts: 1 | Dead hosts: 0" in out
    assert f"Port {port}: open" in out
    assert list(tmp_path.glob("*_netsweep.json"))

    store = ReportStore(db)
    try:
        assert store.list_reports()[0]["notes"] == "Scan initiated via CLI"
    finally:
        store.close()


def test_scan_command_bad_ports(capsys):
    assert main(["scan", "--target", "127.0.0.1", "--ports", "1-2-3"]) == 2
    assert "bad range" in capsys.readouterr().err


def test_scan_command_bad_concurrency(capsys):
    assert main(["scan", "--target", "127.0.0.1", "--ports", "80", "--concurrency", "0"]) == 2
