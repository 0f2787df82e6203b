import pytest

from netsweep.models import HostOutcome, PortOutcome, ScanReport
from netsweep.store import ReportStore


@pytest.fixture
def store(tmp_path):
    s = ReportStore(str(tmp_path / "db" / "scans.db"))
    yield s
    s.close()


def make_report(target="10.0.0.0/30"):
    return ScanReport(
        target=target,
        ports_spec="22,80",
        alive_hosts=(HostOutcome("10.0.0.1", (PortOutcome(22, True, "SSH server", "SSH-2.0-OpenSSH_8.9"),
                                              PortOutcome(80, True))),),
        dead_hosts=(HostOutcome("10.0.0.2"),),
        notes="test",
    )


def test_save_and_get(store):
    report = make_report()
    scan_id = store.save(report)
    stored = store.get(scan_id)

    assert stored["id"] == scan_id
    assert stored["target"] == "10.0.0.0/30"
    assert stored["ports_scanned"] == "22,80"
    assert stored["generated"] == report.generated_at.isoformat()
    assert stored["alive_hosts"] == [h.to_dict() for h in report.alive_hosts]
    assert stored["dead_hosts"] == [h.to_dict() for h in report.dead_hosts]


def test_get_missing(store):
    assert store.get(999) is None


def test_list_reports(store):
    first = store.save(make_report("10.0.0.0/30"))
    second = store.save(make_report("10.0.1.0/30"))
    reports = store.list_reports()
    assert [r["id"] for r in reports] == [first, second]
    assert [r["target"] for r in reports] == ["10.0.0.0/30", "10.0.1.0/30"]


def test_in_memory_store():
    s = ReportStore(":memory:")
    try:
        assert s.get(s.save(make_report()))["notes"] == "test"
    finally:
        s.close()
