from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import HostOutcome, ScanReport


class ReportStore:
    """SQLite persistence for finished scan reports."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        if str(db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._create_tables()

    def _create_tables(self) -> None:
        self.conn.execute("PRAGMA foreign_keys=ON")
        with self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS scans (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    generated TEXT NOT NULL,
                    target TEXT NOT NULL,
                    ports_scanned TEXT NOT NULL,
                    notes TEXT
                )
                """
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS hosts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    scan_id INTEGER NOT NULL REFERENCES scans(id) ON DELETE CASCADE,
                    address TEXT NOT NULL,
                    alive INTEGER NOT NULL
                )
                """
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ports (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    host_id INTEGER NOT NULL REFERENCES hosts(id) ON DELETE CASCADE,
                    port INTEGER NOT NULL,
                    service TEXT,
                    banner TEXT
                )
                """
            )
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_hosts_scan ON hosts(scan_id, address)")
            self.conn.execute("CREATE INDEX IF NOT EXISTS idx_ports_host ON ports(host_id, port)")

    def _insert_host(self, scan_id: int, host: HostOutcome) -> None:
        cur = self.conn.execute(
            "INSERT INTO hosts (scan_id, address, alive) VALUES (?, ?, ?)",
            (scan_id, host.address, int(host.alive)),
        )
        host_id = cur.lastrowid
        self.conn.executemany(
            "INSERT INTO ports (host_id, port, service, banner) VALUES (?, ?, ?, ?)",
            [(host_id, p.port, p.service, p.banner) for p in host.open_ports],
        )

    def save(self, report: ScanReport) -> int:
        with self._lock, self.conn:
            cur = self.conn.execute(
                "INSERT INTO scans (generated, target, ports_scanned, notes) VALUES (?, ?, ?, ?)",
                (report.generated_at.isoformat(), report.target, report.ports_spec, report.notes),
            )
            scan_id = cur.lastrowid
            for host in report.alive_hosts + report.dead_hosts:
                self._insert_host(scan_id, host)
        return scan_id

    def _load_hosts(self, scan_id: int) -> Dict[str, List[Dict[str, Any]]]:
        hosts = self.conn.execute(
            "SELECT id, address, alive FROM hosts WHERE scan_id = ? ORDER BY address",
            (scan_id,),
        ).fetchall()
        out: Dict[str, List[Dict[str, Any]]] = {"alive_hosts": [], "dead_hosts": []}
        for h in hosts:
            ports = self.conn.execute(
                "SELECT port, service, banner FROM ports WHERE host_id = ? ORDER BY port",
                (h["id"],),
            ).fetchall()
            entry = {
                "address": h["address"],
                "alive": bool(h["alive"]),
                "open_ports": [
                    {"port": p["port"], "open": True, "service": p["service"], "banner": p["banner"]}
                    for p in ports
                ],
            }
            out["alive_hosts" if entry["alive"] else "dead_hosts"].append(entry)
        return out

    def _row_to_dict(self, row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "generated": row["generated"],
            "target": row["target"],
            "ports_scanned": row["ports_scanned"],
            "notes": row["notes"],
            **self._load_hosts(row["id"]),
        }

    def list_reports(self) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self.conn.execute("SELECT * FROM scans ORDER BY id").fetchall()
            return [self._row_to_dict(r) for r in rows]

    def get(self, scan_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self.conn.execute("SELECT * FROM scans WHERE id = ?", (scan_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_dict(row)

    def close(self) -> None:
        self.conn.close()
