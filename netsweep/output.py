from __future__ import annotations

import csv
import html
import json
import os
from datetime import datetime
from typing import List

from .models import HostOutcome, ScanReport


def format_host(h: HostOutcome) -> List[str]:
    status = "alive" if h.alive else "no open ports"
    lines = [f"Host: {h.address} | {status}"]
    for p in h.open_ports:
        svc = p.service or "null"
        banner = p.banner or "null"
        lines.append(f"  Port {p.port}: open | Service: {svc} | Banner: {banner}")
    return lines


def print_report(report: ScanReport, alive_only: bool = False) -> None:
    print(f"Scan of {report.target} (ports {report.ports_spec}) at {report.generated_at.isoformat()}")
    print(f"Alive hosts: {report.alive_count} | Dead hosts: {report.dead_count}")

    hosts = report.alive_hosts if alive_only else report.alive_hosts + report.dead_hosts
    for h in hosts:
        for line in format_host(h):
            print(line)


def save_report(
    report: ScanReport,
    fmt: str,
    out_dir: str = "SCANS",
    alive_only: bool = False,
) -> str:
    os.makedirs(out_dir, exist_ok=True)
    ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    path = os.path.join(out_dir, f"{ts}_netsweep.{fmt}")

    hosts = report.alive_hosts if alive_only else report.alive_hosts + report.dead_hosts

    if fmt == "txt":
        with open(path, "w", encoding="utf-8") as f:
            f.write(f"Alive hosts: {report.alive_count} | Dead hosts: {report.dead_count}\n")
            for h in hosts:
                for line in format_host(h):
                    f.write(line + "\n")

    elif fmt == "csv":
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["address", "alive", "port", "service", "banner"])
            for h in hosts:
                if not h.open_ports:
                    w.writerow([h.address, h.alive, "", "", ""])
                for p in h.open_ports:
                    w.writerow([h.address, h.alive, p.port, p.service or "", p.banner or ""])

    elif fmt == "json":
        payload = report.to_dict()
        if alive_only:
            payload["dead_hosts"] = []
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    elif fmt == "html":
        with open(path, "w", encoding="utf-8") as f:
            f.write("<html><body>\n")
            f.write(f"<h1>Scan of {html.escape(report.target)}</h1>\n")
            f.write(f"<p>Alive hosts: {report.alive_count} | Dead hosts: {report.dead_count}</p>\n")
            f.write("<ul>\n")
            for h in hosts:
                f.write(f"<li>{'<br>'.join(html.escape(line) for line in format_host(h))}</li>\n")
            f.write("</ul>\n</body></html>\n")

    else:
        raise ValueError(f"Unsupported format: {fmt}")

    return path
