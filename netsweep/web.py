from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Optional

from flask import Flask, jsonify, render_template_string, request

from .config import load_settings
from .errors import PortSpecError, RequestError, TargetError
from .logger import create_logger
from .models import ScanRequest
from .scanner import NetworkScanner
from .store import ReportStore

INDEX_HTML = """<!doctype html>
<html>
<head><title>{{ title }}</title></head>
<body>
  <h1>{{ title }}</h1>
  <form id="scan">
    <input name="target" placeholder="192.168.1.0/24" required>
    <input name="ports" placeholder="22,80,443,8000-8100" required>
    <input name="concurrency" type="number" min="1" placeholder="200">
    <input name="timeout_ms" type="number" min="1" placeholder="1000">
    <label><input name="grab_banner" type="checkbox"> grab banners</label>
    <button type="submit">Scan</button>
  </form>
  <pre id="result"></pre>
  <script>
  document.getElementById("scan").addEventListener("submit", async (ev) => {
    ev.preventDefault();
    const f = ev.target;
    const body = {target: f.target.value, ports: f.ports.value, grab_banner: f.grab_banner.checked};
    if (f.concurrency.value) body.concurrency = parseInt(f.concurrency.value, 10);
    if (f.timeout_ms.value) body.timeout_ms = parseInt(f.timeout_ms.value, 10);
    const res = await fetch("/api/scan", {method: "POST", headers: {"Content-Type": "application/json"}, body: JSON.stringify(body)});
    document.getElementById("result").textContent = JSON.stringify(await res.json(), null, 2);
  });
  </script>
</body>
</html>
"""


def create_app(
    store: Optional[ReportStore] = None,
    scanner_factory: Optional[Callable[[], NetworkScanner]] = None,
    logger: Optional[logging.Logger] = None,
) -> Flask:
    app = Flask(__name__)
    logger = logger or create_logger(load_settings().log_path)
    store = store or ReportStore(load_settings().db_path)
    if scanner_factory is None:
        def scanner_factory() -> NetworkScanner:
            return NetworkScanner(logger=logger)

    app.config["REPORT_STORE"] = store

    @app.route("/")
    def index():
        return render_template_string(INDEX_HTML, title="Network Scanner")

    @app.route("/api/scan", methods=["POST"])
    def scan():
        data = request.get_json(silent=True)
        if data is None:
            return jsonify({"error": "invalid_json"}), 400
        try:
            scan_request = ScanRequest.from_dict(data)
        except RequestError as e:
            return jsonify({"error": str(e)}), 400

        try:
            report = scanner_factory().run(scan_request, notes="Scan initiated via web interface")
        except PortSpecError as e:
            return jsonify({"error": f"Invalid ports: {e}"}), 400
        except TargetError as e:
            return jsonify({"error": f"Invalid CIDR: {e}"}), 400

        try:
            scan_id = store.save(report)
        except sqlite3.Error as e:
            logger.error("failed to save scan of %s: %s", report.target, e)
            return jsonify({"error": f"Failed to save scan results: {e}"}), 500

        return jsonify({
            "message": "Scan completed successfully",
            "scan_id": scan_id,
            "alive_hosts": report.alive_count,
            "dead_hosts": report.dead_count,
            "generated": report.generated_at.isoformat(),
        }), 200

    @app.route("/api/scans", methods=["GET"])
    def list_scans():
        return jsonify(store.list_reports())

    @app.route("/api/scans/<int:scan_id>", methods=["GET"])
    def get_scan(scan_id: int):
        report = store.get(scan_id)
        if report is None:
            return jsonify({"error": "Scan not found"}), 404
        return jsonify(report)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    return app
