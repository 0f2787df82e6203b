from __future__ import annotations

import enum
import logging
import socket
import threading
from concurrent.futures import FIRST_COMPLETED, Executor, Future, ThreadPoolExecutor, wait
from contextlib import nullcontext
from typing import Any, Callable, Iterable, List, Optional, Set

from .banner import grab_banner as read_banner
from .banner import match_service
from .config import MAX_CONNECT_THREADS, MAX_PORT, MIN_PENDING, PENDING_PER_WORKER
from .errors import ParseError, ScanCancelled
from .logger import create_logger, log_event
from .models import HostOutcome, PortOutcome, ScanReport, ScanRequest
from .ports import parse_ports, validate_ports
from .targets import count_targets, iter_targets

log = logging.getLogger(__name__)


def _connect(address: str, port: int, timeout_s: float) -> Optional[socket.socket]:
    """
    Resolve once and try only the first address, so a closed port is
    reported within one connect timeout.
    """
    try:
        infos = socket.getaddrinfo(address, port, type=socket.SOCK_STREAM)
    except (ValueError, TypeError) as e:
        raise ParseError(f"bad address {address!r}: {e}") from e
    except OSError as e:
        log.debug("%s:%s unresolved (%s)", address, port, e)
        return None

    family, socktype, proto, _, sockaddr = infos[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.settimeout(timeout_s)
        sock.connect(sockaddr)
    except OSError as e:
        sock.close()
        log.debug("%s:%s closed (%s)", address, port, e)
        return None
    return sock


def probe_tcp(
    address: str,
    port: int,
    timeout_s: float,
    grab_banner: bool = False,
    budget: Optional[threading.Semaphore] = None,
) -> PortOutcome:
    """
    Single TCP connect probe.

    A port that cannot be reached (timeout, refused, unreachable, unresolvable)
    is reported as closed. Only input that can never form a valid socket
    address raises ParseError.
    """
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= MAX_PORT:
        raise ParseError(f"bad port: {port!r}")

    with budget if budget is not None else nullcontext():
        sock = _connect(address, port, timeout_s)
        if sock is None:
            return PortOutcome(port=port, is_open=False)

        with sock:
            if not grab_banner:
                return PortOutcome(port=port, is_open=True)
            banner = read_banner(sock)
            return PortOutcome(
                port=port,
                is_open=True,
                service=match_service(banner),
                banner=banner,
            )


def run_bounded(
    submit: Callable[[Any], Future],
    items: Iterable[Any],
    max_pending: int,
    on_result: Callable[[Any], None],
) -> None:
    """
    Bounded-futures loop: never more than `max_pending` futures exist at once,
    so a huge item stream doesn't turn into millions of queued work items.
    """
    jobs = iter(items)
    pending: Set[Future] = set()

    def submit_next() -> bool:
        try:
            item = next(jobs)
        except StopIteration:
            return False
        pending.add(submit(item))
        return True

    # Prime the queue
    while len(pending) < max_pending and submit_next():
        pass

    while pending:
        done, _ = wait(pending, return_when=FIRST_COMPLETED)
        pending.difference_update(done)
        for fut in done:
            on_result(fut.result())

        # Refill queue
        while len(pending) < max_pending and submit_next():
            pass


def scan_host(
    address: str,
    ports: List[int],
    timeout_s: float,
    concurrency: int,
    grab_banner: bool = False,
    cancel_event: Optional[threading.Event] = None,
    budget: Optional[threading.Semaphore] = None,
    executor: Optional[Executor] = None,
) -> HostOutcome:
    """
    Probe every port of one host with at most `concurrency` probes in flight.
    Blocks until all probes finish. Only open ports are kept, sorted by port.

    With `executor` the connection attempts run on that shared pool and
    `concurrency` bounds how many of this host's futures are outstanding;
    otherwise the host gets a pool of its own.
    """
    if not ports:
        return HostOutcome(address=address)

    def task(port: int) -> Optional[PortOutcome]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        try:
            return probe_tcp(address, port, timeout_s, grab_banner, budget)
        except ParseError as e:
            log.warning("skipping %s:%s: %s", address, port, e)
            return None

    open_ports: List[PortOutcome] = []

    def collect(r: Optional[PortOutcome]) -> None:
        if r is not None and r.is_open:
            open_ports.append(r)

    if executor is not None:
        run_bounded(lambda p: executor.submit(task, p), ports, max(1, concurrency), collect)
    else:
        workers = max(1, min(concurrency, len(ports)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            max_pending = max(workers * PENDING_PER_WORKER, MIN_PENDING)
            run_bounded(lambda p: pool.submit(task, p), ports, max_pending, collect)

    open_ports.sort(key=lambda r: r.port)
    return HostOutcome(address=address, open_ports=tuple(open_ports))


class ScanState(enum.Enum):
    RECEIVED = "received"
    EXPANDING = "expanding"
    SCANNING = "scanning"
    AGGREGATING = "aggregating"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class NetworkScanner:
    """
    Runs one scan: expands the request, fans out host scans (each of which
    fans out port probes) and partitions the results into alive/dead hosts.

    Host scans run on one pool of `concurrency` threads. Their connection
    attempts share a second pool, capped at MAX_CONNECT_THREADS (and at
    max_connections when set), with each host keeping at most
    `port_concurrency` of them outstanding.

    Use a fresh instance per scan; `state` tracks the scan's progress and
    `cancel()` may be called from another thread.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.logger = logger or create_logger()
        self.cancel_event = cancel_event or threading.Event()
        self.state = ScanState.RECEIVED
        self._lock = threading.Lock()
        self._alive: List[HostOutcome] = []
        self._dead: List[HostOutcome] = []

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def _fail(self, request: ScanRequest, err: Exception) -> None:
        self.state = ScanState.FAILED
        log_event(self.logger, "scan_failed", {"target": request.target, "error": str(err)})

    def _record(self, outcome: HostOutcome) -> None:
        with self._lock:
            if outcome.alive:
                self._alive.append(outcome)
            else:
                self._dead.append(outcome)

    def run(self, request: ScanRequest, notes: str = "") -> ScanReport:
        self.state = ScanState.RECEIVED
        log_event(self.logger, "scan_started", {
            "target": request.target,
            "ports": request.ports,
            "concurrency": request.concurrency,
            "port_concurrency": request.effective_port_concurrency,
            "timeout_ms": request.timeout_ms,
            "grab_banner": request.grab_banner,
        })

        self.state = ScanState.EXPANDING
        try:
            ports = parse_ports(request.ports)
            validate_ports(ports)
            total = count_targets(request.target)
            targets = iter_targets(request.target)
        except ParseError as e:
            self._fail(request, e)
            raise

        self.state = ScanState.SCANNING
        budget = None
        if request.max_connections:
            budget = threading.BoundedSemaphore(request.max_connections)

        port_concurrency = request.effective_port_concurrency
        host_workers = max(1, min(request.concurrency, total))
        connect_workers = min(host_workers * port_concurrency, MAX_CONNECT_THREADS)
        if request.max_connections:
            connect_workers = min(connect_workers, request.max_connections)
        connect_workers = max(1, connect_workers)

        def scan_one(address: str, connects: Executor) -> None:
            if self.cancelled:
                return
            outcome = scan_host(
                address,
                ports,
                request.timeout_s,
                port_concurrency,
                grab_banner=request.grab_banner,
                cancel_event=self.cancel_event,
                budget=budget,
                executor=connects,
            )
            self._record(outcome)
            log_event(self.logger, "host_scanned", {
                "address": address,
                "alive": outcome.alive,
                "open_ports": [p.port for p in outcome.open_ports],
            })

        try:
            # Host pool shuts down before the connection pool it feeds
            with ThreadPoolExecutor(max_workers=connect_workers) as connects, \
                    ThreadPoolExecutor(max_workers=host_workers) as pool:
                max_pending = max(host_workers * PENDING_PER_WORKER, MIN_PENDING)
                run_bounded(
                    lambda a: pool.submit(scan_one, a, connects),
                    targets,
                    max_pending,
                    lambda _: None,
                )
        except Exception as e:
            self._fail(request, e)
            raise

        if self.cancelled:
            self.state = ScanState.CANCELLED
            with self._lock:
                done = len(self._alive) + len(self._dead)
            log_event(self.logger, "scan_cancelled", {
                "target": request.target,
                "hosts_done": done,
                "hosts_total": total,
            })
            raise ScanCancelled(f"scan of {request.target} cancelled")

        self.state = ScanState.AGGREGATING
        with self._lock:
            alive = sorted(self._alive, key=lambda h: h.address)
            dead = sorted(self._dead, key=lambda h: h.address)

        report = ScanReport(
            target=request.target,
            ports_spec=request.ports,
            alive_hosts=tuple(alive),
            dead_hosts=tuple(dead),
            notes=notes,
        )
        self.state = ScanState.COMPLETE
        log_event(self.logger, "scan_completed", {
            "target": request.target,
            "hosts": total,
            "alive_hosts": report.alive_count,
            "dead_hosts": report.dead_count,
        })
        return report


def scan_network(
    request: ScanRequest,
    logger: Optional[logging.Logger] = None,
    cancel_event: Optional[threading.Event] = None,
    notes: str = "",
) -> ScanReport:
    return NetworkScanner(logger=logger, cancel_event=cancel_event).run(request, notes=notes)
