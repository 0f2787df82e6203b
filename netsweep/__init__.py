from .errors import NetsweepError, ParseError, PortSpecError, RequestError, ScanCancelled, TargetError
from .models import HostOutcome, PortOutcome, ScanReport, ScanRequest
from .ports import parse_ports
from .scanner import NetworkScanner, ScanState, probe_tcp, scan_host, scan_network
from .targets import expand_targets

__version__ = "0.1.0"
