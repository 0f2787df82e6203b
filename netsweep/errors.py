class NetsweepError(Exception):
    """Base class for every error raised by netsweep."""


class ParseError(NetsweepError, ValueError):
    """Malformed port spec, address block, or probe input."""


class RequestError(NetsweepError, ValueError):
    """A scan request is missing a field or carries an invalid value."""


class ScanCancelled(NetsweepError):
    pass


class PortSpecError(ParseError):
    pass


class TargetError(ParseError):
    pass
