import ipaddress

from scanner_core import DEFAULT_MAX_THREADS, DEFAULT_TIMEOUT, DEFAULT_WORKERS, MAX_PORT


def parse_target(target_raw):
    """
    Accepts a literal IPv4 or IPv6 address only, no hostnames or CIDR.
    IPv6 may be wrapped in brackets: "[::1]".
    """
    target = (target_raw or "").strip()
    if not target:
        raise ValueError("No target specified.")
    if target.startswith("[") and target.endswith("]"):
        target = target[1:-1]
    try:
        return ipaddress.ip_address(target)
    except ValueError as exc:
        raise ValueError(f"Not a valid ipv4 or ipv6 address: {target_raw}") from exc


def parse_worker_count(value, default=DEFAULT_WORKERS):
    if value is None:
        return default
    try:
        workers = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Not a valid number of threads: {value}") from exc
    if workers < 1 or workers > MAX_PORT:
        raise ValueError(f"-j must be between 1 and {MAX_PORT}")
    return workers


def parse_timeout(value, default=DEFAULT_TIMEOUT):
    if value is None:
        return default
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Not a valid timeout: {value}") from exc
    if not timeout > 0:
        raise ValueError("--timeout must be > 0")
    return timeout


def parse_max_threads(value, default=DEFAULT_MAX_THREADS):
    if value is None:
        return default
    try:
        threads = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Not a valid thread ceiling: {value}") from exc
    if threads < 1:
        raise ValueError("--max-threads must be >= 1")
    return threads
