import argparse
import os
import sys

from scanner_core import DEFAULT_MAX_THREADS, DEFAULT_TIMEOUT, DEFAULT_WORKERS, MAX_PORT, format_report, progress_mark, scan
from validators import parse_max_threads, parse_target, parse_timeout, parse_worker_count


class C:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"


STYLE_ENABLED = True
QUIET = False
TOOL_NAME = "portsniffer"


def paint(text, color):
    if not STYLE_ENABLED:
        return text
    return f"{color}{text}{C.RESET}"


def log_line(level, message):
    if QUIET and level == "INFO":
        return
    color = C.GREEN
    if level == "WARN":
        color = C.YELLOW
    elif level == "ERR":
        color = C.RED
    stream = sys.stderr if level == "ERR" else sys.stdout
    print(paint(f"[{level}] {message}", color), file=stream)


def normalize_args(args):
    args.target = parse_target(args.target)
    args.threads = parse_worker_count(args.threads)
    args.timeout = parse_timeout(args.timeout)
    args.max_threads = parse_max_threads(args.max_threads)
    if args.threads > args.max_threads:
        log_line("WARN", f"{args.threads} partitions share {args.max_threads} threads; extra partitions wait their turn.")


def print_scan_report(summary):
    for line in format_report(summary["open_ports"]):
        print(paint(line, C.GREEN + C.BOLD))


def run(args):
    global STYLE_ENABLED, QUIET
    STYLE_ENABLED = (not args.no_color) and ("NO_COLOR" not in os.environ)
    QUIET = args.quiet

    normalize_args(args)

    top = f"1-{MAX_PORT}" if args.full_range else f"1-{MAX_PORT - 1}"
    log_line("INFO", f"Target: {args.target} | Ports: {top}")
    log_line("INFO", f"Workers: {args.threads} | Timeout: {args.timeout}s")

    summary = scan(
        args.target,
        args.threads,
        timeout=args.timeout,
        max_threads=args.max_threads,
        full_range=args.full_range,
        on_open=None if args.quiet else progress_mark,
    )
    if not args.quiet:
        print()
    print_scan_report(summary)

    open_count = len(summary["open_ports"])
    log_line("INFO", f"Scan completed in {summary['elapsed_seconds']:.2f}s | open={open_count}")
    if not open_count:
        log_line("WARN", "No open ports found.")
    return summary


def build_parser():
    p = argparse.ArgumentParser(
        prog=TOOL_NAME,
        description="Concurrent TCP connect scanner: probes every port of one IPv4/IPv6 address.",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=(
            "Partitioning:\n"
            "  Worker i (0-based) probes ports i+1, i+1+N, i+1+2N, ... where N is the -j value.\n"
            f"  Port {MAX_PORT} is skipped unless --full-range is given.\n\n"
            "Examples:\n"
            "  portsniffer 192.168.1.10\n"
            "  portsniffer -j 100 192.168.1.10\n"
            "  portsniffer -j 1000 --timeout 0.3 ::1"
        ),
    )
    p.add_argument("target", help="Target IPv4 or IPv6 address (example: 127.0.0.1, ::1).")
    p.add_argument("-j", "--threads", default=None, help=f"Number of scan partitions/workers. Default: {DEFAULT_WORKERS}.")
    p.add_argument("--timeout", default=None, help=f"Per-connect timeout in seconds. Default: {DEFAULT_TIMEOUT}.")
    p.add_argument("--max-threads", default=None, help=f"Ceiling on OS threads probing at once. Default: {DEFAULT_MAX_THREADS}.")
    p.add_argument("--full-range", action="store_true", help=f"Also probe port {MAX_PORT}.")
    p.add_argument("--quiet", action="store_true", help="Reduce log verbosity (keeps final report output).")
    p.add_argument("--no-color", action="store_true", help="Disable ANSI colors in output.")
    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        run(args)
    except KeyboardInterrupt:
        log_line("WARN", "Interrupted by user.")
        return 130
    except ValueError as exc:
        log_line("ERR", str(exc))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
