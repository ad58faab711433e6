import queue
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait


MAX_PORT = 65535
DEFAULT_WORKERS = 4
DEFAULT_TIMEOUT = 1.0
DEFAULT_MAX_THREADS = 512

PRINT_LOCK = threading.Lock()


def probe_port(target, port, timeout=DEFAULT_TIMEOUT):
    try:
        with socket.create_connection((str(target), port), timeout=timeout):
            return True
    except OSError:
        return False


def partition(worker_count):
    if worker_count < 1 or worker_count > MAX_PORT:
        raise ValueError(f"worker count must be between 1 and {MAX_PORT}")
    return [(i + 1, worker_count) for i in range(worker_count)]


def iter_partition_ports(start, stride, full_range=False):
    """
    Yields start, start+stride, ... and stops once the headroom left below
    MAX_PORT is no greater than the stride. With that bound port 65535 is
    never reached; full_range=True relaxes it to "smaller than the stride"
    so the top port is covered as well. The first port is always yielded.
    """
    port = start
    while True:
        yield port
        headroom = MAX_PORT - port
        if headroom < stride or (headroom == stride and not full_range):
            break
        port += stride


def probe_worker(
    target,
    start,
    stride,
    results,
    connect=probe_port,
    timeout=DEFAULT_TIMEOUT,
    full_range=False,
    on_open=None,
    stop=None,
):
    found = 0
    for port in iter_partition_ports(start, stride, full_range=full_range):
        if stop is not None and stop.is_set():
            break
        if not connect(target, port, timeout):
            continue
        results.put(port)
        found += 1
        if on_open is not None:
            on_open(port)
    return found


def dispatch(
    pool,
    target,
    worker_count,
    results,
    connect=probe_port,
    timeout=DEFAULT_TIMEOUT,
    full_range=False,
    on_open=None,
    stop=None,
):
    futures = []
    for start, stride in partition(worker_count):
        futures.append(
            pool.submit(
                probe_worker,
                target,
                start,
                stride,
                results,
                connect,
                timeout,
                full_range,
                on_open,
                stop,
            )
        )
    return futures


def collect(results):
    ports = []
    while True:
        try:
            ports.append(results.get_nowait())
        except queue.Empty:
            return ports


def finalize(ports):
    return sorted(ports)


def format_report(ports):
    return [f"{port} is open" for port in ports]


def progress_mark(port):
    with PRINT_LOCK:
        print(".", end="", flush=True)


def scan(
    target,
    worker_count=DEFAULT_WORKERS,
    connect=probe_port,
    timeout=DEFAULT_TIMEOUT,
    max_threads=DEFAULT_MAX_THREADS,
    full_range=False,
    on_open=None,
    results=None,
):
    """
    Runs a full connect scan of target split across worker_count partitions.

    At most max_threads partitions probe at the same time; the rest wait in
    the pool queue. Results are only collected once every partition has
    finished, and a partition that raised re-raises here.

    On KeyboardInterrupt queued partitions are cancelled and running ones
    stop before their next port, so the interrupt propagates after at most
    one connect timeout.
    """
    if max_threads < 1:
        raise ValueError("max threads must be >= 1")
    threads = min(worker_count, max_threads)
    if results is None:
        results = queue.Queue()
    stop = threading.Event()
    started = time.time()

    with ThreadPoolExecutor(max_workers=threads) as pool:
        futures = dispatch(
            pool,
            target,
            worker_count,
            results,
            connect=connect,
            timeout=timeout,
            full_range=full_range,
            on_open=on_open,
            stop=stop,
        )
        try:
            wait(futures)
        except KeyboardInterrupt:
            stop.set()
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        for future in futures:
            future.result()

    open_ports = finalize(collect(results))
    return {
        "target": str(target),
        "workers": worker_count,
        "threads": threads,
        "timeout": timeout,
        "full_range": full_range,
        "open_ports": open_ports,
        "elapsed_seconds": round(time.time() - started, 3),
    }
