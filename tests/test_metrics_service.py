import threading
from concurrent.futures import ThreadPoolExecutor

from clinicflow.services.metrics_service import MetricsService


def test_health_report_counts_failures():
    for _ in range(8):
        MetricsService.record_success("report-check")
    for _ in range(2):
        MetricsService.record_error("report-check", "ReadTimeout")
    report = MetricsService.get_health_report()["report-check"]
    assert report == {"status": "UNHEALTHY", "error_rate": "20.0%", "sample_size": 10}


def test_health_report_is_safe_while_workers_record():
    stop = threading.Event()
    errors = []

    def record(worker):
        i = 0
        while not stop.is_set():
            MetricsService.record_success(f"worker-{worker}-{i % 50}")
            i += 1

    def read():
        try:
            for _ in range(200):
                MetricsService.get_health_report()
        except RuntimeError as e:
            errors.append(e)
        finally:
            stop.set()

    with ThreadPoolExecutor(max_workers=5) as pool:
        for worker in range(4):
            pool.submit(record, worker)
        pool.submit(read).result()

    assert errors == []
