import time
from datetime import datetime, timezone

import psutil

MB = 1024 * 1024


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def health_report(environment='development'):
    """Liveness snapshot of the current process.

    Returns ``(payload, status_code)``. Any failure while reading process
    statistics is reported as ``unhealthy`` with a 500.
    """
    try:
        process = psutil.Process()
        uptime = time.time() - process.create_time()
        memory = process.memory_info()
        return {
            'status': 'healthy',
            'timestamp': _timestamp(),
            'uptime': f'{int(uptime)}s',
            'memory': {
                'used': f'{int(memory.rss / MB + 0.5)}MB',
                'total': f'{int(memory.vms / MB + 0.5)}MB',
            },
            'environment': environment,
        }, 200
    except Exception as exc:
        return {
            'status': 'unhealthy',
            'error': str(exc),
            'timestamp': _timestamp(),
        }, 500
