"""
Service identification for log lines.

Every record carries `service@env:instance` so interleaved output from several
workers or replicas can be told apart.
"""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'ticket-reservation')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')
    instance = os.getenv('HOSTNAME') or socket.gethostname() or 'local'
    return f'{service_name}@{deploy_env}:{instance[:12]}:{os.getpid()}'
