"""
ASGI config for the BuildIQ project.

Serves traditional ASGI servers (uvicorn, daphne) and AWS Lambda through
Mangum.
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

from django.core.asgi import get_asgi_application

application = get_asgi_application()

_lambda_handler = None


def get_lambda_handler():
    """Wrap the ASGI application for API Gateway events."""
    from mangum import Mangum
    return Mangum(application, lifespan="off")


def lambda_handler(event, context):
    """AWS Lambda entry point for HTTP requests."""
    global _lambda_handler
    if _lambda_handler is None:
        _lambda_handler = get_lambda_handler()
    return _lambda_handler(event, context)
