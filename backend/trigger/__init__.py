"""
PrismWatch Trigger Package.

Remote import invocation against the PhotoPrism API.
Requires Python 3.11+.
"""

from trigger.client import ImportTrigger, build_import_url, create_http_client
from trigger.models import ImportResult, TriggerRequest, TriggerResponse

__all__ = [
    "ImportTrigger",
    "build_import_url",
    "create_http_client",
    "ImportResult",
    "TriggerRequest",
    "TriggerResponse",
]
