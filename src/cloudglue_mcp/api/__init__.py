"""
Cloudglue REST API client.
"""

from cloudglue_mcp.api.client import ARTIFACTS, JOB_ENDPOINTS, CloudglueClient

__all__ = [
    "ARTIFACTS",
    "JOB_ENDPOINTS",
    "CloudglueClient",
]
