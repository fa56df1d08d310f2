"""OAuth 1.0a three-legged client domain.

Public entry points:
- ``OAuth1FlowService``: start-flow and callback operations
- ``SignedRequestBuilder``: signing for calls made with stored access tokens
- ``sign`` / ``build_signature_base_string``: the HMAC-SHA1 signature engine
"""

from postloom.domains.oauth1.flow_service import OAuth1FlowService
from postloom.domains.oauth1.oauth1_service import OAuth1Service
from postloom.domains.oauth1.signature import build_signature_base_string, sign
from postloom.domains.oauth1.signed_request import SignedRequestBuilder

__all__ = [
    "OAuth1FlowService",
    "OAuth1Service",
    "SignedRequestBuilder",
    "build_signature_base_string",
    "sign",
]
