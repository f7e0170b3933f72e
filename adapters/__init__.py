"""
Adapters package for BitReview.

Outbound REST transport and the Bitbucket comment publisher.
"""

from .base import CommentPublisher
from .bitbucket import BitbucketPublisher, BitbucketUrls
from .rest import RestClient, RestResponse, RestTransportError

__all__ = [
    "CommentPublisher",
    "BitbucketPublisher",
    "BitbucketUrls",
    "RestClient",
    "RestResponse",
    "RestTransportError",
]
