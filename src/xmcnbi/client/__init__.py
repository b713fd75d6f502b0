"""HTTP client module for xmcnbi.

Provides :class:`NBIClient`, a blocking client backed by
:class:`httpx.Client` that authenticates with HTTP Basic or OAuth client
credentials, refreshes OAuth tokens on demand, and submits GraphQL queries
to the Northbound Interface.

Example::

    from xmcnbi.client import NBIClient

    with NBIClient(config) as client:
        client.use_basic_auth("admin", "secret")
        body = client.submit_query("query { network { devices { ip } } }")
"""

from xmcnbi.client.sync_client import NBIClient

__all__ = ["NBIClient"]
