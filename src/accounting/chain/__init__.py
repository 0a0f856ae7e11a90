"""
Chain - Node interaction layer for the accounting client.

Provides the HTTP API client, the binary action-data serializer,
transaction building/signing, and contract artifact handling for
EOSIO-family nodes.

Uses httpx for the node API and ueosio for transaction packing and signing.
"""
