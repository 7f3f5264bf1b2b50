"""Published rent indices (ICL / IPC) used to escalate rents."""
from inmodash.indices.client import IndexValue, RentIndexClient, RentIndexError, get_rent_index_client

__all__ = ["IndexValue", "RentIndexClient", "RentIndexError", "get_rent_index_client"]
