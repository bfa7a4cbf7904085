"""Item services.

Two small, independent HTTP services sharing the ``Item`` shape:
 - front door: create/read items backed by a managed key-value store
 - discovery proxy: resolve a logical service via a registry and relay item lookups

Each service is built by an app factory that receives its external client,
so nothing here holds process-wide client state.
"""
