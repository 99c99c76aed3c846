"""Journal web backend: entry store, sessions and the HTTP/RPC bindings."""
