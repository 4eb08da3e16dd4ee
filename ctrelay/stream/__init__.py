"""Server-sent event ingestion: line framing, connection handling, and dispatch."""
