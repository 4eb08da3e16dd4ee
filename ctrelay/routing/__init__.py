"""Record routing — fans each stream record out to every active sink.

Sinks are pluggable targets: raw stdout echo, JSONL file append, and
signed HTTP delivery, or any custom sink implementing the BaseSink
protocol.  The RecordDispatcher drives them in registration order.
"""
