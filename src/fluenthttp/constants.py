"""Constants for the fluent HTTP layer.

Centralizes defaults shared by the pool, the builder and the decoders.
"""

# HTTP methods with shorthand dispatch calls
METHOD_DELETE = "DELETE"
METHOD_GET = "GET"
METHOD_HEAD = "HEAD"
METHOD_OPTIONS = "OPTIONS"
METHOD_PATCH = "PATCH"
METHOD_POST = "POST"
METHOD_PUT = "PUT"

# Body encoding
DEFAULT_TEXT_ENCODING = "utf-8"
CONTENT_TYPE_HEADER = "Content-Type"
USER_AGENT_HEADER = "User-Agent"

# Transport defaults
DEFAULT_USER_AGENT = "fluenthttp/1.0"
DEFAULT_TIMEOUT_SECONDS = 100.0
DEFAULT_MAX_CONNECTIONS = 100
DEFAULT_MAX_KEEPALIVE_CONNECTIONS = 20

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192
