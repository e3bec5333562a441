"""statespine core -- errors, logging, settings, cache and time helpers.

Architecture::

    errors.py      Structured error hierarchy (StateSpineError, ...)
    logging.py     structlog configuration + get_logger
    timestamps.py  UTC / epoch-millisecond helpers (stdlib-only)
    cache.py       Injected TTL response cache
    config/        pydantic-settings StateSpineSettings
"""
