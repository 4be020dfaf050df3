"""
Shared logging utilities for the cache backend.
"""
import logging


class _PrefixAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        prefix = self.extra["service_name"]
        context = self.extra.get("context")
        if context:
            prefix = f"{prefix} {context}"
        return f"[{prefix}] {msg}", kwargs


def get_logger(service_name, context=None):
    """
    Get a logger whose messages are prefixed with the service name.

    Args:
        service_name: Name of the service for log prefixing
        context: Optional context for additional log information (e.g. "db.collection")

    Returns:
        logging.LoggerAdapter: Logger instance
    """
    logger = logging.getLogger(f"tagcache.{service_name}")
    return _PrefixAdapter(logger, {"service_name": service_name, "context": context})
