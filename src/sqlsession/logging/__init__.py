"""sqlsession logging — logging port and structlog adapter."""

from sqlsession.logging.structlog_adapter import LoggingPort, StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
