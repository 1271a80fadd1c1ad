from checkout_api.shared.logging.audit_logger import AuditLogger
from checkout_api.shared.logging.setup import configure_logging

__all__ = ["AuditLogger", "configure_logging"]
