from .init import get_logger, log_summary, setup_logging
from .issue_log import IssueLogBuffer

__all__ = ["IssueLogBuffer", "get_logger", "log_summary", "setup_logging"]
