"""Utils package initialization."""
from instant_quote.utils.logger import get_logger, LayerLogger, set_trace_id, get_trace_id
from instant_quote.utils.retry import RetryPolicy

__all__ = ["get_logger", "LayerLogger", "set_trace_id", "get_trace_id", "RetryPolicy"]
