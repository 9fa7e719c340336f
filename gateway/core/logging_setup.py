import logging
from gateway.core.trace import trace_id_var

LOG_FORMAT = "%(asctime)s [%(levelname)s] [trace_id=%(trace_id)s] %(message)s"


class TraceLogFilter(logging.Filter):
    def filter(self, record):
        record.trace_id = trace_id_var.get() or "-"
        return True


def configure_logging(level: int | str = logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # handler-level so records propagated from module loggers get a trace id too
    for handler in logging.getLogger().handlers:
        handler.addFilter(TraceLogFilter())
