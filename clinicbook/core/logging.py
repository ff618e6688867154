import logging
from contextvars import ContextVar

from .config import Settings

# Set per request by the request id middleware
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

_factory_installed = False


def setup_logging(settings: Settings):
    global _factory_installed

    if not _factory_installed:
        old_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.request_id = request_id_ctx.get()
            return record

        logging.setLogRecordFactory(record_factory)
        _factory_installed = True

    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
    )
