import logging
from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from .. import models

logger = logging.getLogger(__name__)

# Every entity whose ``status`` column drives marketplace behaviour.
TRACKED_MODELS = (
    models.Booking,
    models.Transaction,
    models.Subscription,
)


def _label(value) -> str:
    return getattr(value, "value", value)


def _listener_factory(model_name: str):
    """Return an attribute listener that logs ``status`` transitions."""

    def _status_change(target, value, oldvalue, initiator):  # noqa: ANN001
        # First assignment on a pending object is creation, not a transition
        if oldvalue is NO_VALUE or oldvalue is None or oldvalue == value:
            return value
        logger.info(
            "%s status transition",
            model_name,
            extra={
                "entity": model_name,
                "entity_id": getattr(target, "id", None),
                "from_status": _label(oldvalue),
                "to_status": _label(value),
            },
        )
        return value

    return _status_change


_registered = False


def register_status_listeners() -> None:
    """Attach status listeners once per process."""
    global _registered
    if _registered:
        return
    for model in TRACKED_MODELS:
        event.listen(
            model.status,  # type: ignore[arg-type]
            "set",
            _listener_factory(model.__name__),
            retval=False,
            active_history=True,
            propagate=True,
        )
    _registered = True
