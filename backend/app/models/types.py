import enum

from sqlalchemy import Enum as SAEnum


class CaseInsensitiveEnum(SAEnum):
    """Enum column stored by value that tolerates mixed-case input.

    Members and plain strings are both accepted on write ("PENDING",
    " pending ", BookingStatus.PENDING); rows come back as enum members.
    """

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = kwargs.copy()
        kwargs.setdefault("values_callable", lambda members: [m.value for m in members])
        # Statuses grow over time; keep them as plain strings in the DB
        kwargs.setdefault("native_enum", False)
        kwargs.setdefault("validate_strings", True)
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        params = {**self._enum_kwargs, **kw}
        return CaseInsensitiveEnum(self._enum_cls, **params)

    @staticmethod
    def _normalise(value):
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            if value is None:
                return None
            value = self._normalise(value)
            return parent(value) if parent else value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            value = self._normalise(value)
            return parent(value) if parent else value

        return process
