from .inventory import (
    Product,
    InboundTransaction,
    OutboundTransaction,
    LEDGER_MODELS,
    CAPACITY_UNITS,
    DEFAULT_CAPACITY_UNIT,
    CONDITION_STATUSES,
    STATUS_IN_STOCK,
    STATUS_OUT_OF_STOCK,
    status_for_quantity,
)

__all__ = [
    'Product', 'InboundTransaction', 'OutboundTransaction', 'LEDGER_MODELS',
    'CAPACITY_UNITS', 'DEFAULT_CAPACITY_UNIT',
    'CONDITION_STATUSES', 'STATUS_IN_STOCK', 'STATUS_OUT_OF_STOCK',
    'status_for_quantity',
]
