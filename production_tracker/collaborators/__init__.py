from .interfaces import (
    CollaboratorError,
    IAdapter,
    JobArchiver,
    JobSource,
    Notifier,
    OutputStore,
    StockCreator,
)

__all__ = [
    'CollaboratorError',
    'IAdapter',
    'JobArchiver',
    'JobSource',
    'Notifier',
    'OutputStore',
    'StockCreator',
]
