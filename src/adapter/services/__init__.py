from .unit_of_work import SqlAlchemyUnitOfWork
from .fne_gateway import HttpxFneGateway

__all__ = [
    "SqlAlchemyUnitOfWork",
    "HttpxFneGateway",
]
