from .unit_of_work import UnitOfWork
from .fne_gateway import FneGateway, FneResult, FneCertificate

__all__ = [
    "UnitOfWork",
    "FneGateway",
    "FneResult",
    "FneCertificate",
]
