from urlminifier.models import URLRecord
from urlminifier.catalog import URLCatalog
from urlminifier.utils.shortener import CodeGenerator


__all__ = [
    'URLRecord',
    'URLCatalog',
    'CodeGenerator',
]
