from urlminifier.dao.cache.cache_key_schema import CacheKeySchema
from urlminifier.dao.cache.lookup_cache_redis_dao import LookupCacheRedisDAO

__all__ = [
    'CacheKeySchema',
    'LookupCacheRedisDAO',
]
