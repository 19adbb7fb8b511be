from urlminifier.dao.redis.redis_key_schema import RedisKeySchema
from urlminifier.dao.redis.url_record_redis_dao import URLRecordRedisDAO
from urlminifier.dao.redis.mixins import RedisClientMixin


__all__ = [
    'RedisKeySchema',
    'URLRecordRedisDAO',
    'RedisClientMixin',
]
