from urlminifier.dao.base.url_record_base_dao import URLRecordBaseDAO
from urlminifier.dao.base.lookup_cache_base_dao import LookupCacheBaseDAO


__all__ = [
    'URLRecordBaseDAO',
    'LookupCacheBaseDAO',
]
