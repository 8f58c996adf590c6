from datetime import datetime
import json

from peewee import PeeweeException

from models import ForecastCache

CACHE_DURATION = 3600


def get_cached_or_fetch(source: str, key: str, fetch, max_age: int = CACHE_DURATION):
    """Raw provider JSON for (source, key), refetched once it's older than max_age seconds.

    fetch is only called on a miss; whatever it raises propagates and the stale
    row (if any) is left alone. max_age <= 0 skips the cache entirely. The
    cache is best effort: a database error is logged and treated as a miss on
    read, and ignored on write.
    """
    if max_age <= 0:
        return fetch()

    try:
        row = ForecastCache.get((ForecastCache.source == source) & (ForecastCache.key == key))
        if (datetime.now() - row.last_updated).total_seconds() <= max_age:
            return json.loads(row.payload)
    except ForecastCache.DoesNotExist:
        pass
    except PeeweeException as e:
        print(f"[Cache] Couldn't read {source}/{key}: {e}")

    payload = fetch()
    try:
        # INSERT OR REPLACE on the (source, key) index, concurrent misses just overwrite
        ForecastCache.replace(source=source, key=key, payload=json.dumps(payload),
                              last_updated=datetime.now()).execute()
    except PeeweeException as e:
        print(f"[Cache] Couldn't store {source}/{key}: {e}")
    return payload
