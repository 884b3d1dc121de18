"""Item services: the side cache and the cache-aside accessor."""
