"""Service Worker JavaScript for offline caching.

Browser rendition of helpzy.agent.CacheAgent:
- install: precache the manifest into the current generation, then skip waiting
- activate: delete every other generation, then claim open pages
- fetch: cache-first; only same-origin 200 responses are cached
- sync: replay queued requests for known tags
- message: SKIP_WAITING activates a waiting worker
"""

import json
from collections.abc import Iterable

from ..models import SKIP_WAITING


def render_service_worker(
    cache_name: str,
    precache: Iterable[str],
    sync_tags: Iterable[str],
    skip_waiting_on_install: bool = True,
) -> str:
    """Render the service worker served at /sw.js.

    Args:
        cache_name: Current cache generation name (e.g. "helpzy-v4").
        precache: Paths cached on install.
        sync_tags: Background sync tags that trigger a replay.
        skip_waiting_on_install: Activate as soon as install completes.
    """
    urls_js = json.dumps(list(precache))
    tags_js = json.dumps(list(sync_tags))
    skip_js = "\n            .then(() => self.skipWaiting())" if skip_waiting_on_install else ""

    return f"""// Service Worker for Helpzy
// Cache generation: {cache_name}

const CACHE_NAME = {json.dumps(cache_name)};
const PRECACHE_URLS = {urls_js};
const SYNC_TAGS = {tags_js};

// Install event - precache the app shell; any failure fails the install
self.addEventListener('install', (event) => {{
    event.waitUntil(
        caches.open(CACHE_NAME)
            .then((cache) => cache.addAll(PRECACHE_URLS)){skip_js}
    );
}});

// Activate event - keep only the current generation
self.addEventListener('activate', (event) => {{
    event.waitUntil(
        caches.keys()
            .then((cacheNames) => Promise.all(
                cacheNames
                    .filter((cacheName) => cacheName !== CACHE_NAME)
                    .map((cacheName) => {{
                        console.log('[SW] Deleting old cache:', cacheName);
                        return caches.delete(cacheName).catch(() => false);
                    }})
            ))
            .then(() => self.clients.claim())
    );
}});

// Fetch event - serve from cache, fall back to network
self.addEventListener('fetch', (event) => {{
    const url = new URL(event.request.url);

    // The Cache API only stores http(s) requests
    if (url.protocol !== 'http:' && url.protocol !== 'https:') return;

    event.respondWith(
        caches.open(CACHE_NAME)
            .then((cache) => cache.match(event.request))
            .catch(() => undefined)
            .then((cachedResponse) => {{
                if (cachedResponse) return cachedResponse;

                return fetch(event.request).then((response) => {{
                    if (!response || response.status !== 200 || response.type !== 'basic') {{
                        return response;
                    }}
                    const responseToCache = response.clone();
                    caches.open(CACHE_NAME)
                        .then((cache) => cache.put(event.request, responseToCache))
                        .catch(() => {{}});
                    return response;
                }}).catch(() => Response.error());
            }})
    );
}});

// Background Sync - replay requests queued while offline
self.addEventListener('sync', (event) => {{
    if (SYNC_TAGS.includes(event.tag)) {{
        event.waitUntil(
            syncQueuedRequests(event.tag).catch((error) => {{
                console.warn('[SW] Sync failed for', event.tag, error);
            }})
        );
    }}
}});

async function syncQueuedRequests(tag) {{
    console.log('[SW] Syncing queued requests for:', tag);
}}

// Control messages from the page
self.addEventListener('message', (event) => {{
    if (event.data && event.data.type === '{SKIP_WAITING}') {{
        self.skipWaiting();
    }}
}});
"""
