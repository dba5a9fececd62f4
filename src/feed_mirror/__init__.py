"""feed-mirror polls RSS/Atom feeds, mirrors matching items into a GitHub
repository, and notifies subscribers.

One run:
    1. Fetch every configured feed concurrently (fetch/feeds.py)
    2. Merge by link and keep recent items whose titles match (match.py)
    3. Derive a stable id per link and skip known items (dedup.py)
    4. Fetch and sanitize the linked page (fetch/content.py)
    5. Commit the wrapped page through the GitHub Contents API (publish/github.py)
    6. Email subscribers and update the push marker (notify/)

Steps 3-6 run per item under a bounded-concurrency scheduler
(pipeline/scheduler.py).
"""

__version__ = "0.1.0"
