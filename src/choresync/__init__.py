"""ChoreSync: resilient network access for the household task tracker.

Remote calls are retried with linear backoff, slow connections are reported,
reads are cached with expiry and mutations made offline are queued durably
and replayed when the connection returns.
"""

__version__ = "0.1.0"
