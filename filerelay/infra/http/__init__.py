from .fetcher import RemoteFetcher, RemoteStream

__all__ = ["RemoteFetcher", "RemoteStream"]
