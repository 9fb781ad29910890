from thor_streamer.signature_log.logger import LogEntry, SignatureLogger

__all__ = ["LogEntry", "SignatureLogger"]
