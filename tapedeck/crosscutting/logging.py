import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional
from contextvars import ContextVar

# Context variables for correlation
playlist_var: ContextVar[Optional[str]] = ContextVar('playlist', default=None)
track_var: ContextVar[Optional[int]] = ContextVar('track', default=None)
stage_var: ContextVar[Optional[str]] = ContextVar('stage', default=None)

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        playlist = playlist_var.get()
        track = track_var.get()
        stage = stage_var.get()

        log_entry = {
            'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add correlation fields if available
        if playlist:
            log_entry['playlist'] = playlist
        if track is not None:
            log_entry['track'] = track
        if stage:
            log_entry['stage'] = stage

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if getattr(record, 'fields', None):
            log_entry['fields'] = record.fields

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class CorrelationContext:
    """Context manager for correlation data."""

    def __init__(self, playlist: Optional[str] = None,
                 track: Optional[int] = None,
                 stage: Optional[str] = None):
        """Initialize correlation context."""
        self.playlist = playlist
        self.track = track
        self.stage = stage
        self._tokens = []

    def __enter__(self):
        """Set correlation context."""
        if self.playlist is not None:
            self._tokens.append((playlist_var, playlist_var.set(self.playlist)))
        if self.track is not None:
            self._tokens.append((track_var, track_var.set(self.track)))
        if self.stage is not None:
            self._tokens.append((stage_var, stage_var.set(self.stage)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore correlation context."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


def setup_logging(level: str = 'WARNING', log_file: Optional[str] = None) -> logging.Logger:
    """Configure the tapedeck logger for a CLI run.

    The console gets plain text on stderr so it does not interleave with the
    operator menu on stdout. The optional log file receives JSON lines.
    """
    logger = logging.getLogger('tapedeck')
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        # Rotate at ~10MB with up to 5 backups
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5,
                                           encoding='utf-8')
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def log_with_fields(logger: logging.Logger, level: str, message: str,
                    fields: Optional[Dict[str, Any]] = None, **kwargs):
    """Log message with additional fields."""
    merged = dict(fields or {})
    exc_info = kwargs.pop('exc_info', None)
    merged.update(kwargs)
    logger.log(getattr(logging, level.upper()), message,
               extra={'fields': merged} if merged else None, exc_info=exc_info)


# Convenience functions for common logging patterns
def log_run_start(logger: logging.Logger, playlist_path: str, track_count: int,
                  unresolved_count: int, **kwargs):
    with CorrelationContext(playlist=playlist_path, stage='start'):
        log_with_fields(logger, 'INFO', 'Autofill started', {
            'track_count': track_count,
            'unresolved_count': unresolved_count,
            **kwargs
        })


def log_track_enriched(logger: logging.Logger, track_index: int, album: str,
                       album_year: Optional[int], album_art: str, **kwargs):
    with CorrelationContext(track=track_index, stage='persisted'):
        log_with_fields(logger, 'INFO', 'Track enriched', {
            'album': album,
            'album_year': album_year,
            'album_art': album_art,
            **kwargs
        })


def log_run_complete(logger: logging.Logger, playlist_path: str, enriched: int,
                     skipped: int, failed: int, **kwargs):
    with CorrelationContext(playlist=playlist_path, stage='complete'):
        log_with_fields(logger, 'INFO', 'Autofill completed', {
            'enriched': enriched,
            'skipped': skipped,
            'failed': failed,
            **kwargs
        })


def log_error(logger: logging.Logger, message: str, error: Exception, **kwargs):
    """Log error with exception details."""
    log_with_fields(logger, 'ERROR', message, {
        'error_type': type(error).__name__,
        'error_message': str(error),
        **kwargs
    })
