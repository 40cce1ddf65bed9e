import argparse
import logging
import signal
import sys
import time
from typing import List, Optional

from dotenv import load_dotenv

from tapedeck.application.enrichment import EnrichmentResult, EnrichmentWorkflow
from tapedeck.crosscutting.config import ConfigError, Settings, VERSION
from tapedeck.crosscutting.logging import setup_logging
from tapedeck.domain.errors import EnrichmentAborted, TapedeckError
from tapedeck.infrastructure.asset_fetcher import HttpAssetFetcher
from tapedeck.infrastructure.playlist_store import load_playlist
from tapedeck.infrastructure.providers.deezer import DeezerCatalog
from tapedeck.interfaces.console import ConsoleOperator


class CLI:
    """Command Line Interface for tapedeck."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize CLI."""
        # Settings are resolved lazily in run() so that .env is loaded first
        self._settings = settings
        self.parser = self._create_parser()
        self._start_time = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog='tapedeck',
            description='Fill in album, year and cover art of tapedeck playlists'
        )
        parser.add_argument('--version', action='version', version=f'%(prog)s {VERSION}')

        common = argparse.ArgumentParser(add_help=False)
        common.add_argument(
            '--log-level',
            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
            default='WARNING',
            help='Set logging level (default: WARNING)'
        )
        common.add_argument(
            '--log-file',
            default=None,
            help='Also write JSON logs to this file'
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        print_parser = subparsers.add_parser('print', parents=[common], help='Print a playlist')
        print_parser.add_argument('playlist', help='Path to the playlist JSON file')

        autofill_parser = subparsers.add_parser(
            'autofill', parents=[common], help='Search and fill in missing album data'
        )
        autofill_parser.add_argument('playlist', help='Path to the playlist JSON file')
        autofill_parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Select albums but do not download covers or rewrite the playlist'
        )
        autofill_parser.add_argument(
            '--keep-going',
            action='store_true',
            help='Skip a track when its album lookup or cover download fails instead of stopping'
        )
        autofill_parser.add_argument(
            '--search-limit',
            type=int,
            default=None,
            help='Candidates shown per search (default from env or 10)'
        )
        autofill_parser.add_argument(
            '--cover-size',
            type=int,
            default=None,
            help='Requested cover size in pixels (default from env or 1000)'
        )
        autofill_parser.add_argument(
            '--art-dir',
            default=None,
            help='Directory for downloaded covers (default: current directory)'
        )
        autofill_parser.add_argument(
            '--max-attempts',
            type=int,
            default=None,
            help='Invalid menu entries allowed per track (default from env or 3)'
        )

        return parser

    def _setup_signal_handlers(self) -> None:
        """Turn SIGTERM into the same exit path as Ctrl-C."""
        def signal_handler(signum, frame):
            raise KeyboardInterrupt()

        signal.signal(signal.SIGTERM, signal_handler)

    def _cleanup_resources(self) -> None:
        """Log execution time on exit."""
        logger = logging.getLogger(__name__)
        if self._start_time:
            duration = time.time() - self._start_time
            logger.info(f"CLI execution time: {duration:.2f}s")

    def _settings_for(self, args: argparse.Namespace) -> Settings:
        """Environment settings with CLI overrides applied."""
        settings = self._settings or Settings.from_env()
        return settings.with_overrides(
            search_limit=getattr(args, 'search_limit', None),
            cover_size=getattr(args, 'cover_size', None),
            art_dir=getattr(args, 'art_dir', None),
            max_attempts=getattr(args, 'max_attempts', None),
        )

    def _create_workflow(self, args: argparse.Namespace, settings: Settings) -> EnrichmentWorkflow:
        """Wire the Deezer catalog, HTTP fetcher and console into a workflow."""
        catalog = DeezerCatalog(
            base_url=settings.catalog_url,
            timeout=settings.http_timeout,
            user_agent=settings.user_agent
        )
        fetcher = HttpAssetFetcher(timeout=settings.http_timeout, user_agent=settings.user_agent)
        return EnrichmentWorkflow(
            catalog=catalog,
            fetcher=fetcher,
            operator=ConsoleOperator(),
            search_limit=settings.search_limit,
            cover_size=settings.cover_size,
            art_dir=settings.art_dir,
            max_attempts=settings.max_attempts,
            keep_going=args.keep_going,
            dry_run=args.dry_run
        )

    def _print_playlist(self, args: argparse.Namespace) -> None:
        """Print name, creation date and numbered track list."""
        logger = logging.getLogger(__name__)

        try:
            playlist = load_playlist(args.playlist)
        except (OSError, TapedeckError) as e:
            logger.error(f"Failed to read playlist {args.playlist}: {e}")
            sys.exit(1)

        print(playlist.name, playlist.created_at)
        for i, track in enumerate(playlist.tracks):
            print(f"{i}. {track.title} • {track.artist} • {track.album}")

    def _autofill_playlist(self, args: argparse.Namespace) -> None:
        """Run the enrichment workflow against the playlist."""
        logger = logging.getLogger(__name__)

        try:
            settings = self._settings_for(args)
            workflow = self._create_workflow(args, settings)
            result = workflow.run(args.playlist)
        except EnrichmentAborted as e:
            logger.error(f"Autofill aborted: {e}")
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except (OSError, TapedeckError, ConfigError) as e:
            logger.error(f"Autofill failed: {e}")
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        self._report(result)

    def _report(self, result: EnrichmentResult) -> None:
        prefix = "DRY-RUN: " if result.dry_run else ""
        print(f"{prefix}{result.enriched} enriched, {result.skipped} skipped, "
              f"{result.failed} failed, {result.already_resolved} already complete "
              f"({result.total_tracks} tracks)")

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Run the CLI."""
        self._start_time = time.time()
        self._setup_signal_handlers()

        try:
            args = self.parser.parse_args(argv)

            if not args.command:
                self.parser.print_help()
                sys.exit(1)

            setup_logging(args.log_level, args.log_file)

            if args.command == 'print':
                self._print_playlist(args)
            elif args.command == 'autofill':
                self._autofill_playlist(args)
            else:
                self.parser.print_help()
                sys.exit(1)

        except KeyboardInterrupt:
            logger = logging.getLogger(__name__)
            logger.warning("Operation cancelled by user")
            sys.exit(130)
        except Exception as e:
            logger = logging.getLogger(__name__)
            logger.error(f"CLI error: {e}", exc_info=True)
            sys.exit(1)
        finally:
            self._cleanup_resources()


def main():
    """Main entry point."""
    load_dotenv()
    cli = CLI()
    cli.run()


if __name__ == '__main__':
    main()
