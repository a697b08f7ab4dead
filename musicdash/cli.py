"""
Command-line interface for musicdash.

Prints listening stats, music news and generated playlists.
"""

import argparse
import asyncio
import json
import random
import sys
from pathlib import Path
from typing import List

from .auth import open_spotify_session
from .config import DashboardConfig, load_config
from .errors import NetworkError, RateLimited, Unauthorized
from .fetchers import MusicFetcher
from .listening_store import ListeningStore
from .logging_utils import DashLogger, UserErrors
from .models import NewsArticle, StreamingStats, Track
from .music_source import SpotifyMusicSource
from .news import NewsAggregator
from .playlist import PlaylistGenerator
from .record_store import RecordStore
from .stats import StatsService


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all CLI options."""
    parser = argparse.ArgumentParser(
        description="Your listening stats, music news and playlists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  musicdash --stats                      # Top artists, tracks and weekly summary
  musicdash --news --genre Jazz          # Latest jazz news
  musicdash --generate "Radiohead"       # Playlist seeded from a search
  musicdash --weekly                     # Your weekly mix
  musicdash --record-play "Karma Police" # Count a play of the first search hit
""",
    )

    parser.add_argument(
        "--config",
        "-c",
        default="config.yml",
        help="Path to config file (default: config.yml)",
    )
    parser.add_argument("--stats", "-s", action="store_true", help="Show streaming stats")
    parser.add_argument("--news", "-n", action="store_true", help="Show music news")
    parser.add_argument("--genre", "-g", help="Genre filter for news and playlists")
    parser.add_argument("--search", help="Search term filter for news")
    parser.add_argument(
        "--generate", metavar="QUERY", help="Generate a playlist seeded from a catalog search"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible playlist order",
    )
    parser.add_argument("--weekly", action="store_true", help="Build your weekly mix")
    parser.add_argument("--genres", action="store_true", help="List available genres")
    parser.add_argument(
        "--record-play", metavar="QUERY", help="Record a play of the first search hit"
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose debug output"
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Quiet mode - only show errors")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    return parser


def print_header(logger: DashLogger):
    logger.info("━" * 50)
    logger.info("🎵 Music Dashboard")
    logger.info("━" * 50)


def print_stats(stats: StreamingStats, logger: DashLogger):
    weekly = stats.weekly_stats

    logger.info("")
    logger.info("📊 Streaming Stats")
    logger.info(f"   Listening time: ~{stats.total_listening_time} min")
    logger.info(f"   Tracks: {weekly.total_tracks}  Artists: {weekly.total_artists}")
    logger.info(f"   Per day: {weekly.average_tracks_per_day}  Most active: {weekly.most_active_day}")
    if weekly.top_genres:
        logger.info(f"   Top genres: {', '.join(weekly.top_genres)}")

    logger.info("")
    logger.info("🎤 Top Artists:")
    for i, artist in enumerate(stats.top_artists, 1):
        logger.info(f"   {i:2}. {artist.name} ({artist.play_count} plays)")

    logger.info("")
    logger.info("🎧 Top Tracks:")
    for i, item in enumerate(stats.top_tracks, 1):
        logger.info(f"   {i:2}. {item.track.artist} - {item.track.title} ({item.play_count} plays)")


def print_news(articles: List[NewsArticle], logger: DashLogger):
    if not articles:
        logger.warning(UserErrors.no_news())
        return

    logger.info("")
    logger.info(f"📰 {len(articles)} articles")
    for article in articles:
        date = article.published_at.strftime("%Y-%m-%d")
        logger.info(f"   [{date}] {article.title} ({article.source_name})")
        logger.debug(f"      {article.url}")


def print_tracks(title: str, tracks: List[Track], logger: DashLogger):
    logger.info("")
    logger.info(f"💿 {title} ({len(tracks)} tracks)")
    for i, track in enumerate(tracks, 1):
        logger.info(f"   {i:2}. {track.artist} - {track.title}")


def print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def main():
    parser = create_parser()
    args = parser.parse_args()

    logger = DashLogger(
        verbose=args.verbose,
        quiet=args.quiet,
        use_color=not args.no_color,
    )

    actions = (args.stats, args.news, args.generate, args.weekly, args.genres, args.record_play)
    if not any(actions):
        logger.warning("Nothing to do. Use --help to see options.")
        parser.print_help()
        return

    print_header(logger)

    raw_config = load_config(args.config)
    if not raw_config and not Path(args.config).exists():
        if args.config != "config.yml":
            logger.error(UserErrors.config_not_found(args.config))
            sys.exit(1)
        logger.debug("No config.yml found, using environment variables")
    config = DashboardConfig.from_dict(raw_config)

    news = NewsAggregator(
        config.news_api_key,
        base_url=config.news_base_url,
        scrape_url=config.news_scrape_url,
        page_size=config.news_page_size,
        max_attempts=config.max_attempts,
    )

    needs_music = any(
        (args.stats, args.generate, args.weekly, args.genres, args.record_play)
    )
    fetcher = None
    stats_service = None
    if needs_music:
        logger.progress("Connecting to Spotify...")
        if config.token_cache:
            Path(config.token_cache).parent.mkdir(parents=True, exist_ok=True)
        try:
            spotify = open_spotify_session(config.spotify, cache_path=config.token_cache)
            user = spotify.current_user()
            logger.success(f"Connected as {user.get('display_name') or user['id']}")
        except Exception as e:
            logger.error(UserErrors.music_auth_failed(str(e)))
            sys.exit(1)

        fetcher = MusicFetcher(
            SpotifyMusicSource(spotify),
            progress_callback=logger.debug,
            max_attempts=config.max_attempts,
        )
        store = RecordStore(store_file=config.store_file)
        stats_service = StatsService(fetcher, ListeningStore(store))

    async def run():
        if args.stats:
            logger.progress("Crunching your listening stats...")
            stats = await stats_service.get_streaming_stats()
            if args.json:
                print_json(stats.to_dict())
            else:
                print_stats(stats, logger)

        if args.news:
            logger.progress("Fetching music news...")
            articles = await news.get_music_news(args.genre, args.search)
            if args.json:
                print_json([a.to_dict() for a in articles])
            else:
                print_news(articles, logger)

        if args.genres:
            genres = await fetcher.get_available_genres()
            logger.info(f"🎼 Genres: {', '.join(genres)}")

        if args.generate or args.weekly:
            rng = random.Random(args.seed) if args.seed is not None else None
            generator = PlaylistGenerator(
                fetcher,
                rng=rng,
                size=config.playlist_size,
                seed_delay=config.seed_delay,
                show_progress=not args.quiet,
            )
            if args.generate:
                seeds = await fetcher.search_tracks(args.generate, limit=3)
                if not seeds:
                    logger.warning(f"No tracks found for {args.generate!r}")
                else:
                    tracks = await generator.generate(seeds, args.genre)
                    playlist = generator.build_playlist(
                        f"Inspired by {args.generate}", tracks, genre=args.genre
                    )
                    if args.json:
                        print_json(playlist.to_dict())
                    else:
                        print_tracks(playlist.name, playlist.tracks, logger)
            if args.weekly:
                playlist = await generator.weekly_playlist()
                if args.json:
                    print_json(playlist.to_dict())
                else:
                    print_tracks(playlist.name, playlist.tracks, logger)

        if args.record_play:
            hits = await fetcher.search_tracks(args.record_play, limit=1)
            if not hits:
                logger.warning(f"No tracks found for {args.record_play!r}")
            else:
                count = await stats_service.record_play(hits[0])
                logger.success(f"{hits[0].artist} - {hits[0].title}: {count} plays")

    try:
        asyncio.run(run())
        logger.info("━" * 50)
        logger.info(logger.format_summary())
    except KeyboardInterrupt:
        logger.warning("Cancelled by user")
        sys.exit(1)
    except Unauthorized as e:
        logger.error(UserErrors.music_auth_failed(str(e)))
        sys.exit(1)
    except RateLimited:
        logger.error(UserErrors.rate_limited())
        sys.exit(1)
    except NetworkError as e:
        logger.error(UserErrors.network_error(str(e)))
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
