#!/usr/bin/env python3
"""
Catalog Seeding Script.

Loads a JSON array of books and creates each one through the regular
write path (validation, reference resolution, embedding, atomic save).
Books whose ISBN is already cataloged are skipped, so the script can be
re-run safely.

Each entry looks like:
    {"isbn": "9780132350884", "title": "Clean Code",
     "authors": ["Robert C. Martin"], "description": "...",
     "type": "technical", "categories": ["Programming"],
     "format": "pdf", "available": false}

Usage:
    python -m scripts.seed_database --books-file data/seed_books.json
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from app.config import ConfigError, load_settings
from app.domain.errors import PersistenceError
from app.domain.services import CreateBookService
from app.infrastructure.db.sqlite_author_repository import SqliteAuthorRepository
from app.infrastructure.db.sqlite_book_repository import SqliteBookRepository
from app.infrastructure.db.sqlite_category_repository import SqliteCategoryRepository
from app.infrastructure.db.sqlite_database import SqliteDatabase
from app.infrastructure.db.sqlite_type_repository import SqliteTypeRepository
from app.infrastructure.embedding.factory import build_embedding_service
from app.ingestion.seed_service import BookSeedingService, read_books_file

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the book catalog from a JSON file")
    parser.add_argument(
        "--books-file", "-f",
        type=Path,
        required=True,
        help="JSON array of books to create"
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="SQLite database path (default: DB_PATH or data/catalog.db)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Books per progress batch (default: SEED_BATCH_SIZE or 50)"
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Attempts per book while the embedding service is down (default: 3)"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the seeding script.

    Returns:
        Process exit status: 0 on completion (even with per-book errors),
        1 on a fatal error
    """
    args = parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(str(e))
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    overrides = {
        "db_path": args.db_path,
        "seed_batch_size": args.batch_size,
        "seed_max_retries": args.max_retries,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    try:
        books = read_books_file(args.books_file)

        db = SqliteDatabase(settings.db_path)
        book_repo = SqliteBookRepository(db)
        embedding_service = build_embedding_service(settings)
        if not embedding_service.is_available():
            logger.warning("Embedding service is not reachable; books will be retried")

        create_book = CreateBookService(
            book_repo=book_repo,
            author_repo=SqliteAuthorRepository(db),
            category_repo=SqliteCategoryRepository(db),
            type_repo=SqliteTypeRepository(db),
            embedding_service=embedding_service,
        )
        seeder = BookSeedingService(
            create_book=create_book,
            book_repo=book_repo,
            batch_size=settings.seed_batch_size,
            max_retries=settings.seed_max_retries,
            base_delay_s=settings.seed_retry_base_delay_s,
        )
        summary = seeder.seed(books)
    except (OSError, ValueError, PersistenceError) as e:
        logger.error(f"Seeding failed: {e}")
        return 1

    print("\n" + "=" * 60)
    print("SEEDING SUMMARY")
    print("=" * 60)
    print(f"Total processed: {summary.total_processed}")
    print(f"Created:         {summary.created}")
    print(f"Skipped:         {summary.skipped}")
    print(f"Errors:          {summary.errors}")
    print(f"Duration:        {summary.duration_s:.2f}s")
    if summary.failed_isbns:
        print(f"Failed:          {', '.join(summary.failed_isbns)}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
