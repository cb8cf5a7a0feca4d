#!/usr/bin/env python3
"""
Issue presigned URLs and resolve file references from the command line.

Handy when debugging a submission whose media won't load: paste the
stored reference and see what URL the API would hand out.

Usage:
    python scripts/presign.py upload videos clip.mov video/quicktime
    python scripts/presign.py resolve images/1718000000000-k3j9x0qa.jpg kg2abc123
    python scripts/presign.py stream videos/1718000000000-k3j9x0qa.mov

Requires:
    - .env file with R2 credentials (and LEGACY_STORE_URL for legacy ids)
"""

import asyncio
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config.settings import get_settings, load_storage_config
from src.core.storage.errors import ConfigurationError
from src.core.storage.resolver import ReferenceResolver
from src.infrastructure.legacy.client import ConvexLegacyConfig, create_legacy_store
from src.infrastructure.storage.client import R2StorageClient


def build_legacy_store(settings):
    """Legacy store if configured, else None (legacy ids resolve to null)."""
    if settings.legacy_mock_mode:
        return create_legacy_store(mock_mode=True)
    if not settings.legacy_store_url:
        return None
    return create_legacy_store(
        ConvexLegacyConfig(
            deployment_url=settings.legacy_store_url,
            timeout_seconds=settings.legacy_store_timeout_seconds,
            get_url_function=settings.legacy_get_url_function,
        )
    )


async def run(args) -> int:
    settings = get_settings()
    config = load_storage_config(settings)
    expires_in = args.expires or settings.presign_expires_seconds

    if args.command == "upload":
        client = R2StorageClient(config)
        ticket = await client.issue_upload_url(
            args.folder, args.filename, args.content_type, expires_in=expires_in
        )
        print(f"file_key:   {ticket.file_key}")
        print(f"public_url: {ticket.public_url}")
        print(f"upload_url: {ticket.upload_url}")
        print()
        print(f"curl -X PUT -H 'Content-Type: {args.content_type}' --data-binary @{args.filename} '{ticket.upload_url}'")
        return 0

    legacy_store = build_legacy_store(settings)
    resolver = ReferenceResolver(config, legacy_store, expires_in=expires_in)
    try:
        if args.command == "stream":
            urls = [await resolver.streamable_url(ref) for ref in args.refs]
        else:
            urls = await resolver.resolve_many(args.refs)
    finally:
        if legacy_store is not None:
            await legacy_store.aclose()

    failed = 0
    for ref, url in zip(args.refs, urls):
        print(f"{ref}\n  -> {url if url else '(unresolved)'}")
        if ref and url is None:
            failed += 1

    return 1 if failed else 0


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Presign R2 URLs and resolve stored file references')
    parser.add_argument('--expires', type=int, default=None, help='URL lifetime in seconds')
    sub = parser.add_subparsers(dest='command', required=True)

    upload = sub.add_parser('upload', help='Issue a presigned upload URL')
    upload.add_argument('folder', help='Folder, e.g. images, videos, audio')
    upload.add_argument('filename', help='Local filename (only the extension is used)')
    upload.add_argument('content_type', help='MIME type to sign')

    resolve = sub.add_parser('resolve', help='Resolve stored references')
    resolve.add_argument('refs', nargs='+')

    stream = sub.add_parser('stream', help='Resolve references for media playback')
    stream.add_argument('refs', nargs='+')

    args = parser.parse_args()

    try:
        code = asyncio.run(run(args))
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        sys.exit(2)

    sys.exit(code)


if __name__ == '__main__':
    main()
