#!/usr/bin/env python
"""Drive an editor session against a local catalog backend.

Creates (or edits) a product from the command line, the same way the
editor UI would, and prints every toast the session emits.

Usage:
    # Simple product
    python scripts/simulate_save.py --name "Travel Mug" --origin US \
        --retail 12.50 --cost 5

    # Variant product with two sizes and an image
    python scripts/simulate_save.py --name "Runner" --sku RUN --origin IT \
        --retail 90 --cost 40 --size Small --size Large --image ./shoe.jpg

    # Edit an existing product as draft
    python scripts/simulate_save.py --product-id 42 --name "Runner v2" --draft
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from product_editor.infra.logging import setup_logging
from product_editor.models.draft import StagedImage
from product_editor.services.backend_client import CatalogAPIError, CatalogClient
from product_editor.services.editor_session import EditorSession
from product_editor.services.notifier import Notification, Notifier


def print_notification(notification: Notification) -> None:
    print(f"[{notification.level.upper():7}] {notification.message}")


def load_image(path: Path) -> StagedImage:
    suffix = path.suffix.lower().lstrip(".")
    content_type = f"image/{'jpeg' if suffix == 'jpg' else suffix or 'octet-stream'}"
    return StagedImage(filename=path.name, content=path.read_bytes(), content_type=content_type)


async def run(args: argparse.Namespace) -> int:
    client = CatalogClient(base_url=args.url, api_token=args.token, tenant_id=args.tenant)
    session = EditorSession(client, notifier=Notifier(sink=print_notification))

    try:
        await session.open(args.product_id)

        for field_name, value in (
            ("name", args.name),
            ("sku", args.sku),
            ("origin", args.origin),
            ("retail_price", args.retail),
            ("cost_price", args.cost),
        ):
            if value is not None:
                session.set_field(field_name, value)

        if args.size and not session.draft.is_edit_simple:
            session.toggle_variants(True)
            first = session.draft.variants[0]
            session.add_size(args.size[0], row_id=first.row_id)
            for size in args.size[1:]:
                row = session.add_variant()
                session.add_size(size, row_id=row.row_id)

        images = [load_image(path) for path in args.image]
        if images:
            session.stage_images(images)

        outcome = await session.submit(is_draft=args.draft)
    except CatalogAPIError as e:
        print(f"Error: {e.operation} failed: {e.message}")
        return 1
    finally:
        await client.close()

    print(f"\nStatus:     {outcome.status}")
    print(f"Product ID: {outcome.product_id}")
    if outcome.missing:
        print(f"Missing:    {', '.join(outcome.missing.values())}")
    if outcome.failures:
        print(f"Failures:   {[f.phase for f in outcome.failures]}")

    if args.output and outcome.payload:
        args.output.write_text(json.dumps(outcome.payload, indent=2))
        print(f"\nPayload saved to: {args.output}")

    return 0 if outcome.ok else 1


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Create or edit a product through an editor session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--url", default="http://localhost:8080/api", help="Catalog backend base URL")
    parser.add_argument("--token", default=None, help="Bearer token (default: from settings)")
    parser.add_argument("--tenant", default=None, help="Tenant ID (default: from settings)")
    parser.add_argument("--product-id", default=None, help="Edit this product instead of creating one")
    parser.add_argument("--name", default=None, help="Product name")
    parser.add_argument("--sku", default=None, help="Parent SKU (generated from the name when blank)")
    parser.add_argument("--origin", default=None, help="Place of origin country code")
    parser.add_argument("--retail", default=None, help="Retail price")
    parser.add_argument("--cost", default=None, help="Cost (original) price")
    parser.add_argument(
        "--size",
        action="append",
        default=[],
        help="Add a variant row with this size (repeatable)",
    )
    parser.add_argument(
        "--image",
        type=Path,
        action="append",
        default=[],
        help="Stage a product image (repeatable)",
    )
    parser.add_argument("--draft", action="store_true", help="Save as draft")
    parser.add_argument("--output", type=Path, default=None, help="Save the sent payload JSON to file")

    return parser.parse_args()


def main() -> int:
    setup_logging()
    args = parse_args()

    for path in args.image:
        if not path.exists():
            print(f"Error: Image not found: {path}")
            return 1

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
