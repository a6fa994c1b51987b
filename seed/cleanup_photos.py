#!/usr/bin/env python3
"""
Cleanup script to remove every photo in the gallery via API endpoints.

Run:
    python seed/cleanup_photos.py \
      --base-url https://<api-id>.execute-api.<region>.amazonaws.com/v1 \
      --password <ADMIN_PASSWORD>
"""

import argparse
import sys
from typing import Any, cast

import requests
from aws_lambda_powertools import Logger

logger = Logger(service="cleanup")

PAGE_SIZE = 100


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete all photos via the Portfolio API")

    parser.add_argument(
        "--base-url",
        required=True,
        help="API base URL, without the trailing /photos",
    )
    parser.add_argument(
        "--password",
        required=True,
        help="Admin password used to obtain a bearer token",
    )

    return parser.parse_args()


def list_all_photos(base_url: str) -> list[dict[str, Any]]:
    photos: list[dict[str, Any]] = []
    offset = 0

    while True:
        response = requests.get(
            f"{base_url}/photos",
            params={"limit": PAGE_SIZE, "offset": offset},
            timeout=30,
        )
        response.raise_for_status()

        body = cast(dict[str, Any], response.json())
        photos.extend(cast(list[dict[str, Any]], body.get("photos", [])))

        next_offset = body.get("pagination", {}).get("next_offset")
        if next_offset is None:
            return photos
        offset = next_offset


def cleanup_photos() -> None:
    try:
        args = parse_args()
        base_url = args.base_url.rstrip("/")

        auth = requests.post(f"{base_url}/auth", json={"password": args.password}, timeout=30)
        auth.raise_for_status()
        headers = {"Authorization": f"Bearer {auth.json()['token']}"}

        logger.info("Starting cleanup process", extra={"api_base_url": base_url})

        photos = list_all_photos(base_url)
        if not photos:
            logger.info("No photos found for cleanup")
            return

        for photo in photos:
            photo_id = photo["id"]
            delete_resp = requests.delete(
                f"{base_url}/photos/{photo_id}",
                headers=headers,
                timeout=30,
            )

            if delete_resp.ok:
                logger.info("Deleted photo", extra={"photo_id": photo_id})
            else:
                logger.error(
                    "Failed to delete photo",
                    extra={
                        "photo_id": photo_id,
                        "status": delete_resp.status_code,
                        "response": delete_resp.text,
                    },
                )

        logger.info("Cleanup completed successfully")

    except Exception as exc:
        logger.exception("Cleanup failed", exc_info=exc)
        sys.exit(1)


if __name__ == "__main__":
    cleanup_photos()
